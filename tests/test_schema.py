"""Tests for the generic schema decoder."""

from dataclasses import dataclass, field

import pytest

from kube_components.diagnostics import SourceRange
from kube_components.exceptions import InputException
from kube_components.loader import ConfigBlock, EvalContext, parse_config
from kube_components.schema import Field, Kind, Schema, decode


@dataclass
class Port:
    name: str = ""
    number: int = 0


@dataclass
class Server:
    host: str = "localhost"
    replicas: int = 1
    debug: bool = False
    aliases: list[str] = field(default_factory=list)
    ports: list[Port] = field(default_factory=list)
    primary: Port | None = None
    token: str = ""


PORT_SCHEMA = Schema(
    fields=(
        Field("name", Kind.STRING),
        Field("number", Kind.INT),
    ),
    factory=Port,
)

SERVER_SCHEMA = Schema(
    fields=(
        Field("host", Kind.STRING),
        Field("replicas", Kind.INT),
        Field("debug", Kind.BOOL),
        Field("aliases", Kind.STRING_LIST),
        Field("port", Kind.BLOCK_LIST, attr="ports", schema=PORT_SCHEMA),
        Field("primary", Kind.BLOCK, schema=PORT_SCHEMA),
        Field("token", Kind.STRING, required=True),
    ),
    factory=Server,
)


def decode_server(
    content: str, variables: dict | None = None
) -> tuple[Server, ConfigBlock, object]:
    block = parse_config(content, filename="test.yaml").components["server"]
    assert block is not None
    server = Server()
    result = decode(block, SERVER_SCHEMA, server, EvalContext(variables or {}))
    return server, block, result


def test_decode_values() -> None:
    """Test binding every kind of field."""
    server, _, result = decode_server(
        """\
components:
  server:
    host: example.com
    replicas: ${var.replicas}
    debug: true
    aliases: [a, "${var.name}"]
    port:
    - name: http
      number: 80
    - name: https
      number: 443
    primary:
      name: http
""",
        {"replicas": 3, "name": "b"},
    )
    assert not result.diagnostics
    assert server == Server(
        host="example.com",
        replicas=3,
        debug=True,
        aliases=["a", "b"],
        ports=[Port("http", 80), Port("https", 443)],
        primary=Port("http", 0),
    )
    assert result.present >= {"host", "replicas", "debug", "aliases", "port", "primary"}
    assert "port[1].number" in result.present
    assert not result.failed


def test_decode_keeps_defaults() -> None:
    """Test that absent and null attributes keep their defaults."""
    server, _, result = decode_server(
        """\
components:
  server:
    host:
    primary:
"""
    )
    assert not result.diagnostics
    assert server.host == "localhost"
    assert server.primary == Port()
    assert "primary" in result.present
    assert "host" not in result.present


def test_unsupported_argument() -> None:
    """Test that unknown attributes are reported with their location."""
    _, _, result = decode_server(
        """\
components:
  server:
    hots: example.com
    primary:
      nmae: http
"""
    )
    assert [(d.summary, d.detail, d.subject) for d in result.diagnostics] == [
        (
            "Unsupported argument",
            "An argument named 'hots' is not expected here.",
            SourceRange("test.yaml", 3, 5),
        ),
        (
            "Unsupported argument",
            "An argument named 'primary.nmae' is not expected here.",
            SourceRange("test.yaml", 5, 7),
        ),
    ]


def test_each_field_error_is_reported() -> None:
    """Test that independent field errors produce one diagnostic each."""
    server, _, result = decode_server(
        """\
components:
  server:
    host: 5
    replicas: three
    debug: maybe
    aliases: [1, 2]
    port:
    - number: eighty
    primary: http
"""
    )
    assert len(result.diagnostics) == 6
    assert all(d.summary == "Incorrect attribute value type" for d in result.diagnostics)
    assert [d.detail for d in result.diagnostics] == [
        "Inappropriate value for attribute 'host': string required.",
        "Inappropriate value for attribute 'replicas': number required.",
        "Inappropriate value for attribute 'debug': bool required.",
        "Inappropriate value for attribute 'aliases': list of string required.",
        "Inappropriate value for attribute 'port[0].number': number required.",
        "Inappropriate value for attribute 'primary': block required.",
    ]
    assert result.failed == {
        "host",
        "replicas",
        "debug",
        "aliases",
        "port[0].number",
        "primary",
    }
    # Failed fields keep their defaults
    assert server.host == "localhost"
    assert server.replicas == 1


def test_bool_is_not_a_number() -> None:
    """Test that a boolean is rejected for a number field."""
    _, _, result = decode_server("components:\n  server:\n    replicas: true\n")
    assert result.failed == {"replicas"}


def test_unknown_variable() -> None:
    """Test that referencing an undefined variable is reported."""
    server, _, result = decode_server(
        "components:\n  server:\n    host: ${var.missing}\n"
    )
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.summary == "Unknown variable"
    assert "There is no variable named 'missing'" in diag.detail
    assert result.failed == {"host"}
    assert server.host == "localhost"


def test_block_without_schema() -> None:
    """Test that a misdeclared schema is a programming error."""
    schema = Schema(fields=(Field("primary", Kind.BLOCK),), factory=Server)
    block = ConfigBlock.from_dict({"primary": {"name": "http"}})
    with pytest.raises(InputException, match="has no schema"):
        decode(block, schema, Server(), EvalContext())


def test_schema_lookup() -> None:
    """Test looking up fields by configuration name."""
    item = SERVER_SCHEMA.get("port")
    assert item is not None
    assert item.target == "ports"
    assert SERVER_SCHEMA.get("ports") is None
    assert SERVER_SCHEMA.has_required
    assert not PORT_SCHEMA.has_required
