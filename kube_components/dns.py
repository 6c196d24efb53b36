"""Interactive verification of the DNS entries a cluster requires.

With manual DNS management the operator creates the records the provisioning
phase asks for. The records are printed and the operator confirms once they
are in place; the records are then resolved and compared with the expected
values. This repeats until every record matches or the operator skips the
check. Only operator input moves the verification forward, there is no
timeout.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import logging
import socket
import sys
from typing import TextIO

from mashumaro import DataClassDictMixin, field_options

from .exceptions import ComponentException, DNSException
from .terraform import Executor

__all__ = [
    "DNS_MANUAL",
    "DNS_ROUTE53",
    "DNS_CLOUDFLARE",
    "DNSEntry",
    "DNSState",
    "DNSVerifier",
    "validate_provider",
    "read_dns_entries",
    "print_dns_entries",
    "check_dns_entries",
    "lookup_ips",
    "ask_to_configure",
]

_LOGGER = logging.getLogger(__name__)

DNS_MANUAL = "manual"
"""DNS records are created by the operator."""

DNS_ROUTE53 = "route53"
"""DNS records are managed in Route 53."""

DNS_CLOUDFLARE = "cloudflare"
"""DNS records are managed in Cloudflare."""

DNS_PROVIDERS = (DNS_MANUAL, DNS_ROUTE53, DNS_CLOUDFLARE)
DNS_ENTRIES_OUTPUT = "dns_entries"

SKIP = "skip"
PROMPT = 'Press Enter to check the entries or type "skip" to continue the installation: '
SEPARATOR = "-" * 72

Resolver = Callable[[str], list[str]]


@dataclass
class DNSEntry(DataClassDictMixin):
    """A DNS record the cluster requires."""

    name: str
    ttl: int
    entry_type: str = field(metadata=field_options(alias="type"))
    records: list[str] = field(default_factory=list)


class DNSState(Enum):
    """State of the DNS verification."""

    PROMPTING = "prompting"
    CHECKING = "checking"
    CONFIRMED = "confirmed"
    SKIPPED = "skipped"


def validate_provider(provider: str) -> None:
    """Ensure the DNS provider is a supported provider."""
    if provider not in DNS_PROVIDERS:
        raise DNSException(f"invalid DNS provider {provider!r}")


def read_dns_entries(executor: Executor) -> list[DNSEntry]:
    """Read the required DNS entries from the provisioning outputs."""
    try:
        output = executor.output(DNS_ENTRIES_OUTPUT)
    except ComponentException as err:
        raise DNSException(f"failed to get DNS entries: {err}") from err
    if not isinstance(output, list):
        raise DNSException("failed to parse DNS entries: expected a list")
    try:
        return [DNSEntry.from_dict(entry) for entry in output]
    except (ValueError, TypeError, LookupError) as err:
        raise DNSException(f"failed to parse DNS entries: {err}") from err


def print_dns_entries(entries: list[DNSEntry], out: TextIO = sys.stdout) -> None:
    """Print the entries for the operator."""
    print(SEPARATOR, file=out)
    for entry in entries:
        print(f"Name: {entry.name}", file=out)
        print(f"Type: {entry.entry_type}", file=out)
        print(f"Ttl: {entry.ttl}", file=out)
        print("Records:", file=out)
        for record in entry.records:
            print(f"- {record}", file=out)
        print(SEPARATOR, file=out)


def lookup_ips(name: str) -> list[str]:
    """Resolve a name to its IP addresses."""
    try:
        infos = socket.getaddrinfo(name, None)
    except OSError as err:
        raise DNSException(f"failed to resolve {name!r}: {err}") from err
    return sorted({str(info[4][0]) for info in infos})


def check_dns_entries(entries: list[DNSEntry], resolver: Resolver = lookup_ips) -> bool:
    """Return True if every entry resolves to exactly its expected records."""
    for entry in entries:
        try:
            resolved = resolver(entry.name)
        except DNSException as err:
            _LOGGER.info("%s", err)
            return False
        if set(resolved) != set(entry.records):
            _LOGGER.info(
                "Entry %s resolves to %s, expected %s",
                entry.name,
                sorted(set(resolved)),
                sorted(set(entry.records)),
            )
            return False
    return True


class DNSVerifier:
    """State machine driving the verification from operator input."""

    def __init__(
        self,
        entries: list[DNSEntry],
        resolver: Resolver = lookup_ips,
        out: TextIO = sys.stdout,
    ) -> None:
        """Initialize DNSVerifier."""
        self._entries = entries
        self._resolver = resolver
        self._out = out
        self.state = DNSState.PROMPTING

    @property
    def finished(self) -> bool:
        """Return True once the entries are confirmed or the check is skipped."""
        return self.state in (DNSState.CONFIRMED, DNSState.SKIPPED)

    def handle_input(self, text: str) -> DNSState:
        """Advance the verification with one line of operator input."""
        if self.finished:
            raise DNSException(f"DNS verification already {self.state.value}")
        text = text.strip()
        if text == SKIP:
            self.state = DNSState.SKIPPED
            return self.state
        if text:
            return self.state

        self.state = DNSState.CHECKING
        if check_dns_entries(self._entries, self._resolver):
            self.state = DNSState.CONFIRMED
        else:
            print("Entries are not correctly configured, please verify.", file=self._out)
            self.state = DNSState.PROMPTING
        return self.state

    def run(self, prompt: Callable[[str], str] = input) -> DNSState:
        """Prompt the operator until the entries are confirmed or skipped."""
        while not self.finished:
            try:
                text = prompt(PROMPT)
            except EOFError:
                _LOGGER.warning("No more operator input, skipping DNS verification")
                self.state = DNSState.SKIPPED
                break
            self.handle_input(text)
        return self.state


def ask_to_configure(
    executor: Executor,
    zone: str,
    prompt: Callable[[str], str] = input,
    resolver: Resolver = lookup_ips,
    out: TextIO = sys.stdout,
) -> DNSState:
    """Ask the operator to configure the required DNS entries and verify them."""
    entries = read_dns_entries(executor)
    print(
        f"Please configure the following DNS entries at the DNS provider which hosts {zone!r}:",
        file=out,
    )
    print_dns_entries(entries, out)
    return DNSVerifier(entries, resolver, out).run(prompt)
