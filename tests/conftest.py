"""Shared fixtures for kube-components tests."""

from collections.abc import Generator

import pytest

from kube_components import context

from .common import FakeChartRenderer


@pytest.fixture(name="chart_renderer")
def chart_renderer_fixture() -> FakeChartRenderer:
    """Fixture for a chart renderer that does not need helm."""
    return FakeChartRenderer()


@pytest.fixture(name="packet_token", autouse=True)
def packet_token_fixture(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set a Packet API token in the environment."""
    monkeypatch.setenv("PACKET_AUTH_TOKEN", "s3cr3t")
    return "s3cr3t"


@pytest.fixture(autouse=True)
def reset_trace() -> Generator[None, None, None]:
    """Ensure each test starts outside of any traced phase."""
    token = context.trace.set(())
    yield
    context.trace.reset(token)
