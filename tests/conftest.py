"""Shared fixtures for dnsstress tests."""

import pytest

from fakes import closed_udp_port
from dnsstress.models import ResolverTarget, StressConfig


@pytest.fixture
def closed_target() -> ResolverTarget:
    return ResolverTarget("127.0.0.1", closed_udp_port())


@pytest.fixture
def make_config(closed_target):
    def factory(**overrides):
        values = {"resolver": closed_target, "concurrency": 1, "timeout": 0.2}
        values.update(overrides)
        return StressConfig(**values)
    return factory
