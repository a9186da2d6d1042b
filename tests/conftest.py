"""
Pytest configuration and shared fixtures

Fun fact: The name "conftest" comes from pytest's configuration testing
framework. Files named conftest.py are automatically discovered and their
fixtures are available to all tests in the same directory and subdirectories!
"""

import pytest

from tests.helpers import InMemoryRelay
from wokhei.kernel.query_policy import QueryPolicy
from wokhei.queries import Wokhei


@pytest.fixture
def relay() -> InMemoryRelay:
    """Provide an empty in-memory relay for each test"""
    return InMemoryRelay()


@pytest.fixture
def policy() -> QueryPolicy:
    """
    Provide a policy with tiny pages

    A page size of 2 forces multi-page enumeration even for the handful
    of events a unit test creates.
    """
    return QueryPolicy(page_size=2, default_header_limit=5, default_item_limit=10)


@pytest.fixture
def wokhei(relay: InMemoryRelay, policy: QueryPolicy) -> Wokhei:
    """Provide a façade wired to the in-memory relay"""
    return Wokhei("ws://relay.test", policy=policy, client_factory=lambda: relay)
