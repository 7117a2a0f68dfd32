"""
Pytest configuration and shared fixtures for negotiation client tests.

WHAT: Centralized test configuration with markers and test doubles
WHY: Enable test organization, filtering, and shared test utilities
HOW: Define pytest markers and fixtures around the in-memory doubles
"""

import pytest

from tests.fixtures.mock_channel import MockOfferChannel, MockInitiator


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (isolated component tests)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (multiple components)"
    )


@pytest.fixture
def channels():
    """
    Every channel the orchestrator creates, in creation order.
    
    WHAT: Recording channel factory
    WHY: Tests inspect the channel of a superseded negotiation too
    HOW: The factory appends each new MockOfferChannel to this list
    """
    return []


@pytest.fixture
def channel_factory(channels):
    def factory():
        channel = MockOfferChannel()
        channels.append(channel)
        return channel
    return factory


@pytest.fixture
def initiator():
    """Scripted initiator with no results queued."""
    return MockInitiator()

