"""
Pytest configuration and fixtures for shopping cart tests.
"""

import uuid
from decimal import Decimal

import pytest

from shopping_cart.application.cart_service import CartService
from shopping_cart.config import Settings
from shopping_cart.domain.aggregates import ShoppingCart
from shopping_cart.infrastructure.cart_repository import CartRepository
from shopping_cart.infrastructure.event_store import (
    EventStore,
    InMemoryEventStorage,
    InMemoryEventStream,
)


@pytest.fixture
def cart_id():
    """Fixed cart id for tests that build events by hand."""
    return uuid.UUID("5f0c6c64-3a4e-4b8f-9d55-0c1b2a3d4e5f")


@pytest.fixture
def cart(cart_id):
    """Fresh, empty cart with default limits and the parity stock rule."""
    return ShoppingCart.create(cart_id)


@pytest.fixture
def filled_cart(cart):
    """Cart with two lines: 2 x 99.99 (odd product) and 3 x 10.00 (even product)."""
    cart.add_item(101, 2, Decimal("99.99"))
    cart.add_item(102, 3, Decimal("10.00"))
    return cart


@pytest.fixture
def event_stream():
    return InMemoryEventStream()


@pytest.fixture
def event_store(event_stream):
    """Create event store for testing."""
    return EventStore(InMemoryEventStorage(), event_stream)


@pytest.fixture
def repository(event_store):
    return CartRepository(event_store)


@pytest.fixture
def settings():
    """Settings with defaults only (no environment, no .env file)."""
    return Settings(_env_file=None)


@pytest.fixture
def service(repository, settings):
    return CartService(repository, settings)
