"""Pytest configuration and shared fixtures."""

import pytest
from rest_framework.test import APIClient

from bookings.domain import FitnessClass
from bookings.services import BookingService
from fakes import NOW, InMemoryBookingStore, InMemoryClassStore, InMemoryMemberStore, make_class


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def class_store() -> InMemoryClassStore:
    return InMemoryClassStore()


@pytest.fixture
def member_store() -> InMemoryMemberStore:
    return InMemoryMemberStore()


@pytest.fixture
def booking_store(member_store, clock) -> InMemoryBookingStore:
    return InMemoryBookingStore(member_store, clock)


@pytest.fixture
def service(class_store, member_store, booking_store, clock) -> BookingService:
    return BookingService(class_store, member_store, booking_store, clock=clock)


@pytest.fixture
def yoga(class_store) -> FitnessClass:
    """Active class from 2030-01-01 to 2030-03-31 with two seats."""
    return class_store.add(make_class())
