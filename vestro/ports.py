"""Interfaces the import service depends on."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from vestro.dto import (
    Driver,
    Employee,
    FuelType,
    IntegrationPayload,
    Product,
    ProductSale,
    Supply,
    UserToIntegrate,
)


class IntegrationError(Exception):
    """Base error raised by the adapters the import service talks to."""


@runtime_checkable
class UserProvider(Protocol):
    """Source of the producers to process."""

    def get_users_to_integrate(self) -> list[UserToIntegrate]:
        """Return the producers whose data should be imported."""
        raise NotImplementedError


@runtime_checkable
class VestroAPIClient(Protocol):
    """Access to the Vestro API."""

    def authenticate(self, login: str, password: str) -> str:
        """Log in and return the bearer token."""
        raise NotImplementedError

    def get_supplies(self, token: str, since: datetime, user_identifier: str) -> list[Supply]:
        """Return fuel supplies since ``since`` for the given user."""
        raise NotImplementedError

    def get_product_sales(
        self, token: str, since: datetime, user_identifier: str
    ) -> list[ProductSale]:
        """Return product sales since ``since`` for the given user."""
        raise NotImplementedError

    def get_products(self, token: str) -> list[Product]:
        """Return all products."""
        raise NotImplementedError

    def get_fuel_types(self, token: str) -> list[FuelType]:
        """Return all fuel types."""
        raise NotImplementedError

    def get_vehicles(self, token: str) -> list[Vehicle]:
        """Return all vehicles."""
        raise NotImplementedError

    def get_drivers(self, token: str) -> list[Driver]:
        """Return all drivers."""
        raise NotImplementedError

    def get_employees(self, token: str) -> list[Employee]:
        """Return all employees."""
        raise NotImplementedError


@runtime_checkable
class Notifier(Protocol):
    """Destination of the collected data."""

    def send(self, payload: IntegrationPayload) -> None:
        """Deliver one producer's payload."""
        raise NotImplementedError


from vestro.dto import Vehicle  # noqa: E402  (kept beside its only use in annotations)