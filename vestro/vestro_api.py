"""Client for the Vestro HTTP API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, TypeVar
from urllib.parse import urlencode

import requests

from vestro.dto import (
    ZERO_TIME,
    AuthResponse,
    Driver,
    Employee,
    FuelType,
    Product,
    ProductSale,
    Supply,
    Vehicle,
    from_json,
)
from vestro.ports import IntegrationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

PAGE_LIMIT = 100
REQUEST_TIMEOUT = 45.0
START_DATE_FORMAT = "%Y-%m-%dT%H-%M-%SZ"


class VestroApiError(IntegrationError):
    """Raised when a call to the Vestro API fails."""


def format_start_date(since: datetime) -> str:
    """Format ``since`` in UTC the way the API's ``startDate`` filter expects.

    A naive datetime is taken to be in local time.
    """
    return since.astimezone(timezone.utc).strftime(START_DATE_FORMAT)


def _status(response: requests.Response) -> str:
    return f"{response.status_code} {response.reason or ''}".strip()


def _read_wrapper(response: requests.Response) -> tuple[bool, Any]:
    """Return ``(success, data)`` from a standard API reply, or raise ValueError."""
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError(f"expected a JSON object, got {type(body).__name__}")
    success = body.get("success")
    if success is None:
        success = False
    if not isinstance(success, bool):
        raise ValueError("field 'success' is not a boolean")
    return success, body.get("data")


def _is_zero(since: datetime | None) -> bool:
    return since is None or since == ZERO_TIME


def fetch_and_aggregate(
    session: requests.Session,
    base_url: str,
    token: str,
    path: str,
    kind: type[T],
    since: datetime | None = None,
    filter_property: str = "",
    filter_value: str = "",
) -> list[T]:
    """Fetch every page of ``path`` and return the records decoded as ``kind``.

    Records that cannot be decoded are logged and skipped.
    """
    results: list[T] = []
    start = 0
    while True:
        params = {
            "start": str(start),
            "limit": str(PAGE_LIMIT),
            "sort": "true",
        }
        if not _is_zero(since):
            params["startDate"] = format_start_date(since)
        if filter_property and filter_value:
            params["property"] = filter_property
            params["search"] = filter_value
        url = f"{base_url}{path}?{urlencode(sorted(params.items()))}"

        try:
            response = session.get(
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise VestroApiError(f"request to {path} failed: {exc}") from exc

        with response:
            if response.status_code != 200:
                raise VestroApiError(
                    f"request to {path} got status {_status(response)}, body: {response.text}"
                )
            try:
                success, data = _read_wrapper(response)
                if data is None:
                    data = []
                if not isinstance(data, list):
                    raise ValueError("field 'data' is not an array")
            except ValueError as exc:
                raise VestroApiError(f"failed to decode wrapper for {path}: {exc}") from exc

        if not success:
            raise VestroApiError(f"api call to {path} was not successful")

        for raw in data:
            try:
                results.append(from_json(kind, raw))
            except ValueError as exc:
                logger.warning("Warning: failed to unmarshal item from %s: %s", path, exc)

        logger.info(
            "Fetched %d records from %s (total so far: %d)", len(data), path, len(results)
        )

        if len(data) < PAGE_LIMIT:
            return results
        start += PAGE_LIMIT


class ApiClient:
    """Vestro API client built on a ``requests`` session."""

    def __init__(self, base_url: str, session: requests.Session | None = None) -> None:
        self.base_url = base_url
        self.session = session if session is not None else requests.Session()

    def authenticate(self, login: str, password: str) -> str:
        """Log in with the given credentials and return the bearer token."""
        try:
            response = self.session.post(
                f"{self.base_url}/sessions",
                data=urlencode(sorted({"login": login, "password": password}.items())),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise VestroApiError(f"failed to execute auth request: {exc}") from exc

        with response:
            if response.status_code != 200:
                raise VestroApiError(f"auth request failed with status: {_status(response)}")
            try:
                success, data = _read_wrapper(response)
                auth = AuthResponse() if data is None else from_json(AuthResponse, data)
            except ValueError as exc:
                raise VestroApiError(f"failed to decode auth response: {exc}") from exc

        if not success:
            raise VestroApiError("authentication failed on API")
        return auth.access

    def _fetch(
        self,
        token: str,
        path: str,
        kind: type[T],
        since: datetime | None = None,
        filter_property: str = "",
        filter_value: str = "",
    ) -> list[T]:
        return fetch_and_aggregate(
            self.session, self.base_url, token, path, kind, since, filter_property, filter_value
        )

    def get_supplies(self, token: str, since: datetime, user_identifier: str) -> list[Supply]:
        """Return fuel supplies since ``since`` filtered by driver."""
        return self._fetch(token, "/supplies", Supply, since, "driver", user_identifier)

    def get_product_sales(
        self, token: str, since: datetime, user_identifier: str
    ) -> list[ProductSale]:
        """Return product sales since ``since`` filtered by driver."""
        return self._fetch(token, "/product/sales", ProductSale, since, "driver", user_identifier)

    def get_products(self, token: str) -> list[Product]:
        """Return all products."""
        return self._fetch(token, "/products", Product)

    def get_fuel_types(self, token: str) -> list[FuelType]:
        """Return all fuel types."""
        return self._fetch(token, "/fuel/types", FuelType)

    def get_vehicles(self, token: str) -> list[Vehicle]:
        """Return all vehicles."""
        return self._fetch(token, "/vehicles", Vehicle)

    def get_drivers(self, token: str) -> list[Driver]:
        """Return all drivers."""
        return self._fetch(token, "/drivers", Driver)

    def get_employees(self, token: str) -> list[Employee]:
        """Return all employees."""
        return self._fetch(token, "/employees", Employee)