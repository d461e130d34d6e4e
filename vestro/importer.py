"""The import job: pulls each producer's Vestro data and hands it to Agriwin."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from vestro.dto import IntegrationPayload, UserToIntegrate
from vestro.ports import Notifier, UserProvider, VestroAPIClient

logger = logging.getLogger(__name__)

_SEPARATOR = "-" * 18


class ImportError_(Exception):
    """Raised when the import job or one of its fetches fails."""


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None or value.utcoffset() is None:
        return value.astimezone()
    return value


class ImporterService:
    """Runs the import for every producer the user provider lists."""

    def __init__(
        self,
        api_client: VestroAPIClient,
        notifier: Notifier,
        user_provider: UserProvider,
        fetch_since: timedelta,
    ) -> None:
        self.api_client = api_client
        self.notifier = notifier
        self.user_provider = user_provider
        self.fetch_since = fetch_since

    def run_import(self) -> None:
        """Process every producer; failures for one producer are logged and skipped."""
        logger.info("Starting Vestro data import job...")

        logger.info("Fetching users to integrate from Agriwin...")
        try:
            users = self.user_provider.get_users_to_integrate()
        except Exception as exc:
            raise ImportError_(f"could not get users to integrate: {exc}") from exc

        if not users:
            logger.info("No users to integrate. Job finished.")
            return
        logger.info("Found %d users to process.", len(users))

        for user in users:
            self._process_user(user)

        logger.info("%s Job finished successfully %s", _SEPARATOR, _SEPARATOR)

    def _process_user(self, user: UserToIntegrate) -> None:
        producer = user.produtor_id
        logger.info("%s Processing Producer ID: %d %s", _SEPARATOR, producer, _SEPARATOR)

        logger.info("Authenticating user '%s' with Vestro API...", user.login)
        try:
            token = self.api_client.authenticate(user.login, user.senha)
        except Exception as exc:
            logger.error(
                "ERROR: Vestro authentication failed for user '%s': %s. Skipping.",
                user.login,
                exc,
            )
            return
        logger.info("Authentication successful for this user.")

        now = datetime.now(timezone.utc)
        last_sync = _aware(user.data)
        # Never reach further back than the configured window.
        if now - last_sync > self.fetch_since:
            last_sync = now - self.fetch_since

        logger.info("Fetching data since %s", last_sync)
        try:
            payload = self.fetch_all_data_for_user(token, user, last_sync)
        except Exception as exc:
            logger.error(
                "ERROR: Failed to fetch data for producer %d: %s. Skipping.", producer, exc
            )
            return

        if payload.is_empty():
            logger.info("No new transactional data found for producer %d.", producer)
            return

        logger.info("Sending payload for producer %d to Agriwin...", producer)
        try:
            self.notifier.send(payload)
        except Exception as exc:
            logger.error(
                "ERROR: Failed to send data for producer %d: %s. Skipping.", producer, exc
            )
            return
        logger.info("Successfully processed producer %d.", producer)

    def fetch_all_data_for_user(
        self, token: str, user: UserToIntegrate, since: datetime
    ) -> IntegrationPayload:
        """Fetch transactional and master data for ``user`` concurrently.

        Raises ImportError_ naming the first fetch that failed.
        """
        client = self.api_client
        identifier = user.login
        fetches: dict[str, Callable[[], list[Any]]] = {
            "supplies": lambda: client.get_supplies(token, since, identifier),
            "product_sales": lambda: client.get_product_sales(token, since, identifier),
            "products": lambda: client.get_products(token),
            "fuel_types": lambda: client.get_fuel_types(token),
            "vehicles": lambda: client.get_vehicles(token),
            "drivers": lambda: client.get_drivers(token),
            "employees": lambda: client.get_employees(token),
        }
        labels = {
            "supplies": "supplies",
            "product_sales": "productSales",
            "products": "products",
            "fuel_types": "fuelTypes",
            "vehicles": "vehicles",
            "drivers": "drivers",
            "employees": "employees",
        }

        payload = IntegrationPayload(
            produtor_id=user.produtor_id,
            fetched_at=datetime.now().astimezone(),
        )

        def run(label: str, fetch: Callable[[], list[Any]]) -> list[Any]:
            logger.info("Fetching %s...", label)
            result = fetch()
            logger.info("Successfully fetched %s.", label)
            return result

        with ThreadPoolExecutor(max_workers=len(fetches)) as pool:
            futures: dict[str, Future[list[Any]]] = {
                attr: pool.submit(run, labels[attr], fetch) for attr, fetch in fetches.items()
            }

        for attr, future in futures.items():
            exc = future.exception()
            if exc is not None:
                raise ImportError_(f"failed to fetch {labels[attr]}: {exc}") from exc
            setattr(payload, attr, future.result())
        return payload