"""Fetches the producers to integrate from the Agriwin application."""

from __future__ import annotations

import requests

from vestro.dto import UserToIntegrate, from_json
from vestro.ports import IntegrationError

REQUEST_TIMEOUT = 30.0


class UserProviderError(IntegrationError):
    """Raised when the list of users cannot be obtained."""


class AgriwinUserProvider:
    """Reads the users to integrate from a JSON endpoint."""

    def __init__(self, users_url: str, session: requests.Session | None = None) -> None:
        self.users_url = users_url
        self.session = session if session is not None else requests.Session()

    def get_users_to_integrate(self) -> list[UserToIntegrate]:
        """Return the producers listed by the endpoint."""
        try:
            response = self.session.get(self.users_url, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise UserProviderError(f"failed to get users from agriwin: {exc}") from exc

        with response:
            if response.status_code != 200:
                status = f"{response.status_code} {response.reason or ''}".strip()
                raise UserProviderError(
                    f"agriwin users endpoint responded with status: {status}"
                )
            try:
                data = response.json()
                if data is None:
                    return []
                if not isinstance(data, list):
                    raise ValueError(f"expected a JSON array, got {type(data).__name__}")
                return [from_json(UserToIntegrate, item) for item in data]
            except ValueError as exc:
                raise UserProviderError(
                    f"failed to decode agriwin users response: {exc}"
                ) from exc