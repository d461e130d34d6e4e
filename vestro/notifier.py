"""Delivers collected data to the Agriwin (Grails) application."""

from __future__ import annotations

import json

import requests

from vestro.dto import IntegrationPayload
from vestro.ports import IntegrationError

REQUEST_TIMEOUT = 45.0

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


class NotifyError(IntegrationError):
    """Raised when the payload cannot be delivered."""


def _marshal(payload: IntegrationPayload) -> bytes:
    text = json.dumps(payload.to_json(), ensure_ascii=False, separators=(",", ":"))
    # The characters escaped here only ever occur inside JSON strings.
    for char, escape in _ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


class GrailsNotifier:
    """Posts integration payloads as JSON to a fixed URL."""

    def __init__(self, grails_url: str, session: requests.Session | None = None) -> None:
        self.grails_url = grails_url
        self.session = session if session is not None else requests.Session()

    def send(self, payload: IntegrationPayload) -> None:
        """POST ``payload``; raise NotifyError unless the reply is 2xx."""
        try:
            body = _marshal(payload)
        except (TypeError, ValueError) as exc:
            raise NotifyError(f"failed to marshal payload for grails: {exc}") from exc

        try:
            response = self.session.post(
                self.grails_url,
                data=body,
                headers={"Content-Type": "application/json"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise NotifyError(f"failed to send data to grails: {exc}") from exc

        with response:
            if not 200 <= response.status_code < 300:
                status = f"{response.status_code} {response.reason or ''}".strip()
                raise NotifyError(
                    f"grails application responded with non-success status: {status}"
                )