"""Error types raised by the aggregation engine and its upstream client.

Each error carries the HTTP status the API boundary answers with, so route
handlers never translate exceptions themselves; ``main`` registers a single
handler for the whole family.
"""

from __future__ import annotations

from typing import Any


class ReelfinderError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(ReelfinderError):
    """The upstream access credential is not configured."""

    status_code = 500


class InvalidInputError(ReelfinderError):
    """A required query parameter is missing or malformed."""

    status_code = 400


class NotFoundResult(ReelfinderError):
    """A valid request produced no candidate (e.g. an empty random pick)."""

    status_code = 404


class UpstreamError(ReelfinderError):
    """The metadata provider answered with a non-success status.

    :param status: HTTP status returned by the provider (502 for transport
        failures where no response was received).
    :param body: Decoded JSON body, or the raw text when it was not JSON.
    """

    def __init__(self, status: int, body: Any, message: str | None = None) -> None:
        super().__init__(message or f"TMDb error: {status}")
        self.status = status
        self.body = body

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.status
