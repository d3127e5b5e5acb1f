"""Failures raised by the RPC bridge.

Each class carries a ``kind`` string the HTTP layer puts into its
error envelope.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for every backend call failure."""

    kind = "bridge_error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BackendUnavailableError(BridgeError):
    """The TCP connection could not be established."""

    kind = "connect_failed"


class BackendWriteError(BridgeError):
    kind = "write_failed"


class BackendReadError(BridgeError):
    kind = "read_failed"


class BackendTimeoutError(BridgeError):
    """No complete line arrived within the read timeout."""

    kind = "timeout"


class BackendClosedError(BridgeError):
    """The backend closed the connection before sending anything."""

    kind = "closed"


class MalformedResponseError(BridgeError):
    kind = "malformed_response"
