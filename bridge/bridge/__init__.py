"""bridge — JSON-RPC over newline-delimited TCP to the backend."""

from bridge.client import (
    CONNECTION_MODES,
    Bridge,
    EphemeralBridge,
    SharedBridge,
    create_bridge,
)
from bridge.errors import (
    BackendClosedError,
    BackendReadError,
    BackendTimeoutError,
    BackendUnavailableError,
    BackendWriteError,
    BridgeError,
    MalformedResponseError,
)

__all__ = [
    "Bridge",
    "EphemeralBridge",
    "SharedBridge",
    "create_bridge",
    "CONNECTION_MODES",
    "BridgeError",
    "BackendUnavailableError",
    "BackendWriteError",
    "BackendReadError",
    "BackendTimeoutError",
    "BackendClosedError",
    "MalformedResponseError",
]
