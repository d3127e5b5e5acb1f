"""JSON-RPC 2.0 wire-format models and line framing.

Pure data — no I/O.  The bridge uses these to talk to the backend,
one JSON document per line, each terminated by ``\\n``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

# Every request carries the same id.  Safe only while at most one
# request is on the wire per connection.
REQUEST_ID = 1

LINE_TERMINATOR = b"\n"


# ── Models ───────────────────────────────────────────────────────────
@dataclass(slots=True)
class RpcRequest:
    """Outbound JSON-RPC 2.0 request."""

    method: str
    params: list[Any] = field(default_factory=list)
    id: int = REQUEST_ID
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "params": self.params,
            "id": self.id,
        }

    def encode(self) -> bytes:
        """Compact JSON followed by a single newline."""
        body = json.dumps(self.to_dict(), separators=(",", ":"))
        return body.encode("utf-8") + LINE_TERMINATOR


@dataclass(slots=True)
class RpcResponse:
    """Inbound JSON-RPC 2.0 response.

    ``result`` and ``error`` are expected to be mutually exclusive, but
    that is not enforced.
    """

    id: Any
    result: Any = None
    error: Any = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_dict(cls, raw: Any) -> "RpcResponse":
        """Parse a raw dict into a response — raises ``ValueError`` on bad input."""
        if not isinstance(raw, dict):
            raise ValueError("response must be a JSON object")
        if "id" not in raw:
            raise ValueError("missing 'id' field")
        return cls(id=raw["id"], result=raw.get("result"), error=raw.get("error"))

    @classmethod
    def decode(cls, data: bytes) -> "RpcResponse":
        """Decode one framed line.  Invalid UTF-8 is replaced, not rejected."""
        text = data.decode("utf-8", errors="replace")
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        return cls.from_dict(raw)


# ── Framing ──────────────────────────────────────────────────────────
def split_frame(buffer: bytes | bytearray) -> tuple[bytes, bool]:
    """Cut *buffer* right after its first newline.

    Returns ``(frame, complete)``.  Anything past the first newline is
    dropped.  Without a newline the buffer comes back whole and
    ``complete`` is False.
    """
    index = buffer.find(LINE_TERMINATOR)
    if index == -1:
        return bytes(buffer), False
    return bytes(buffer[: index + 1]), True
