"""wire — JSON-RPC 2.0 models and newline framing."""

from wire.jsonrpc import (
    LINE_TERMINATOR,
    REQUEST_ID,
    RpcRequest,
    RpcResponse,
    split_frame,
)

__all__ = [
    "RpcRequest",
    "RpcResponse",
    "split_frame",
    "REQUEST_ID",
    "LINE_TERMINATOR",
]
