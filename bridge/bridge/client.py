"""RPC bridge — forwards JSON-RPC 2.0 calls to the backend over raw TCP.

* ``EphemeralBridge`` → one TCP connection per call
* ``SharedBridge``    → one long-lived connection behind a lock
* ``create_bridge``   → build whichever discipline is configured

Requests and responses are newline-delimited JSON.  A response is the
bytes up to and including the first ``\\n`` read after the request was
written; anything after that newline in the same burst is discarded.
**Never** imports from ``front/``.
"""

from __future__ import annotations

import abc
import logging
from typing import Any

import anyio
from anyio.abc import SocketStream
from wire.jsonrpc import RpcRequest, RpcResponse, split_frame

from bridge.errors import (
    BackendClosedError,
    BackendReadError,
    BackendTimeoutError,
    BackendUnavailableError,
    BackendWriteError,
    MalformedResponseError,
)

log = logging.getLogger(__name__)

# Defaults
DEFAULT_READ_TIMEOUT = 5.0  # seconds, per read
DEFAULT_CONNECT_TIMEOUT = 5.0  # seconds
DEFAULT_CHUNK_SIZE = 1024  # bytes per read

CONNECTION_MODES = ("shared", "ephemeral")


class Bridge(abc.ABC):
    """Common interface of both connection disciplines.

    Parameters
    ----------
    host, port
        Backend TCP address.
    read_timeout : float
        Deadline for each individual read while waiting for the newline.
    connect_timeout : float
        Deadline for establishing the TCP connection.
    chunk_size : int
        Max bytes requested per read.
    """

    mode: str

    def __init__(
        self,
        host: str,
        port: int,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.read_timeout = read_timeout
        self.connect_timeout = connect_timeout
        self.chunk_size = chunk_size

    # -- Lifecycle -----------------------------------------------------

    async def connect(self) -> None:
        """Prepare the bridge for use.  No-op unless a connection is kept."""

    async def aclose(self) -> None:
        """Release any connection held by the bridge."""

    async def __aenter__(self) -> "Bridge":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    # -- Unary call ----------------------------------------------------

    @abc.abstractmethod
    async def call(self, method: str, params: list[Any] | None = None) -> RpcResponse:
        """Send one request and return the parsed response.

        Raises a ``BridgeError`` subclass on any I/O, timeout or parse
        failure.
        """

    # -- Internals shared by both disciplines --------------------------

    async def _open(self) -> SocketStream:
        log.debug("connecting to %s:%d", self.host, self.port)
        try:
            with anyio.fail_after(self.connect_timeout):
                return await anyio.connect_tcp(self.host, self.port)
        except TimeoutError as exc:
            raise BackendUnavailableError(
                f"connect to {self.host}:{self.port} timed out after {self.connect_timeout}s"
            ) from exc
        except OSError as exc:
            raise BackendUnavailableError(
                f"cannot connect to {self.host}:{self.port}: {exc}"
            ) from exc

    async def _exchange(self, stream: SocketStream, payload: bytes) -> tuple[bytes, bool]:
        """Write *payload*, then read until newline, EOF or timeout.

        Returns ``(frame, eof)``.
        """
        try:
            await stream.send(payload)
        except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as exc:
            raise BackendWriteError(f"write failed: {exc!r}") from exc

        buffer = bytearray()
        while True:
            try:
                with anyio.fail_after(self.read_timeout):
                    chunk = await stream.receive(self.chunk_size)
            except anyio.EndOfStream:
                frame, _ = split_frame(buffer)
                return frame, True
            except TimeoutError as exc:
                raise BackendTimeoutError(
                    f"no response line within {self.read_timeout}s"
                ) from exc
            except (anyio.BrokenResourceError, anyio.ClosedResourceError, OSError) as exc:
                raise BackendReadError(f"read failed: {exc!r}") from exc

            buffer.extend(chunk)
            frame, complete = split_frame(buffer)
            if complete:
                if len(frame) < len(buffer):
                    log.debug("discarding %d bytes after first line", len(buffer) - len(frame))
                return frame, False

    @staticmethod
    def _decode(frame: bytes) -> RpcResponse:
        if not frame:
            raise BackendClosedError("backend closed the connection without a response")
        try:
            return RpcResponse.decode(frame)
        except ValueError as exc:
            raise MalformedResponseError(f"cannot parse response: {exc}") from exc


class EphemeralBridge(Bridge):
    """Opens a fresh TCP connection for every call.

    Calls are fully independent; nothing is shared between them.
    """

    mode = "ephemeral"

    async def call(self, method: str, params: list[Any] | None = None) -> RpcResponse:
        req = RpcRequest(method=method, params=params or [])
        log.debug("rpc → %s(id=%s)", method, req.id)

        async with await self._open() as stream:
            frame, _ = await self._exchange(stream, req.encode())
        return self._decode(frame)


class SharedBridge(Bridge):
    """One long-lived connection, serialised by an ``anyio.Lock``.

    The lock is held from before the write until the response is
    decoded, so at most one request is ever in flight on the socket.
    That is the only reason the constant request id is safe here.

    Any failure or cancellation mid-call closes the socket; the next
    call reconnects.
    """

    mode = "shared"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._lock = anyio.Lock()
        self._stream: SocketStream | None = None

    @property
    def connected(self) -> bool:
        return self._stream is not None

    # -- Lifecycle -----------------------------------------------------

    async def connect(self) -> None:
        async with self._lock:
            await self._ensure_stream()

    async def aclose(self) -> None:
        async with self._lock:
            await self._drop()

    async def _ensure_stream(self) -> SocketStream:
        if self._stream is None:
            self._stream = await self._open()
            log.info("connected to backend %s:%d", self.host, self.port)
        return self._stream

    async def _drop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is not None:
            with anyio.CancelScope(shield=True):
                await stream.aclose()
            log.debug("closed backend connection")

    # -- Unary call ----------------------------------------------------

    async def call(self, method: str, params: list[Any] | None = None) -> RpcResponse:
        req = RpcRequest(method=method, params=params or [])
        payload = req.encode()

        async with self._lock:
            log.debug("rpc → %s(id=%s)", method, req.id)
            stream = await self._ensure_stream()
            done = False
            try:
                frame, eof = await self._exchange(stream, payload)
                response = self._decode(frame)
                done = not eof
            finally:
                if not done:
                    await self._drop()
        return response


def create_bridge(mode: str, host: str, port: int, **kwargs: Any) -> Bridge:
    """Build the bridge for connection discipline *mode*."""
    if mode == "shared":
        return SharedBridge(host, port, **kwargs)
    if mode == "ephemeral":
        return EphemeralBridge(host, port, **kwargs)
    raise ValueError(f"unknown connection mode {mode!r}, expected one of {CONNECTION_MODES}")
