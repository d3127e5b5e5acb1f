"""HTTP front — Starlette ASGI server.

* ``GET  /``                → static info document
* ``GET  /proxy/health``    → backend liveness probe (``server.version``)
* ``GET|POST /proxy/{method}`` → forward *method* to the backend

The bridge is injected through ``create_app`` and kept on
``app.state.bridge``.
"""

from __future__ import annotations

import contextlib
import json
import logging
from typing import Any, AsyncIterator

from bridge.client import Bridge
from bridge.errors import BridgeError
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route

log = logging.getLogger(__name__)

HEALTH_METHOD = "server.version"

INFO = {
    "success": True,
    "info": {
        "note": "ElectrumX JSON-RPC Proxy Online",
        "usageInfo": {
            "note": (
                "The service offers both POST and GET requests for proxying requests "
                "to ElectrumX. To handle larger broadcast transaction payloads use "
                "the POST method instead of GET."
            ),
            "POST": (
                'POST /proxy/:method with an array (or string encoded array) in the '
                'field "params" in the request body.'
            ),
            "GET": (
                'GET /proxy/:method?params=["value1"] with string encoded array in '
                'the query argument "params" in the URL.'
            ),
        },
        "healthCheck": "GET /proxy/health",
        "license": "MIT",
    },
}

# Bridge failure kind → HTTP status.  Anything unlisted is a bad gateway.
_STATUS_BY_KIND = {
    "timeout": 504,
}


class InvalidParamsError(ValueError):
    """The HTTP request did not carry a usable params list."""

    kind = "invalid_params"


# ── Helpers ──────────────────────────────────────────────────────────


def _error_response(kind: str, msg: str, status: int, data: Any = None) -> JSONResponse:
    """Build a failure envelope."""
    error: dict[str, Any] = {"kind": kind, "message": msg}
    if data is not None:
        error["data"] = data
    return JSONResponse({"success": False, "error": error}, status_code=status)


def _coerce_params(value: Any) -> list[Any]:
    """Accept a list, a string-encoded JSON list, or nothing."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise InvalidParamsError(f"'params' is not valid JSON: {exc}") from exc
    if not isinstance(value, list):
        raise InvalidParamsError("'params' must be a JSON array")
    return value


async def _read_params(request: Request) -> list[Any]:
    if request.method == "GET":
        return _coerce_params(request.query_params.get("params"))

    body = await request.body()
    if not body.strip():
        return []
    try:
        raw = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidParamsError(f"request body is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidParamsError("request body must be a JSON object")
    return _coerce_params(raw.get("params"))


# ── Endpoints ────────────────────────────────────────────────────────


async def root(request: Request) -> JSONResponse:
    return JSONResponse(INFO)


async def health(request: Request) -> PlainTextResponse:
    """200 if the backend answers ``server.version``, 503 otherwise."""
    bridge: Bridge = request.app.state.bridge
    try:
        await bridge.call(HEALTH_METHOD, [])
    except BridgeError as exc:
        log.warning("health check failed: %s (%s)", exc.kind, exc)
        return PlainTextResponse("ElectrumX backend is unreachable", status_code=503)
    except Exception:
        log.exception("health check raised unexpectedly")
        return PlainTextResponse("ElectrumX backend is unreachable", status_code=503)
    return PlainTextResponse("ElectrumX backend is healthy")


async def proxy(request: Request) -> JSONResponse:
    """Forward ``/proxy/{method}`` to the backend and wrap the result."""
    method = request.path_params["method"]
    bridge: Bridge = request.app.state.bridge

    try:
        params = await _read_params(request)
    except InvalidParamsError as exc:
        return _error_response(exc.kind, str(exc), 400)

    log.info("proxy ← %s(%d params)", method, len(params))

    try:
        response = await bridge.call(method, params)
    except BridgeError as exc:
        log.warning("proxy %s failed: %s (%s)", method, exc.kind, exc)
        return _error_response(exc.kind, exc.message, _STATUS_BY_KIND.get(exc.kind, 502))
    except Exception as exc:
        log.exception("unexpected error proxying %s", method)
        return _error_response("internal_error", f"Internal error: {exc}", 500)

    if not response.ok:
        return _error_response("rpc_error", "backend returned an error", 502, data=response.error)
    return JSONResponse({"success": True, "response": response.result})


# ── App factory ──────────────────────────────────────────────────────


def create_app(bridge: Bridge) -> Starlette:
    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            await bridge.connect()
        except BridgeError as exc:
            log.warning("backend not reachable at startup, will retry on first call: %s", exc)
        try:
            yield
        finally:
            await bridge.aclose()

    app = Starlette(
        debug=False,
        routes=[
            Route("/", root, methods=["GET"]),
            Route("/proxy/health", health, methods=["GET"]),
            Route("/proxy/{method}", proxy, methods=["GET", "POST"]),
        ],
        lifespan=lifespan,
    )
    app.state.bridge = bridge
    return app
