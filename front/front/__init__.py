"""front — Starlette HTTP surface of the proxy."""
