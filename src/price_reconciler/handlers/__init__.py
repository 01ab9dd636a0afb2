"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)
"""

from .price_handler import PriceHandler, failure_to_http

__all__ = [
    "PriceHandler",
    "failure_to_http",
]
