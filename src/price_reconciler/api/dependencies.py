"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from price_reconciler.config import configure_logging, settings
from price_reconciler.errors import ProviderFailure
from price_reconciler.handlers import PriceHandler
from price_reconciler.repositories import HttpDataProvider
from price_reconciler.services import FuzzyRanker, PriceService

logger = logging.getLogger(__name__)


def get_price_service(request: Request) -> PriceService:
    """Dependency injection for PriceService from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The PriceService instance from app.state

    Raises:
        RuntimeError: If service is not initialized
    """
    service = getattr(request.app.state, "price_service", None)
    if service is None:
        raise RuntimeError("PriceService not initialized. Check lifespan setup.")
    return service


def get_handler(request: Request) -> PriceHandler:
    """Dependency injection for PriceHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The PriceHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "price_handler", None)
    if handler is None:
        raise RuntimeError("PriceHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Provider (data access) - one shared httpx client
    2. Service (business logic) - stored in app.state.price_service
    3. Handler (HTTP endpoints) - stored in app.state.price_handler

    Also pre-warms the vendor list and runs the periodic cache sweep.

    Args:
        app: The FastAPI application instance

    Yields:
        None

    Cleanup:
        Stops the sweep, closes the HTTP client and removes all services
        from app.state on shutdown
    """
    configure_logging()

    provider = HttpDataProvider.create()
    price_service = PriceService.create(provider=provider)
    ranker = FuzzyRanker.create(
        cache_size=settings.search_cache_size,
        cache_ttl=settings.search_cache_ttl,
        max_results=settings.max_search_results,
        high_savings_threshold=settings.high_savings_threshold,
    )
    price_handler = PriceHandler(price_service=price_service, ranker=ranker)

    # Store in app.state (FastAPI pattern)
    app.state.provider = provider
    app.state.price_service = price_service
    app.state.ranker = ranker
    app.state.price_handler = price_handler

    logger.info("Price service initialized, comparison API at %s", settings.api_base_url)

    if settings.warm_cache_on_startup:
        try:
            vendors = await price_service.vendor_list()
            logger.info("Cache pre-warmed with %d vendors", len(vendors))
        except ProviderFailure as e:
            logger.warning("Cache pre-warm failed: %s", e)

    cleanup_task = asyncio.create_task(
        price_service.run_cleanup_loop(settings.cache_cleanup_interval, extra_caches=(ranker.cache,))
    )

    yield

    cleanup_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await cleanup_task
    await provider.close()

    # Cleanup - remove from app.state
    del app.state.price_handler
    del app.state.ranker
    del app.state.price_service
    del app.state.provider
    logger.info("Price service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[PriceHandler, Depends(get_handler)]
ServiceDep = Annotated[PriceService, Depends(get_price_service)]
