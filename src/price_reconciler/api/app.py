from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from price_reconciler.api.dependencies import HandlerDep, lifespan
from price_reconciler.config import settings
from price_reconciler.dto import (
    ClearCacheResponse,
    FetchPricesRequest,
    FetchPricesResponse,
    HealthCheckResponse,
    MetricsResponse,
    SearchRequest,
    SearchResponse,
    VendorListResponse,
)

app = FastAPI(
    title="Price Reconciler API",
    description="Cross-platform food price comparison with cached lookups and fuzzy search",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Price Reconciler API",
        "version": "0.1.0",
        "description": "Cross-platform food price comparison with cached lookups and fuzzy search",
        "endpoints": {
            "prices": "/prices",
            "vendors": "/vendors",
            "search": "/search",
            "metrics": "/metrics",
            "cache": "/cache",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(handler: HandlerDep) -> HealthCheckResponse:
    """Health check endpoint."""
    return await handler.health_check()


@app.post("/prices", response_model=FetchPricesResponse)
async def fetch_prices(request: FetchPricesRequest, handler: HandlerDep) -> FetchPricesResponse:
    """
    Fetch both menus of a vendor and compare prices.

    Args:
        request: Source platform and the vendor code on it.

    Returns:
        Comparisons keyed by base product id.
    """
    return await handler.fetch_prices(request)


@app.get("/vendors", response_model=VendorListResponse)
async def list_vendors(handler: HandlerDep) -> VendorListResponse:
    """List every mapped vendor with aggregate stats."""
    return await handler.list_vendors()


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest, handler: HandlerDep) -> SearchResponse:
    """
    Ranked search over a vendor's comparisons, or over the vendor list.

    Args:
        request: Query, filters and sort order.

    Returns:
        Ranked results.
    """
    return await handler.search(request)


@app.get("/metrics", response_model=MetricsResponse)
async def get_metrics(handler: HandlerDep) -> MetricsResponse:
    """Provider call metrics and cache statistics."""
    return await handler.get_metrics()


@app.delete("/cache", response_model=ClearCacheResponse)
async def clear_cache(handler: HandlerDep) -> ClearCacheResponse:
    """Clear all cached lookups and search results."""
    return await handler.clear_cache()


def main() -> None:
    import uvicorn

    uvicorn.run(
        "price_reconciler.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )


if __name__ == "__main__":
    main()
