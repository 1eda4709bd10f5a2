"""API routes package."""

from .deeplink_routes import router as deeplink_router, get_affiliate_client, get_url_normalizer
from .health_routes import router as health_router
from .product_routes import router as product_router, get_orchestrator, get_upstream_limiter

__all__ = [
    "deeplink_router",
    "health_router",
    "product_router",
    "get_affiliate_client",
    "get_url_normalizer",
    "get_orchestrator",
    "get_upstream_limiter",
]
