"""API 엔드포인트 패키지 - export only."""

from .routes import (
    deeplink_router,
    get_affiliate_client,
    get_orchestrator,
    get_upstream_limiter,
    get_url_normalizer,
    health_router,
    product_router,
)

__all__ = [
    "deeplink_router",
    "health_router",
    "product_router",
    "get_affiliate_client",
    "get_orchestrator",
    "get_upstream_limiter",
    "get_url_normalizer",
]
