"""요청/응답 스키마"""

from .product_schema import (
    DeeplinkRequest,
    DeeplinkResponse,
    HealthResponse,
    PingResponse,
    ProductInfoRequest,
    ProductInfoResponse,
)

__all__ = [
    "DeeplinkRequest",
    "DeeplinkResponse",
    "HealthResponse",
    "PingResponse",
    "ProductInfoRequest",
    "ProductInfoResponse",
]
