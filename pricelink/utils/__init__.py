"""Utilities package"""

from .prices import MAX_PRICE, normalize_price
from .url_utils import (
    NormalizedUrl,
    TRACKING_PARAMS,
    UrlNormalizer,
    clean_product_url,
    extract_product_id,
    is_short_link,
)

__all__ = [
    "MAX_PRICE",
    "normalize_price",
    "NormalizedUrl",
    "TRACKING_PARAMS",
    "UrlNormalizer",
    "clean_product_url",
    "extract_product_id",
    "is_short_link",
]
