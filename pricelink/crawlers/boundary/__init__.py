"""페이지 경계 로직 (검증, 파싱) - 네트워크와 분리된 순수 함수."""

from .page_validation import (
    extract_title_tag,
    find_invalid_reason,
    has_product_fingerprint,
    is_block_title,
)
from .product_parsing import (
    DEFAULT_CURRENCY,
    SOURCE_TRUST_ORDER,
    ParsedInfo,
    PriceCandidate,
    PriceSource,
    parse_product_info,
    scan_fallback_candidates,
)

__all__ = [
    "extract_title_tag",
    "find_invalid_reason",
    "has_product_fingerprint",
    "is_block_title",
    "DEFAULT_CURRENCY",
    "SOURCE_TRUST_ORDER",
    "ParsedInfo",
    "PriceCandidate",
    "PriceSource",
    "parse_product_info",
    "scan_fallback_candidates",
]
