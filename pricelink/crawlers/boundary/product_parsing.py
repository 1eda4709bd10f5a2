"""쿠팡 상품 페이지 파싱 - 상품명 / 가격 후보 추출.

이 모듈은 네트워크(fetch)와 분리된 순수 파싱 로직을 담습니다.

쿠팡 마크업은 배포마다 JSON-LD, 프레임워크 상태 블롭(__NUXT__ / __NEXT_DATA__),
메타 태그, DOM 마커 사이를 오가므로 하나의 정답 파서 대신 독립적인 추출기 여러 개를
돌리고 결과를 합칩니다.

- 상품명: JSON-LD → 임베디드 상태 → 메타 → <title> 순서로 처음 찾은 값
- 가격: 모든 소스의 후보를 합집합으로 모은 뒤 선택 단계에서 최솟값 사용
"""

from __future__ import annotations

import html as html_lib
import json
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Iterator, List, Optional, Set

from selectolax.parser import HTMLParser

from pricelink.core.config import settings
from pricelink.core.logging import logger
from pricelink.utils.prices import normalize_price

from .page_validation import extract_title_tag, is_block_title


DEFAULT_CURRENCY = "KRW"


class PriceSource(str, Enum):
    """가격 후보의 출처 (신뢰도 높은 순)"""

    JSON_LD = "json-ld"
    EMBEDDED_STATE = "embedded-state"
    META = "meta"
    RAW_TEXT = "raw-text"


SOURCE_TRUST_ORDER = (
    PriceSource.JSON_LD,
    PriceSource.EMBEDDED_STATE,
    PriceSource.META,
    PriceSource.RAW_TEXT,
)


@dataclass(frozen=True)
class PriceCandidate:
    value: int
    source: PriceSource


@dataclass(frozen=True)
class ParsedInfo:
    """페이지 하나에서 뽑아낸 결과 (생성 후 불변)

    Attributes:
        title: 상품명
        candidates: 가격 후보 집합
        currency: 통화 (JSON-LD offer에 명시된 경우만 덮어씀)
        provider: 상품명을 제공한 소스 태그 (디버깅용)
    """

    title: Optional[str] = None
    candidates: frozenset = field(default_factory=frozenset)
    currency: str = DEFAULT_CURRENCY
    provider: str = "none"

    @property
    def prices(self) -> List[int]:
        return sorted({c.value for c in self.candidates})

    @property
    def lowest_price(self) -> Optional[int]:
        prices = self.prices
        return prices[0] if prices else None

    @property
    def has_price(self) -> bool:
        return bool(self.candidates)

    def with_candidates(self, extra: Iterable[PriceCandidate]) -> "ParsedInfo":
        """후보를 합친 새 ParsedInfo (원본은 그대로)"""
        return replace(self, candidates=self.candidates | frozenset(extra))


# ---------------------------------------------------------------------------
# 패턴
# ---------------------------------------------------------------------------

# 프레임워크 상태 블롭에서 가격을 담는 키
STATE_PRICE_KEYS = (
    "couponPrice",
    "finalPrice",
    "discountedPrice",
    "salePrice",
    "lowPrice",
    "price",
    "totalPrice",
    "optionPrice",
    "dealPrice",
    "memberPrice",
    "cardPrice",
    "instantDiscountPrice",
)
STATE_TITLE_KEYS = ("productName", "name")

_STATE_PRICE_PATTERN = re.compile(
    r'"(' + "|".join(STATE_PRICE_KEYS) + r')"\s*:\s*"?([\d,.]+)"?'
)
_STATE_TITLE_PATTERNS = tuple(
    re.compile(r'"' + key + r'"\s*:\s*"((?:[^"\\]|\\.)+)"') for key in STATE_TITLE_KEYS
)

_NUXT_ASSIGNMENT = re.compile(r"window\.__NUXT__\s*=\s*")
_NUXT_RAW_BLOB = re.compile(r"window\.__NUXT__\s*=\s*(\{[\s\S]*?\});")

# 숫자와 '원' 사이에 태그가 끼는 경우(<span class="unit">원</span>)까지 허용, 탐색 범위는 제한
_WON_SUFFIX = r"\s*(?:<[^>]*>\s*)*원"
RAW_TEXT_PATTERNS = (
    re.compile(r'class="total-price[^"]*"[^>]*>[\s\S]{0,300}?([\d,.]+)' + _WON_SUFFIX, re.IGNORECASE),
    re.compile(r'class="prod-price[^"]*"[^>]*>[\s\S]{0,300}?([\d,.]+)' + _WON_SUFFIX, re.IGNORECASE),
    re.compile(r'aria-label="가격\s*([\d,.]+)\s*원"', re.IGNORECASE),
    re.compile(r'data-price="([\d,.]+)"', re.IGNORECASE),
    re.compile(r'data-rt-price="([\d,.]+)"', re.IGNORECASE),
)

_META_AMOUNT_PATTERNS = (
    re.compile(r'<meta property="product:price:amount" content="([^"]+)"', re.IGNORECASE),
    re.compile(r'<meta property="og:price:amount" content="([^"]+)"', re.IGNORECASE),
)

_TITLE_SUFFIX = re.compile(r"\s*[-|]\s*쿠팡!?\s*$")

_PARSE_ERRORS = (ValueError, TypeError, AttributeError, KeyError, RecursionError)


def _to_price(raw: Any) -> Optional[int]:
    return normalize_price(
        raw,
        max_price=settings.crawler_max_price,
        min_price=settings.crawler_min_price_threshold,
    )


def _clean_title(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = re.sub(r"\s+", " ", html_lib.unescape(value)).strip()
    return text or None


class _Collector:
    """파싱 중에만 쓰는 가변 누산기 (외부로는 ParsedInfo만 나감)"""

    def __init__(self) -> None:
        self.title: Optional[str] = None
        self.provider = "none"
        self.currency = DEFAULT_CURRENCY
        self.candidates: Set[PriceCandidate] = set()

    def offer_title(self, title: Optional[str], provider: str) -> None:
        if self.title is None and title:
            self.title = title
            self.provider = provider

    def add_price(self, raw: Any, source: PriceSource) -> None:
        value = _to_price(raw)
        if value is not None:
            self.candidates.add(PriceCandidate(value, source))

    def scan(self, text: str, pattern: "re.Pattern[str]", source: PriceSource, group: int = 1) -> None:
        for m in pattern.finditer(text):
            self.add_price(m.group(group), source)

    def build(self) -> ParsedInfo:
        return ParsedInfo(
            title=self.title,
            candidates=frozenset(self.candidates),
            currency=self.currency,
            provider=self.provider,
        )


# ---------------------------------------------------------------------------
# 1. JSON-LD
# ---------------------------------------------------------------------------

def _iter_ld_objects(tree: HTMLParser) -> Iterator[dict]:
    for node in tree.css('script[type="application/ld+json"]'):
        raw = node.text() or ""
        if not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("[PARSER] Skipping malformed JSON-LD block")
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            graph = item.get("@graph")
            if isinstance(graph, list):
                for g in graph:
                    if isinstance(g, dict):
                        yield g
            else:
                yield item


def _looks_like_product(obj: dict) -> bool:
    type_tag = obj.get("@type")
    if isinstance(type_tag, str) and "Product" in type_tag:
        return True
    if isinstance(type_tag, list) and any("Product" in str(t) for t in type_tag):
        return True
    return bool(obj.get("name"))


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _extract_json_ld(tree: HTMLParser, out: _Collector) -> None:
    products = [o for o in _iter_ld_objects(tree) if _looks_like_product(o)]
    if not products:
        return

    for product in products:
        title = _clean_title(product.get("name"))
        if title:
            out.offer_title(title, "json-ld")
            break

    for product in products:
        for offer in _as_list(product.get("offers")):
            if not isinstance(offer, dict):
                continue
            currency = offer.get("priceCurrency")
            if isinstance(currency, str) and currency.strip():
                out.currency = currency.strip()
            for key in ("price", "lowPrice", "highPrice"):
                out.add_price(offer.get(key), PriceSource.JSON_LD)
            for spec in _as_list(offer.get("priceSpecification")):
                if isinstance(spec, dict):
                    for key in ("price", "minPrice", "maxPrice"):
                        out.add_price(spec.get(key), PriceSource.JSON_LD)


# ---------------------------------------------------------------------------
# 2. 임베디드 프레임워크 상태 (__NUXT__ / __NEXT_DATA__)
# ---------------------------------------------------------------------------

def _state_search_text(raw_or_obj: Any) -> str:
    if isinstance(raw_or_obj, str):
        return raw_or_obj
    return json.dumps(raw_or_obj, ensure_ascii=False)


def find_nuxt_state(html: str) -> Optional[str]:
    """window.__NUXT__ = {...} 를 검색용 텍스트로 반환.

    엄격한 JSON이면 파싱 후 재직렬화하고, 아니면(함수 호출 형태 등) 원문 블롭을 씁니다.
    """
    m = _NUXT_ASSIGNMENT.search(html)
    if not m:
        return None
    try:
        obj, _ = json.JSONDecoder().raw_decode(html, m.end())
        return _state_search_text(obj)
    except ValueError:
        raw = _NUXT_RAW_BLOB.search(html, m.start())
        return raw.group(1) if raw else None


def find_next_data_state(tree: HTMLParser) -> Optional[str]:
    node = tree.css_first("script#__NEXT_DATA__")
    if node is None:
        return None
    raw = node.text() or ""
    if not raw.strip():
        return None
    try:
        return _state_search_text(json.loads(raw))
    except ValueError:
        return raw


def _state_title(text: str) -> Optional[str]:
    for pattern in _STATE_TITLE_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        try:
            value = json.loads(f'"{m.group(1)}"')
        except ValueError:
            value = m.group(1)
        title = _clean_title(value)
        if title:
            return title
    return None


def _extract_embedded_state(html: str, tree: HTMLParser, out: _Collector) -> None:
    for provider, text in (("__NUXT__", find_nuxt_state(html)), ("__NEXT_DATA__", find_next_data_state(tree))):
        if not text:
            continue
        out.offer_title(_state_title(text), provider)
        out.scan(text, _STATE_PRICE_PATTERN, PriceSource.EMBEDDED_STATE, group=2)


# ---------------------------------------------------------------------------
# 3. 메타 태그
# ---------------------------------------------------------------------------

def _meta_content(tree: HTMLParser, selector: str) -> List[str]:
    return [n.attributes.get("content") or "" for n in tree.css(selector)]


def _extract_meta(tree: HTMLParser, out: _Collector) -> None:
    for selector in ('meta[property="og:title"]', 'meta[name="title"]'):
        contents = _meta_content(tree, selector)
        title = _clean_title(contents[0]) if contents else None
        if title:
            out.offer_title(title, "meta")
            break

    for selector in ('meta[property="product:price:amount"]', 'meta[property="og:price:amount"]'):
        for content in _meta_content(tree, selector):
            out.add_price(content, PriceSource.META)


# ---------------------------------------------------------------------------
# 4. DOM 가격 마커 / 5. <title>
# ---------------------------------------------------------------------------

def _extract_raw_markers(html: str, out: _Collector) -> None:
    for pattern in RAW_TEXT_PATTERNS:
        out.scan(html, pattern, PriceSource.RAW_TEXT)


def _extract_title_tag(html: str, out: _Collector) -> None:
    title = extract_title_tag(html)
    if not title or is_block_title(title):
        return
    out.offer_title(_clean_title(_TITLE_SUFFIX.sub("", title)), "title")


def parse_product_info(html: str) -> ParsedInfo:
    """상품 페이지 HTML → ParsedInfo (예외를 던지지 않음)"""
    out = _Collector()
    if not html:
        return out.build()

    try:
        tree = HTMLParser(html)
    except _PARSE_ERRORS as e:
        logger.debug(f"[PARSER] HTML parse failed: {type(e).__name__}")
        tree = HTMLParser("")

    extractors = (
        ("json-ld", lambda: _extract_json_ld(tree, out)),
        ("embedded-state", lambda: _extract_embedded_state(html, tree, out)),
        ("meta", lambda: _extract_meta(tree, out)),
        ("raw-text", lambda: _extract_raw_markers(html, out)),
        ("title", lambda: _extract_title_tag(html, out)),
    )
    for name, run in extractors:
        try:
            run()
        except _PARSE_ERRORS as e:
            # 추출기 하나가 깨져도 나머지 소스는 계속 사용
            logger.debug(f"[PARSER] {name} extractor failed: {type(e).__name__}: {e}")

    parsed = out.build()
    logger.debug(
        f"[PARSER] title={'yes' if parsed.title else 'no'} provider={parsed.provider} "
        f"candidates={parsed.prices[:10]}"
    )
    return parsed


def scan_fallback_candidates(html: str) -> frozenset:
    """문서 전체를 대상으로 한 2차 가격 후보 스캔.

    DOM 마커, 가격 키 패턴, 메타 금액을 구조와 무관하게 문서 전체에 적용합니다.
    """
    out = _Collector()
    if not html:
        return frozenset()

    for pattern in RAW_TEXT_PATTERNS:
        out.scan(html, pattern, PriceSource.RAW_TEXT)
    out.scan(html, _STATE_PRICE_PATTERN, PriceSource.RAW_TEXT, group=2)
    for pattern in _META_AMOUNT_PATTERNS:
        out.scan(html, pattern, PriceSource.META)

    return frozenset(out.candidates)
