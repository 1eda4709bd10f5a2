"""쿠팡 URL 정규화 유틸리티

- 단축 링크(link.coupang.com) 해제
- 추적 파라미터 제거 (알려진 것만 삭제, 나머지는 통과)
- itemId / vendorItemId 보존
- /vp/products/<id> 정식 경로로 재작성
"""
from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from pricelink.core.config import settings
from pricelink.core.exceptions import (
    MalformedUrlException,
    PriceLinkException,
    ShortLinkResolutionException,
)
from pricelink.core.logging import logger

if TYPE_CHECKING:
    from pricelink.engine.budget import BudgetManager


CANONICAL_HOST = "www.coupang.com"
CANONICAL_DOMAIN = "coupang.com"
SHORT_LINK_HOSTS = frozenset({"link.coupang.com"})

# 알려진 추적/분석 파라미터. 허용 목록이 아니라 삭제 목록으로 유지합니다.
TRACKING_PARAMS = frozenset({
    "redirect", "src", "addtag", "itime", "lptag", "wTime", "wPcid", "wRef", "traceid",
    "pageType", "pageValue", "spec", "ctag", "mcid", "placementid", "clickBeacon",
    "campaignid", "puidType", "contentcategory", "imgsize", "pageid", "tsource",
    "deviceid", "token", "contenttype", "subid", "sig", "impressionid", "campaigntype",
    "puid", "requestid", "ctime", "contentkeyword", "portal", "landing_exp", "subparam",
})

# 삭제 전에 먼저 읽어 두는 SKU 식별 파라미터 (재부착 순서 유지)
PRESERVED_PARAMS = ("itemId", "vendorItemId")

_PRODUCT_PATH = re.compile(r"/(?:vp/)?products/(\d+)")


@dataclass(frozen=True)
class NormalizedUrl:
    """정규화된 상품 URL (요청 단위, 생성 후 불변)"""

    url: str
    product_id: Optional[str] = None
    item_id: Optional[str] = None
    vendor_item_id: Optional[str] = None

    @property
    def is_product(self) -> bool:
        return self.product_id is not None

    def __str__(self) -> str:
        return self.url


class RedirectClient(Protocol):
    async def head_location(self, url: str, *, timeout_s: float) -> Optional[str]:
        ...


def _split(url: str):
    text = (url or "").strip()
    if not text:
        raise MalformedUrlException(url, "empty input")
    try:
        parts = urlsplit(text)
    except ValueError as e:
        raise MalformedUrlException(url, str(e)) from e
    if parts.scheme.lower() not in ("http", "https"):
        raise MalformedUrlException(url, "scheme must be http or https")
    if not parts.hostname:
        raise MalformedUrlException(url, "missing host")
    return parts


def is_short_link(url: str) -> bool:
    """단축 링크 도메인 여부"""
    try:
        host = (urlsplit(url.strip()).hostname or "").lower()
    except ValueError:
        return False
    return host in SHORT_LINK_HOSTS


def is_canonical_domain(url: str) -> bool:
    """쿠팡 본 도메인(단축 링크 호스트 제외) 여부"""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    if host in SHORT_LINK_HOSTS:
        return False
    return host == CANONICAL_DOMAIN or host.endswith("." + CANONICAL_DOMAIN)


def extract_product_id(url: str) -> Optional[str]:
    """
    쿠팡 URL 경로에서 상품 ID 추출

    Examples:
        >>> extract_product_id("https://www.coupang.com/vp/products/123456?itemId=1")
        '123456'
        >>> extract_product_id("https://m.coupang.com/products/987")
        '987'
        >>> extract_product_id("https://www.coupang.com/np/search?q=x")
    """
    if not url:
        return None
    try:
        path = urlsplit(url.strip()).path
    except ValueError:
        return None
    match = _PRODUCT_PATH.search(path)
    return match.group(1) if match else None


def clean_product_url(url: str) -> NormalizedUrl:
    """추적 파라미터 제거 + 정식 상품 경로 재작성 (네트워크 없음)

    Raises:
        MalformedUrlException: URL 문법 자체가 잘못된 경우
    """
    parts = _split(url)
    params = parse_qsl(parts.query, keep_blank_values=True)

    preserved: dict[str, str] = {}
    for key, value in params:
        if key in PRESERVED_PARAMS and key not in preserved and value:
            preserved[key] = value

    kept = [(k, v) for k, v in params if k not in TRACKING_PARAMS]

    match = _PRODUCT_PATH.search(parts.path)
    if not match:
        cleaned = urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(kept), parts.fragment))
        return NormalizedUrl(url=cleaned)

    product_id = match.group(1)
    query = urlencode([(k, preserved[k]) for k in PRESERVED_PARAMS if k in preserved])
    canonical = f"https://{CANONICAL_HOST}/vp/products/{product_id}"
    if query:
        canonical = f"{canonical}?{query}"

    return NormalizedUrl(
        url=canonical,
        product_id=product_id,
        item_id=preserved.get("itemId"),
        vendor_item_id=preserved.get("vendorItemId"),
    )


class UrlNormalizer:
    """단축 링크 해제 + URL 정리

    Usage:
        normalizer = UrlNormalizer()
        normalized = await normalizer.normalize("https://link.coupang.com/a/xxxx")
        normalized.url  # https://www.coupang.com/vp/products/123?itemId=...
    """

    def __init__(
        self,
        http_client: Optional[RedirectClient] = None,
        max_hops: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ):
        self._http_client = http_client
        self.max_hops = settings.short_link_max_hops if max_hops is None else max_hops
        self.timeout_ms = timeout_ms or settings.short_link_timeout_ms

    def _client(self) -> RedirectClient:
        if self._http_client is None:
            from pricelink.crawlers.http_client import get_shared_http_client
            self._http_client = get_shared_http_client()
        return self._http_client

    def _hop_timeout_ms(self, budget: Optional["BudgetManager"]) -> int:
        if budget is None:
            return self.timeout_ms
        if budget.is_exhausted():
            return 0
        return budget.attempt_timeout_ms(self.timeout_ms)

    async def resolve_short_link(self, url: str, budget: Optional["BudgetManager"] = None) -> str:
        """HEAD(리다이렉트 비활성) → Location 헤더를 최대 max_hops 번 따라갑니다.

        budget이 주어지면 홉마다 남은 예산으로 타임아웃을 자르고, 예산이 바닥나면 멈춥니다.

        Raises:
            ShortLinkResolutionException: 네트워크 오류 / 타임아웃
        """
        current = url
        client = self._client()
        for hop in range(self.max_hops):
            timeout_ms = self._hop_timeout_ms(budget)
            if timeout_ms <= 0:
                logger.info(f"[NORMALIZER] Stopping after {hop} hop(s): budget exhausted")
                break

            timeout_s = timeout_ms / 1000.0
            try:
                location = await asyncio.wait_for(
                    client.head_location(current, timeout_s=timeout_s),
                    timeout=timeout_s,
                )
            except asyncio.TimeoutError as e:
                raise ShortLinkResolutionException(url, f"hop {hop + 1} timed out after {timeout_ms}ms") from e
            except PriceLinkException as e:
                raise ShortLinkResolutionException(url, e.message) from e

            if not location:
                break
            current = urljoin(current, location)
            logger.debug(f"[NORMALIZER] hop {hop + 1}: {current[:120]}")
            if is_canonical_domain(current):
                break
        return current

    async def normalize(self, raw_url: str, budget: Optional["BudgetManager"] = None) -> NormalizedUrl:
        """입력 문자열을 NormalizedUrl로 변환

        Args:
            raw_url: 사용자 입력
            budget: 요청 예산 (단축 링크 해제에도 적용)

        Raises:
            MalformedUrlException: URL 문법 오류
        """
        working = (raw_url or "").strip()
        _split(working)

        if is_short_link(working):
            try:
                working = await self.resolve_short_link(working, budget)
            except ShortLinkResolutionException as e:
                # 단축 링크 해제 실패는 치명적이지 않음: 원본을 그대로 사용
                logger.warning(f"[NORMALIZER] {e.message}; using original input")

        normalized = clean_product_url(working)
        logger.debug(f"[NORMALIZER] {working[:120]} -> {normalized.url}")
        return normalized
