"""쿠팡 상품 페이지 검증 - 차단/빈 페이지 판별.

이 모듈은 네트워크(fetch)와 분리된 순수 검증 로직을 담습니다.
200 OK라도 실질적으로 차단/챌린지 페이지일 수 있어 래더 단계마다 적용합니다.
"""

from __future__ import annotations

import re
from typing import Optional

from selectolax.parser import HTMLParser

from pricelink.core.config import settings


# 어떤 경우에도 차단으로 보는 문구
_STRONG_BLOCK_PATTERNS = (
    re.compile(r"sorry!\s*access\s*denied", re.IGNORECASE),
    re.compile(r"접속이\s*차단되었습니다"),
)

# 상품 지문이 없을 때만 차단으로 보는 챌린지 문구
_WEAK_BLOCK_KEYWORDS = (
    "access denied",
    "captcha",
    "캡차",
    "just a moment",
    "verify you are human",
    "are you a robot",
    "비정상적인 접근",
    "자동입력 방지",
)

# <title>이 도메인만 있는 경우 (쿠팡 차단 페이지의 전형)
_BARE_DOMAIN_TITLES = frozenset({"coupang.com", "www.coupang.com", "m.coupang.com", "coupang", "쿠팡"})

_PRODUCT_FINGERPRINTS = (
    'application/ld+json',
    'property="og:title"',
    "window.__NUXT__",
    "__NEXT_DATA__",
    'class="prod-price',
    'class="total-price',
    "data-rt-price",
)

_TITLE_TAG = re.compile(r"<title[^>]*>([^<]*)</title>", re.IGNORECASE)


def extract_title_tag(html: str) -> Optional[str]:
    if not html:
        return None
    node = HTMLParser(html).css_first("title")
    if node is not None:
        text = (node.text() or "").strip()
        return text or None
    # selectolax가 title을 못 찾는 깨진 문서 대비
    m = _TITLE_TAG.search(html)
    if m and m.group(1).strip():
        return m.group(1).strip()
    return None


def is_block_title(title: Optional[str]) -> bool:
    """<title>만 보고 차단 페이지인지 판단"""
    if not title:
        return False
    stripped = title.strip()
    if stripped.lower() in _BARE_DOMAIN_TITLES:
        return True
    if "access denied" in stripped.lower():
        return True
    return any(p.search(stripped) for p in _STRONG_BLOCK_PATTERNS)


def has_product_fingerprint(html: str) -> bool:
    if not html:
        return False
    return any(fp in html for fp in _PRODUCT_FINGERPRINTS)


def find_invalid_reason(html: str, min_length: Optional[int] = None) -> Optional[str]:
    """페이지를 쓸 수 없는 이유를 반환 (정상이면 None).

    정책:
    - 짧은 응답(< min_length)은 차단/빈 페이지로 간주
    - <title>이 도메인만 있거나 강한 차단 문구가 있으면 차단
    - 약한 챌린지 문구는 상품 지문이 없을 때만 차단
    """
    if not html:
        return "empty body"

    min_len = min_length if min_length is not None else settings.crawler_min_html_length
    if len(html) < min_len:
        return f"body too short ({len(html)} < {min_len} chars)"

    title = extract_title_tag(html)
    if is_block_title(title):
        return f"block page title '{title.strip()}'"

    for pattern in _STRONG_BLOCK_PATTERNS:
        m = pattern.search(html)
        if m:
            return f"block signature '{m.group(0)}'"

    if has_product_fingerprint(html):
        return None

    lowered = html.lower()
    for kw in _WEAK_BLOCK_KEYWORDS:
        if kw in lowered:
            return f"challenge keyword '{kw}'"

    return None
