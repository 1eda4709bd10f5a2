"""Price/Title Selection - 여러 시도의 파싱 결과를 하나로 합침

- 제목: 시도 순서(싼 단계 먼저)대로 처음 나온 값, provider 태그는 제목을 따라감
- 통화: 처음 나온 기본값(KRW) 아닌 통화, 없으면 KRW
- 가격: 모든 소스/시도의 후보 합집합에서 최솟값

가격 정책:
- minimum: 전체 후보의 최솟값 (기본)
- trusted_minimum: 후보가 있는 가장 신뢰도 높은 소스 계층 안에서의 최솟값
  (json-ld > embedded-state > meta > raw-text). 원문 마커 패턴이 할인율/리뷰 수 같은
  무관한 숫자를 잡아 최솟값을 끌어내리는 경우를 막습니다.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from pricelink.core.config import settings
from pricelink.crawlers.boundary import (
    DEFAULT_CURRENCY,
    SOURCE_TRUST_ORDER,
    ParsedInfo,
    PriceCandidate,
)


class SelectionPolicy(str, Enum):
    MINIMUM = "minimum"
    TRUSTED_MINIMUM = "trusted_minimum"


@dataclass(frozen=True)
class Selection:
    title: Optional[str] = None
    price: Optional[int] = None
    currency: str = DEFAULT_CURRENCY
    provider: Optional[str] = None
    candidates: List[int] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return self.title is not None or self.price is not None


def select_price(
    candidates: Iterable[PriceCandidate],
    policy: SelectionPolicy = SelectionPolicy.MINIMUM,
) -> Optional[int]:
    pool = list(candidates)
    if not pool:
        return None
    if policy == SelectionPolicy.TRUSTED_MINIMUM:
        for source in SOURCE_TRUST_ORDER:
            tier = [c.value for c in pool if c.source == source]
            if tier:
                return min(tier)
    return min(c.value for c in pool)


def select_result(
    parsed: Sequence[ParsedInfo],
    policy: Optional[SelectionPolicy] = None,
) -> Selection:
    """ParsedInfo 목록(시도 순서) → Selection"""
    policy = policy or SelectionPolicy(settings.crawler_price_selection)

    title: Optional[str] = None
    provider: Optional[str] = None
    currency = DEFAULT_CURRENCY
    union: set = set()

    for info in parsed:
        if title is None and info.title:
            title = info.title
            provider = info.provider
        if currency == DEFAULT_CURRENCY and info.currency and info.currency != DEFAULT_CURRENCY:
            currency = info.currency
        union |= info.candidates

    if provider is None and parsed:
        provider = parsed[0].provider

    return Selection(
        title=title,
        price=select_price(union, policy),
        currency=currency,
        provider=provider,
        candidates=sorted({c.value for c in union}),
    )
