"""Price normalization helpers."""

from __future__ import annotations

import math
import re
from typing import Any, Optional

# 이 값을 넘는 숫자는 상품 ID/리뷰 수 등 무관한 정수를 잘못 잡은 것으로 봅니다.
MAX_PRICE = 100_000_000

_NON_NUMERIC = re.compile(r"[^0-9.]")
_NEGATIVE = re.compile(r"^[^0-9]*[-−]")


def normalize_price(
    raw: Any,
    *,
    max_price: Optional[int] = MAX_PRICE,
    min_price: int = 0,
) -> Optional[int]:
    """가격처럼 보이는 값을 양의 정수(원 단위)로 변환.

    숫자와 소수점을 제외한 문자를 모두 제거한 뒤 변환합니다.
    "12,990", "12990원", "₩12,990" 은 모두 12990 이 되고,
    "0", "-5", "abc", "" 는 None(후보 아님)이 됩니다.

    Args:
        raw: 문자열/숫자 원본 값
        max_price: 상한 (None이면 검사 안 함)
        min_price: 하한 (0이면 검사 안 함)

    Returns:
        정수 가격 또는 None
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        number = float(raw)
    else:
        text = str(raw).strip()
        if not text or _NEGATIVE.match(text):
            return None
        cleaned = _NON_NUMERIC.sub("", text)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None

    if not math.isfinite(number) or number <= 0:
        return None

    value = int(round(number))
    if value <= 0:
        return None
    if max_price is not None and value > max_price:
        return None
    if min_price and value < min_price:
        return None
    return value

