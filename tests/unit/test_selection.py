"""최저가/상품명 선택 테스트"""
import itertools

import pytest

from pricelink.crawlers.boundary import ParsedInfo, PriceCandidate, PriceSource
from pricelink.engine.selection import SelectionPolicy, select_price, select_result


def _candidates(*pairs):
    return frozenset(PriceCandidate(value, source) for value, source in pairs)


class TestSelectPrice:

    @pytest.mark.parametrize("order", list(itertools.permutations([15000, 12990, 18000])))
    def test_minimum_regardless_of_order(self, order):
        candidates = [PriceCandidate(v, PriceSource.RAW_TEXT) for v in order]
        assert select_price(candidates) == 12990

    def test_empty(self):
        assert select_price([]) is None

    def test_trusted_minimum_prefers_structured_tier(self):
        """원문 마커가 더 낮아도 신뢰도 높은 계층의 최솟값 사용"""
        candidates = _candidates(
            (25000, PriceSource.JSON_LD),
            (19900, PriceSource.EMBEDDED_STATE),
            (50, PriceSource.RAW_TEXT),
        )
        assert select_price(candidates, SelectionPolicy.MINIMUM) == 50
        assert select_price(candidates, SelectionPolicy.TRUSTED_MINIMUM) == 25000

    def test_trusted_minimum_falls_through_empty_tiers(self):
        candidates = _candidates((3000, PriceSource.RAW_TEXT), (4000, PriceSource.META))
        assert select_price(candidates, SelectionPolicy.TRUSTED_MINIMUM) == 4000


class TestSelectResult:

    def test_union_across_attempts(self):
        first = ParsedInfo(title="무선 마우스", candidates=_candidates((15000, PriceSource.META)), provider="meta")
        second = ParsedInfo(
            title="무선 마우스 (렌더링)",
            candidates=_candidates((12990, PriceSource.JSON_LD), (18000, PriceSource.RAW_TEXT)),
            provider="json-ld",
        )

        selection = select_result([first, second], SelectionPolicy.MINIMUM)

        assert selection.title == "무선 마우스"
        assert selection.provider == "meta"
        assert selection.price == 12990
        assert selection.candidates == [12990, 15000, 18000]
        assert selection.has_data

    def test_title_from_later_attempt_when_first_has_none(self):
        first = ParsedInfo(candidates=_candidates((1000, PriceSource.RAW_TEXT)))
        second = ParsedInfo(title="상품", provider="__NUXT__")

        selection = select_result([first, second], SelectionPolicy.MINIMUM)

        assert selection.title == "상품"
        assert selection.provider == "__NUXT__"
        assert selection.price == 1000

    def test_first_non_default_currency_wins(self):
        selection = select_result(
            [ParsedInfo(currency="KRW"), ParsedInfo(currency="USD"), ParsedInfo(currency="JPY")],
            SelectionPolicy.MINIMUM,
        )
        assert selection.currency == "USD"

    def test_no_data(self):
        selection = select_result([ParsedInfo()], SelectionPolicy.MINIMUM)

        assert not selection.has_data
        assert selection.price is None
        assert selection.currency == "KRW"
        assert selection.provider == "none"

    def test_policy_from_settings(self, monkeypatch):
        from pricelink.core.config import settings

        monkeypatch.setattr(settings, "crawler_price_selection", "trusted_minimum")
        parsed = ParsedInfo(candidates=_candidates((900, PriceSource.RAW_TEXT), (1200, PriceSource.META)))

        assert select_result([parsed]).price == 1200
