"""URL 정규화 유틸 테스트"""
from urllib.parse import parse_qs, urlsplit

import pytest

from pricelink.core.exceptions import MalformedUrlException, NetworkTimeoutException
from pricelink.engine.budget import BudgetConfig, BudgetManager
from pricelink.utils.url_utils import (
    TRACKING_PARAMS,
    UrlNormalizer,
    clean_product_url,
    extract_product_id,
    is_canonical_domain,
    is_short_link,
)


class TestExtractProductId:
    """URL 경로에서 상품 ID 추출"""

    def test_vp_products_path(self):
        assert extract_product_id("https://www.coupang.com/vp/products/123456?itemId=1") == "123456"

    def test_mobile_products_path(self):
        assert extract_product_id("https://m.coupang.com/products/987") == "987"

    def test_non_product_path(self):
        assert extract_product_id("https://www.coupang.com/np/search?q=mouse") is None
        assert extract_product_id("") is None

    def test_non_numeric_id(self):
        assert extract_product_id("https://www.coupang.com/vp/products/abc") is None


class TestCleanProductUrl:
    """추적 파라미터 제거 + 정식 경로 재작성"""

    def test_scenario_keeps_item_ids_and_drops_traceid(self):
        """itemId/vendorItemId 유지, traceid 제거"""
        url = "https://www.coupang.com/vp/products/123456?itemId=1&vendorItemId=2&traceid=xyz"
        normalized = clean_product_url(url)

        assert normalized.url == "https://www.coupang.com/vp/products/123456?itemId=1&vendorItemId=2"
        assert normalized.product_id == "123456"
        assert normalized.item_id == "1"
        assert normalized.vendor_item_id == "2"
        assert "traceid" not in normalized.url

    def test_idempotent_on_canonical_url(self):
        canonical = "https://www.coupang.com/vp/products/123456?itemId=1&vendorItemId=2"
        once = clean_product_url(canonical)
        twice = clean_product_url(once.url)
        assert once.url == canonical
        assert twice.url == once.url

    def test_all_tracking_params_removed(self):
        """모든 추적 파라미터를 붙여도 결과에는 하나도 남지 않음"""
        query = "&".join(f"{name}=v" for name in sorted(TRACKING_PARAMS))
        url = f"https://www.coupang.com/vp/products/777?vendorItemId=9&{query}&itemId=8"

        normalized = clean_product_url(url)
        params = parse_qs(urlsplit(normalized.url).query)

        assert not (set(params) & TRACKING_PARAMS)
        assert params == {"itemId": ["8"], "vendorItemId": ["9"]}

    def test_preserved_order_is_item_then_vendor(self):
        url = "https://www.coupang.com/vp/products/1?vendorItemId=22&itemId=11"
        assert clean_product_url(url).url.endswith("?itemId=11&vendorItemId=22")

    def test_mobile_host_rewritten_to_canonical(self):
        url = "https://m.coupang.com/vm/products/555?src=1042016&itemId=3"
        normalized = clean_product_url(url)
        assert normalized.url == "https://www.coupang.com/vp/products/555?itemId=3"

    def test_no_identifiers_gives_bare_path(self):
        url = "https://www.coupang.com/vp/products/42?ctag=x&wPcid=abc"
        assert clean_product_url(url).url == "https://www.coupang.com/vp/products/42"

    def test_unknown_params_pass_through_on_non_product_url(self):
        """상품 경로가 아니면 알 수 없는 파라미터는 그대로 통과"""
        url = "https://www.coupang.com/np/search?q=mouse&traceid=1&newParam=keep"
        normalized = clean_product_url(url)

        assert normalized.product_id is None
        assert not normalized.is_product
        params = parse_qs(urlsplit(normalized.url).query)
        assert params == {"q": ["mouse"], "newParam": ["keep"]}

    @pytest.mark.parametrize("bad", ["", "   ", "not a url", "ftp://www.coupang.com/vp/products/1", "https://"])
    def test_malformed_input_raises(self, bad):
        with pytest.raises(MalformedUrlException) as exc_info:
            clean_product_url(bad)
        assert exc_info.value.error_code == "MALFORMED_URL"


class TestHostChecks:
    def test_short_link_host(self):
        assert is_short_link("https://link.coupang.com/a/bXyZ12")
        assert not is_short_link("https://www.coupang.com/vp/products/1")

    def test_canonical_domain(self):
        assert is_canonical_domain("https://www.coupang.com/vp/products/1")
        assert is_canonical_domain("https://m.coupang.com/vm/products/1")
        assert not is_canonical_domain("https://link.coupang.com/a/x")
        assert not is_canonical_domain("https://notcoupang.com/")


@pytest.mark.asyncio
class TestUrlNormalizer:
    """단축 링크 해제 포함 정규화"""

    async def test_resolves_short_link_single_hop(self, redirect_client):
        short = "https://link.coupang.com/a/bXyZ12"
        redirect_client.locations[short] = (
            "https://www.coupang.com/vp/products/999?itemId=5&vendorItemId=6&traceid=t&subid=s"
        )
        normalizer = UrlNormalizer(http_client=redirect_client)

        normalized = await normalizer.normalize(short)

        assert normalized.url == "https://www.coupang.com/vp/products/999?itemId=5&vendorItemId=6"
        assert redirect_client.calls == [short]

    async def test_follows_multiple_hops_and_relative_location(self, redirect_client):
        short = "https://link.coupang.com/a/abc"
        redirect_client.locations[short] = "/re/AFFSDP?lptag=x"
        redirect_client.locations["https://link.coupang.com/re/AFFSDP?lptag=x"] = (
            "https://www.coupang.com/vp/products/31?itemId=4"
        )
        normalizer = UrlNormalizer(http_client=redirect_client)

        normalized = await normalizer.normalize(short)

        assert normalized.url == "https://www.coupang.com/vp/products/31?itemId=4"
        assert len(redirect_client.calls) == 2

    async def test_stops_after_max_hops(self, redirect_client):
        hops = [f"https://link.coupang.com/a/{i}" for i in range(10)]
        for src, dst in zip(hops, hops[1:]):
            redirect_client.locations[src] = dst
        normalizer = UrlNormalizer(http_client=redirect_client, max_hops=3)

        await normalizer.normalize(hops[0])

        assert len(redirect_client.calls) == 3

    async def test_resolution_failure_falls_back_to_input(self, redirect_client):
        """네트워크 오류는 치명적이지 않음: 원본 입력 사용"""
        redirect_client.error = NetworkTimeoutException("HEAD link.coupang.com", 2000)
        normalizer = UrlNormalizer(http_client=redirect_client)

        normalized = await normalizer.normalize("https://link.coupang.com/a/xyz?traceid=1")

        assert normalized.url == "https://link.coupang.com/a/xyz"

    async def test_canonical_input_skips_network(self, redirect_client):
        normalizer = UrlNormalizer(http_client=redirect_client)
        normalized = await normalizer.normalize("  https://www.coupang.com/vp/products/1?itemId=2  ")

        assert normalized.url == "https://www.coupang.com/vp/products/1?itemId=2"
        assert redirect_client.calls == []

    async def test_malformed_input_raises(self, redirect_client):
        normalizer = UrlNormalizer(http_client=redirect_client)
        with pytest.raises(MalformedUrlException):
            await normalizer.normalize("javascript:alert(1)")


@pytest.mark.asyncio
class TestShortLinkBudget:
    """요청 예산 안에서만 홉을 따라감"""

    @staticmethod
    def _chain(redirect_client, count=10):
        hops = [f"https://link.coupang.com/a/{i}" for i in range(count)]
        for src, dst in zip(hops, hops[1:]):
            redirect_client.locations[src] = dst
        return hops

    async def test_hop_timeouts_clipped_and_stop_when_exhausted(self, redirect_client, fake_clock):
        hops = self._chain(redirect_client)
        redirect_client.on_call = lambda timeout_s: fake_clock.advance_ms(700)
        budget = BudgetManager(BudgetConfig(total_budget_ms=2000), clock=fake_clock)
        budget.start()
        normalizer = UrlNormalizer(http_client=redirect_client, max_hops=5, timeout_ms=1500)

        normalized = await normalizer.normalize(hops[0], budget)

        # 2000 → 1300 → 600 남음, 그다음은 min_viable(500) 미만으로 중단
        assert redirect_client.timeouts == [
            pytest.approx(1.5, abs=0.002),
            pytest.approx(1.1, abs=0.002),
            pytest.approx(0.4, abs=0.002),
        ]
        assert normalized.url == "https://link.coupang.com/a/3"

    async def test_exhausted_budget_makes_no_call(self, redirect_client, fake_clock):
        hops = self._chain(redirect_client)
        budget = BudgetManager(BudgetConfig(total_budget_ms=2000), clock=fake_clock)
        budget.start()
        fake_clock.advance_ms(1600)
        normalizer = UrlNormalizer(http_client=redirect_client)

        normalized = await normalizer.normalize(hops[0], budget)

        assert redirect_client.calls == []
        assert normalized.url == hops[0]

    async def test_slow_hop_is_cut_at_its_timeout(self, redirect_client):
        """클라이언트가 타임아웃을 지키지 않아도 홉은 잘리고 원본 입력으로 진행"""
        hops = self._chain(redirect_client)
        redirect_client.latency_ratio = 10.0
        normalizer = UrlNormalizer(http_client=redirect_client, timeout_ms=50)

        normalized = await normalizer.normalize(hops[0])

        assert redirect_client.calls == [hops[0]]
        assert normalized.url == hops[0]
