"""쿠팡 파트너스 딥링크 클라이언트 테스트"""
import hashlib
import hmac
import json
from datetime import datetime, timezone

import pytest

from pricelink.core.config import Settings
from pricelink.core.exceptions import AffiliateApiException, AffiliateConfigException
from pricelink.crawlers import HttpResponse
from pricelink.services.affiliate_service import (
    DEEPLINK_PATH,
    CoupangPartnersClient,
    build_authorization,
    sign_request,
)
from tests.fixtures import pages


FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture
def config():
    return Settings(coupang_access_key="access", coupang_secret_key="secret", coupang_sub_id="sub01")


def _ok_body(**item):
    data = {"originalUrl": pages.PRODUCT_URL, "shortenUrl": "https://link.coupang.com/a/short1",
            "landingUrl": "https://link.coupang.com/re/AFFSDP?lptag=AF1"}
    data.update(item)
    return json.dumps({"rCode": "0", "rMessage": "", "data": [data]})


class TestSigning:

    def test_signature_matches_hmac_sha256(self):
        expected = hmac.new(
            b"secret", ("240102T030405Z" + "POST" + DEEPLINK_PATH).encode(), hashlib.sha256
        ).hexdigest()
        assert sign_request("secret", "POST", DEEPLINK_PATH, "240102T030405Z") == expected

    def test_authorization_header_format(self):
        header = build_authorization("access", "secret", "POST", DEEPLINK_PATH, FIXED_NOW)

        assert header.startswith("CEA algorithm=HmacSHA256, access-key=access, ")
        assert "signed-date=240102T030405Z" in header
        assert header.endswith("signature=" + sign_request("secret", "POST", DEEPLINK_PATH, "240102T030405Z"))


@pytest.mark.asyncio
class TestCreateDeeplink:

    async def test_success(self, fake_http_client, config):
        fake_http_client.response = HttpResponse(200, _ok_body())
        client = CoupangPartnersClient(config, fake_http_client, clock=lambda: FIXED_NOW)

        result = await client.create_deeplink(pages.PRODUCT_URL)

        assert result.short_url == "https://link.coupang.com/a/short1"
        assert result.original_url == pages.PRODUCT_URL
        assert result.landing_url.startswith("https://link.coupang.com/re/")

        call = fake_http_client.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == f"https://api-gateway.coupang.com{DEEPLINK_PATH}"
        assert call["json"] == {"coupangUrls": [pages.PRODUCT_URL], "subId": "sub01"}
        assert "signed-date=240102T030405Z" in call["headers"]["Authorization"]

    async def test_sub_id_is_optional(self, fake_http_client):
        fake_http_client.response = HttpResponse(200, _ok_body())
        config = Settings(coupang_access_key="access", coupang_secret_key="secret", coupang_sub_id="")
        client = CoupangPartnersClient(config, fake_http_client)

        await client.create_deeplink(pages.PRODUCT_URL)

        assert "subId" not in fake_http_client.calls[0]["json"]

    async def test_missing_keys(self, fake_http_client):
        config = Settings(coupang_access_key="", coupang_secret_key="")
        client = CoupangPartnersClient(config, fake_http_client)

        with pytest.raises(AffiliateConfigException) as exc_info:
            await client.create_deeplink(pages.PRODUCT_URL)

        assert exc_info.value.details["missing"] == ["COUPANG_ACCESS_KEY", "COUPANG_SECRET_KEY"]
        assert fake_http_client.calls == []

    async def test_non_zero_rcode(self, fake_http_client, config):
        fake_http_client.response = HttpResponse(
            200, json.dumps({"rCode": "400", "rMessage": "Invalid url", "data": None})
        )
        client = CoupangPartnersClient(config, fake_http_client)

        with pytest.raises(AffiliateApiException) as exc_info:
            await client.create_deeplink(pages.PRODUCT_URL)

        assert "rCode=400 Invalid url" in exc_info.value.message

    async def test_empty_data(self, fake_http_client, config):
        fake_http_client.response = HttpResponse(200, json.dumps({"rCode": "0", "data": []}))
        client = CoupangPartnersClient(config, fake_http_client)

        with pytest.raises(AffiliateApiException) as exc_info:
            await client.create_deeplink(pages.PRODUCT_URL)

        assert "no shortenUrl" in exc_info.value.message

    async def test_http_error_uses_message(self, fake_http_client, config):
        fake_http_client.response = HttpResponse(401, json.dumps({"code": "ERROR", "message": "Unauthorized"}))
        client = CoupangPartnersClient(config, fake_http_client)

        with pytest.raises(AffiliateApiException) as exc_info:
            await client.create_deeplink(pages.PRODUCT_URL)

        assert exc_info.value.details["status_code"] == 401
        assert "Unauthorized" in exc_info.value.message

    async def test_http_error_without_json(self, fake_http_client, config):
        fake_http_client.response = HttpResponse(502, "<html>bad gateway</html>")
        client = CoupangPartnersClient(config, fake_http_client)

        with pytest.raises(AffiliateApiException) as exc_info:
            await client.create_deeplink(pages.PRODUCT_URL)

        assert exc_info.value.message.endswith("HTTP 502")
