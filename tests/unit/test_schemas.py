"""Pydantic 스키마 테스트."""

from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError

from pricelink.schemas.product_schema import (
    DeeplinkRequest,
    DeeplinkResponse,
    HealthResponse,
    PingResponse,
    ProductInfoRequest,
    ProductInfoResponse,
)


def test_request_strips_url():
    """요청 URL 공백 제거."""
    request = ProductInfoRequest(url="  https://link.coupang.com/a/abc  ")
    assert request.url == "https://link.coupang.com/a/abc"


@pytest.mark.parametrize("payload", [{}, {"url": None}, {"url": "   "}])
def test_missing_url_is_none(payload):
    """url 누락은 모델에서 통과, 라우트에서 400."""
    assert ProductInfoRequest(**payload).url is None
    assert DeeplinkRequest(**payload).url is None


def test_url_too_long():
    with pytest.raises(ValidationError):
        ProductInfoRequest(url="https://www.coupang.com/" + "a" * 3000)


def test_product_info_response_payload():
    """camelCase 직렬화 + 빈 필드 생략."""
    response = ProductInfoResponse(
        success=True,
        final_url="https://www.coupang.com/vp/products/1",
        title="상품",
        price=12990,
        provider="json-ld",
    )

    payload = response.to_payload()

    assert payload == {
        "success": True,
        "finalUrl": "https://www.coupang.com/vp/products/1",
        "title": "상품",
        "price": 12990,
        "currency": "KRW",
        "provider": "json-ld",
    }


def test_product_info_failure_keeps_null_title_and_price():
    payload = ProductInfoResponse(success=False, error="All fetch strategies failed").to_payload()

    assert payload["title"] is None
    assert payload["price"] is None
    assert payload["error"] == "All fetch strategies failed"
    assert "finalUrl" not in payload


def test_negative_price_rejected():
    with pytest.raises(ValidationError):
        ProductInfoResponse(success=True, price=-1)


def test_deeplink_response():
    response = DeeplinkResponse(
        success=True,
        original_link="https://www.coupang.com/vp/products/1",
        short_link="https://link.coupang.com/a/short1",
    )

    payload = response.to_payload()

    assert payload["shortLink"] == "https://link.coupang.com/a/short1"
    assert payload["landingUrl"] is None
    assert "error" not in payload


def test_ping_response_alias():
    assert PingResponse(has_env=True).model_dump(by_alias=True) == {"success": True, "hasEnv": True}


def test_health_response():
    response = HealthResponse(status="ok", timestamp=datetime.now(), version="1.0.0", providers=["direct"])
    assert response.providers == ["direct"]
