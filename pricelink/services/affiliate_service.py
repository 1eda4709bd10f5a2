"""쿠팡 파트너스 딥링크 클라이언트

HMAC-SHA256 서명 요청으로 상품 URL을 제휴 단축 링크로 바꿉니다.

서명 메시지: signed_date + method + path + query
signed_date: UTC, yyMMdd'T'HHmmss'Z'
"""

from __future__ import annotations

import hashlib
import hmac
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from pricelink.core.config import Settings, settings as default_settings
from pricelink.core.exceptions import AffiliateApiException, AffiliateConfigException
from pricelink.core.logging import logger
from pricelink.crawlers.http_client import SharedHttpClient, get_shared_http_client


DEEPLINK_PATH = "/v2/providers/affiliate_open_api/apis/openapi/v1/deeplink"
SIGNED_DATE_FORMAT = "%y%m%dT%H%M%SZ"


@dataclass(frozen=True)
class DeeplinkResult:
    original_url: str
    short_url: str
    landing_url: Optional[str] = None


def sign_request(secret_key: str, method: str, path: str, signed_date: str, query: str = "") -> str:
    message = signed_date + method + path + query
    return hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def build_authorization(
    access_key: str,
    secret_key: str,
    method: str,
    path: str,
    now: datetime,
    query: str = "",
) -> str:
    signed_date = now.astimezone(timezone.utc).strftime(SIGNED_DATE_FORMAT)
    signature = sign_request(secret_key, method, path, signed_date, query)
    return (
        f"CEA algorithm=HmacSHA256, access-key={access_key}, "
        f"signed-date={signed_date}, signature={signature}"
    )


class CoupangPartnersClient:
    """딥링크 API 어댑터

    Usage:
        client = CoupangPartnersClient()
        result = await client.create_deeplink("https://www.coupang.com/vp/products/123")
        result.short_url  # https://link.coupang.com/a/...
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        http_client: Optional[SharedHttpClient] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.config = config or default_settings
        self._http_client = http_client
        self._clock = clock

    @property
    def http_client(self) -> SharedHttpClient:
        if self._http_client is None:
            self._http_client = get_shared_http_client()
        return self._http_client

    def _require_credentials(self) -> None:
        missing = [
            name
            for name, value in (
                ("COUPANG_ACCESS_KEY", self.config.coupang_access_key),
                ("COUPANG_SECRET_KEY", self.config.coupang_secret_key),
            )
            if not value
        ]
        if missing:
            raise AffiliateConfigException(missing)

    async def create_deeplink(self, product_url: str) -> DeeplinkResult:
        """상품 URL → 제휴 단축 링크

        Raises:
            AffiliateConfigException: 키 미설정
            AffiliateApiException: 비정상 응답 / rCode != "0" / data 없음
            UpstreamException: 전송 오류 / 타임아웃
        """
        self._require_credentials()

        authorization = build_authorization(
            self.config.coupang_access_key,
            self.config.coupang_secret_key,
            "POST",
            DEEPLINK_PATH,
            self._clock(),
        )
        body: dict = {"coupangUrls": [product_url]}
        if self.config.coupang_sub_id:
            body["subId"] = self.config.coupang_sub_id

        logger.info(f"[AFFILIATE] Creating deeplink for {product_url[:80]}")
        resp = await self.http_client.post_json(
            f"https://{self.config.coupang_api_host}{DEEPLINK_PATH}",
            timeout_s=self.config.affiliate_timeout_ms / 1000.0,
            payload=body,
            headers={
                "Authorization": authorization,
                "Content-Type": "application/json;charset=UTF-8",
            },
        )

        try:
            payload = json.loads(resp.text) if resp.text else {}
        except ValueError:
            payload = {}

        if not resp.ok:
            message = payload.get("message") if isinstance(payload, dict) else None
            raise AffiliateApiException(message or f"HTTP {resp.status_code}", resp.status_code)
        if not isinstance(payload, dict):
            raise AffiliateApiException("unexpected response body", resp.status_code)

        r_code = str(payload.get("rCode", "0"))
        if r_code != "0":
            raise AffiliateApiException(
                f"rCode={r_code} {payload.get('rMessage') or ''}".strip(), resp.status_code
            )

        data = payload.get("data")
        first = data[0] if isinstance(data, list) and data and isinstance(data[0], dict) else None
        if first is None or not first.get("shortenUrl"):
            raise AffiliateApiException("response has no shortenUrl", resp.status_code)

        logger.info(f"[AFFILIATE] Deeplink created: {first['shortenUrl']}")
        return DeeplinkResult(
            original_url=first.get("originalUrl") or product_url,
            short_url=first["shortenUrl"],
            landing_url=first.get("landingUrl"),
        )
