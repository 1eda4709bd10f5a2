"""업스트림 스크래핑 프로바이더 어댑터

래더 단계(FetchAttemptSpec) 하나를 실제 HTTP 요청 하나로 바꿉니다.

- ScrapingBee: render_js / premium_proxy / wait_for 파라미터로 단계 표현
- ScraperAPI: render / premium / device_type
- Direct: 프로바이더 없이 curl_cffi 브라우저 임퍼소네이션으로 직접 요청 (최후 수단)

상태 코드 매핑:
- 429 → UpstreamRateLimitedException (재시도 대상)
- 5xx → UpstreamServerException (재시도 대상)
- 그 외 non-2xx → UpstreamHttpException
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from pricelink.core.config import Settings, settings as default_settings
from pricelink.core.exceptions import (
    UpstreamHttpException,
    UpstreamRateLimitedException,
    UpstreamServerException,
)
from pricelink.core.logging import logger

from .http_client import HttpResponse, SharedHttpClient, get_shared_http_client
from .result import DeviceProfile, FetchAttemptSpec, ProxyTier, UpstreamProvider


class ScrapingProvider(Protocol):
    """래더가 사용하는 프로바이더 인터페이스"""

    name: UpstreamProvider

    async def fetch(self, url: str, spec: FetchAttemptSpec, *, timeout_s: float) -> str:
        """HTML 본문 반환

        Raises:
            UpstreamException: 비정상 상태 코드 / 전송 오류 / 타임아웃
        """
        ...


def raise_for_upstream_status(provider: str, resp: HttpResponse) -> None:
    if resp.ok:
        return
    if resp.status_code == 429:
        raise UpstreamRateLimitedException(provider)
    if resp.status_code >= 500:
        raise UpstreamServerException(provider, resp.status_code)
    raise UpstreamHttpException(provider, resp.status_code, resp.text)


def browser_headers(device: DeviceProfile, config: Settings) -> Dict[str, str]:
    ua = config.crawler_mobile_user_agent if device == DeviceProfile.MOBILE else config.crawler_desktop_user_agent
    return {
        "User-Agent": ua,
        "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }


class _HttpProvider:
    name: UpstreamProvider

    def __init__(self, client: Optional[SharedHttpClient] = None, config: Optional[Settings] = None):
        self._client = client
        self.config = config or default_settings

    @property
    def client(self) -> SharedHttpClient:
        if self._client is None:
            self._client = get_shared_http_client()
        return self._client

    def build_params(self, url: str, spec: FetchAttemptSpec) -> Optional[Dict[str, str]]:
        return None

    def endpoint(self, url: str) -> str:
        return url

    async def fetch(self, url: str, spec: FetchAttemptSpec, *, timeout_s: float) -> str:
        resp = await self.client.get_text(
            self.endpoint(url),
            timeout_s=timeout_s,
            headers=browser_headers(spec.device, self.config),
            params=self.build_params(url, spec),
        )
        logger.debug(f"[PROVIDER] {spec.label} -> HTTP {resp.status_code} len={len(resp.text)}")
        raise_for_upstream_status(self.name.value, resp)
        return resp.text


class ScrapingBeeProvider(_HttpProvider):
    name = UpstreamProvider.SCRAPINGBEE

    def endpoint(self, url: str) -> str:
        return self.config.scrapingbee_endpoint

    def build_params(self, url: str, spec: FetchAttemptSpec) -> Dict[str, str]:
        params = {
            "api_key": self.config.scrapingbee_key,
            "url": url,
            "render_js": "true" if spec.render else "false",
            "country_code": self.config.crawler_country_code,
            "forward_headers": "true",
        }
        if spec.proxy_tier == ProxyTier.PREMIUM or self.config.scrapingbee_premium:
            params["premium_proxy"] = "true"
        # wait/wait_for는 렌더링할 때만 의미가 있음
        if spec.render:
            params["wait"] = str(self.config.crawler_render_wait_ms)
            if self.config.crawler_render_wait_for:
                params["wait_for"] = self.config.crawler_render_wait_for
        return params


class ScraperApiProvider(_HttpProvider):
    name = UpstreamProvider.SCRAPERAPI

    def endpoint(self, url: str) -> str:
        return self.config.scraperapi_endpoint

    def build_params(self, url: str, spec: FetchAttemptSpec) -> Dict[str, str]:
        params = {
            "api_key": self.config.scraperapi_key,
            "url": url,
            "render": "true" if spec.render else "false",
            "country_code": self.config.crawler_country_code,
            "device_type": spec.device.value,
            "keep_headers": "true",
        }
        if spec.proxy_tier == ProxyTier.PREMIUM:
            params["premium"] = "true"
        return params


class DirectFetchProvider(_HttpProvider):
    """프로바이더 없이 직접 요청. 렌더링/프록시 등급은 무시됩니다."""

    name = UpstreamProvider.DIRECT


def configured_provider_names(config: Optional[Settings] = None) -> List[str]:
    cfg = config or default_settings
    names = []
    if cfg.scrapingbee_key:
        names.append(UpstreamProvider.SCRAPINGBEE.value)
    if cfg.scraperapi_key:
        names.append(UpstreamProvider.SCRAPERAPI.value)
    names.append(UpstreamProvider.DIRECT.value)
    return names


def build_providers(
    config: Optional[Settings] = None,
    client: Optional[SharedHttpClient] = None,
) -> Dict[UpstreamProvider, ScrapingProvider]:
    """키가 설정된 프로바이더만 등록 (Direct는 항상 포함)"""
    cfg = config or default_settings
    providers: Dict[UpstreamProvider, ScrapingProvider] = {}
    if cfg.scrapingbee_key:
        providers[UpstreamProvider.SCRAPINGBEE] = ScrapingBeeProvider(client, cfg)
    if cfg.scraperapi_key:
        providers[UpstreamProvider.SCRAPERAPI] = ScraperApiProvider(client, cfg)
    providers[UpstreamProvider.DIRECT] = DirectFetchProvider(client, cfg)
    logger.info(f"[PROVIDER] Configured providers: {[p.value for p in providers]}")
    return providers
