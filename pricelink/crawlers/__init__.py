"""Coupang page fetching (scraping providers + curl_cffi).

공개 API는 이 파일에서만 export합니다.
"""

from .http_client import HttpResponse, SharedHttpClient, get_shared_http_client, shutdown_shared_http_client
from .providers import (
    DirectFetchProvider,
    ScraperApiProvider,
    ScrapingBeeProvider,
    ScrapingProvider,
    build_providers,
    configured_provider_names,
)
from .result import DeviceProfile, FetchAttemptSpec, ProxyTier, RawPage, UpstreamProvider

__all__ = [
    "HttpResponse",
    "SharedHttpClient",
    "get_shared_http_client",
    "shutdown_shared_http_client",
    "ScrapingProvider",
    "ScrapingBeeProvider",
    "ScraperApiProvider",
    "DirectFetchProvider",
    "build_providers",
    "configured_provider_names",
    "DeviceProfile",
    "FetchAttemptSpec",
    "ProxyTier",
    "RawPage",
    "UpstreamProvider",
]
