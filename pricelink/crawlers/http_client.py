"""공유 HTTP 클라이언트 (curl_cffi)

- 요청마다 AsyncSession을 만들면 TLS/커넥션 오버헤드가 커져서
  타임아웃/지연이 악화될 수 있어 프로세스 단위로 세션을 재사용합니다.
- 모든 호출은 asyncio.wait_for로 감싸 데드라인에 취소됩니다.
- 앱 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from curl_cffi.requests import AsyncSession
from curl_cffi.requests.exceptions import RequestException, Timeout

from pricelink.core.config import settings
from pricelink.core.exceptions import NetworkTimeoutException, UpstreamTransportException
from pricelink.core.logging import logger, redact_url


@dataclass
class HttpResponse:
    status_code: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class SharedHttpClient:
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None

    async def _ensure_session(self) -> AsyncSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            self._session = AsyncSession(
                impersonate=settings.crawler_http_impersonate,
                headers=self.default_headers(),
                max_clients=settings.crawler_http_max_clients,
                trust_env=False,
            )
            return self._session

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": settings.crawler_desktop_user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        }

    async def request(
        self,
        method: str,
        url: str,
        *,
        timeout_s: float,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[Any] = None,
        follow_redirects: bool = True,
    ) -> HttpResponse:
        """단일 HTTP 요청

        Raises:
            NetworkTimeoutException: 타임아웃
            UpstreamTransportException: 연결 실패 등
        """
        sess = await self._ensure_session()
        operation = f"{method} {redact_url(url)[:80]}"
        timeout_ms = int(timeout_s * 1000)
        try:
            resp = await asyncio.wait_for(
                sess.request(
                    method,
                    url,
                    headers=dict(headers) if headers else None,
                    params=dict(params) if params else None,
                    json=json,
                    timeout=timeout_s,
                    allow_redirects=follow_redirects,
                ),
                timeout=timeout_s,
            )
        except (asyncio.TimeoutError, Timeout) as e:
            logger.info(f"[HTTP_CLIENT] {operation} timed out after {timeout_ms}ms")
            raise NetworkTimeoutException(operation, timeout_ms) from e
        except RequestException as e:
            logger.info(f"[HTTP_CLIENT] {operation} failed: {type(e).__name__}: {redact_url(repr(e))}")
            raise UpstreamTransportException(operation, type(e).__name__) from e

        return HttpResponse(
            status_code=resp.status_code,
            text=resp.text or "",
            headers=dict(resp.headers),
        )

    async def get_text(
        self,
        url: str,
        *,
        timeout_s: float,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        return await self.request("GET", url, timeout_s=timeout_s, headers=headers, params=params)

    async def head_location(self, url: str, *, timeout_s: float) -> Optional[str]:
        """리다이렉트를 따르지 않고 Location 헤더만 읽습니다."""
        resp = await self.request("HEAD", url, timeout_s=timeout_s, follow_redirects=False)
        return resp.header("location")

    async def post_json(
        self,
        url: str,
        *,
        timeout_s: float,
        payload: Any,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        return await self.request("POST", url, timeout_s=timeout_s, headers=headers, json=payload)

    async def close(self) -> None:
        async with self._lock:
            if self._session is None:
                return
            try:
                await self._session.close()
            except RequestException as e:
                logger.debug(f"[HTTP_CLIENT] close failed: {type(e).__name__}")
            self._session = None


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
