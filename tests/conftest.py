"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 주입 (프로바이더, 리다이렉트 클라이언트, HTTP 클라이언트, sleep)

금지:
- 실제 네트워크 호출
"""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from pricelink.crawlers.http_client import HttpResponse  # noqa: E402
from pricelink.crawlers.result import FetchAttemptSpec, UpstreamProvider  # noqa: E402
from pricelink.engine.budget import BudgetConfig, BudgetManager  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


Response = Union[str, Exception]


class FakeProvider:
    """래더 Unit 테스트용 프로바이더

    - responses가 list면 순서대로 소비하고 마지막 항목을 계속 반복
    - callable이면 spec을 받아 HTML 또는 예외를 반환
    - Exception 항목은 raise
    """

    def __init__(
        self,
        name: UpstreamProvider,
        responses: Union[list[Response], Callable[[FetchAttemptSpec], Response]],
        delay_s: float = 0.0,
    ):
        self.name = name
        self._responses = responses
        self.delay_s = delay_s
        self.calls: list[dict[str, Any]] = []

    async def fetch(self, url: str, spec: FetchAttemptSpec, *, timeout_s: float) -> str:
        self.calls.append({"url": url, "spec": spec, "timeout_s": timeout_s})
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if callable(self._responses):
            item = self._responses(spec)
        elif len(self._responses) > 1:
            item = self._responses.pop(0)
        else:
            item = self._responses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    return FakeProvider


@dataclass
class RecordingSleep:
    """실제로 기다리지 않는 sleep (지연 값만 기록)"""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def no_sleep() -> RecordingSleep:
    return RecordingSleep()


@dataclass
class FakeRedirectClient:
    """단축 링크 해제용 HEAD 클라이언트

    locations: url → Location 헤더 (없으면 None)
    error: 설정되면 모든 호출에서 raise
    latency_ratio: 각 호출이 timeout_s × latency_ratio 초 동안 걸림
    on_call: 호출마다 timeout_s를 받아 실행 (FakeClock 전진 등)
    """

    locations: dict[str, str] = field(default_factory=dict)
    error: Optional[Exception] = None
    latency_ratio: float = 0.0
    on_call: Optional[Callable[[float], None]] = None
    calls: list[str] = field(default_factory=list)
    timeouts: list[float] = field(default_factory=list)

    async def head_location(self, url: str, *, timeout_s: float) -> Optional[str]:
        self.calls.append(url)
        self.timeouts.append(timeout_s)
        if self.on_call is not None:
            self.on_call(timeout_s)
        if self.latency_ratio:
            await asyncio.sleep(timeout_s * self.latency_ratio)
        if self.error is not None:
            raise self.error
        return self.locations.get(url)


@pytest.fixture
def redirect_client() -> FakeRedirectClient:
    return FakeRedirectClient()


@dataclass
class FakeHttpClient:
    """SharedHttpClient 대역 (get_text / post_json 호출 기록)"""

    response: HttpResponse = field(default_factory=lambda: HttpResponse(200, ""))
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def get_text(self, url, *, timeout_s, headers=None, params=None) -> HttpResponse:
        self.calls.append({"method": "GET", "url": url, "timeout_s": timeout_s,
                           "headers": headers, "params": params})
        return self.response

    async def post_json(self, url, *, timeout_s, payload, headers=None) -> HttpResponse:
        self.calls.append({"method": "POST", "url": url, "timeout_s": timeout_s,
                           "headers": headers, "json": payload})
        return self.response


@pytest.fixture
def fake_http_client() -> FakeHttpClient:
    return FakeHttpClient()


class FakeClock:
    """BudgetManager용 수동 시계 (초 단위)"""

    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def started_budget() -> Callable[..., BudgetManager]:
    """실제 시계를 쓰는 start()된 예산"""

    def _make(total_budget_ms: int = 8000, min_viable_ms: int = 500, safety_margin_ms: int = 200) -> BudgetManager:
        budget = BudgetManager(BudgetConfig(total_budget_ms, min_viable_ms, safety_margin_ms))
        budget.start()
        return budget

    return _make
