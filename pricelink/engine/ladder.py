"""Fetch Ladder - 시간 예산 안에서 페치 전략을 순서대로 시도

- 단계는 순차 실행 (병렬 팬아웃은 같은 업스트림의 429를 키움)
- 단계마다 min(명목 타임아웃, 남은 예산 - 여유)로 잘라 asyncio.wait_for로 취소
- 429/5xx는 지수 백오프 후 1회 재시도
- 받은 페이지는 검증하고, 차단/빈 페이지면 다음 단계로
- 업스트림 동시 호출은 주입받은 세마포어로 제한
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, asdict
from time import monotonic
from typing import Awaitable, Callable, List, Mapping, Optional, Sequence

from pricelink.core.config import settings
from pricelink.core.exceptions import (
    AllStrategiesExhaustedException,
    BlockedPageException,
    NetworkTimeoutException,
    PriceLinkException,
)
from pricelink.core.logging import logger
from pricelink.crawlers.boundary import find_invalid_reason
from pricelink.crawlers.providers import ScrapingProvider
from pricelink.crawlers.result import FetchAttemptSpec, RawPage, UpstreamProvider

from .budget import BudgetManager
from .strategy import DEFAULT_LADDER, ExecutionStrategy


Sleep = Callable[[float], Awaitable[None]]


@dataclass
class AttemptRecord:
    """래더 단계 하나의 결과 (디버깅/관측용)"""

    step: str
    outcome: str  # "ok" | "failed" | "skipped"
    reason: Optional[str] = None
    elapsed_ms: float = 0.0
    retries: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class FetchLadder:
    """전략 래더 실행기

    Usage:
        ladder = FetchLadder(build_providers(), limiter=asyncio.Semaphore(2))
        budget = BudgetManager(BudgetConfig.from_settings())
        budget.start()
        page = await ladder.fetch(url, budget)
    """

    def __init__(
        self,
        providers: Mapping[UpstreamProvider, ScrapingProvider],
        steps: Sequence[FetchAttemptSpec] = DEFAULT_LADDER,
        *,
        limiter: Optional[asyncio.Semaphore] = None,
        strategy: Optional[ExecutionStrategy] = None,
        sleep: Sleep = asyncio.sleep,
        min_html_length: Optional[int] = None,
    ):
        if not steps:
            raise ValueError("ladder must have at least one step")
        self.providers = dict(providers)
        self.steps = tuple(steps)
        self.limiter = limiter or asyncio.Semaphore(settings.crawler_upstream_concurrency)
        self.strategy = strategy or ExecutionStrategy()
        self._sleep = sleep
        self.min_html_length = min_html_length

    async def fetch(
        self,
        url: str,
        budget: BudgetManager,
        steps: Optional[Sequence[FetchAttemptSpec]] = None,
        attempts: Optional[List[AttemptRecord]] = None,
    ) -> RawPage:
        """첫 번째로 검증을 통과한 페이지 반환

        Args:
            url: 정규화된 상품 URL
            budget: start()된 요청 예산 (단계 간 공유)
            steps: 이번 호출에 쓸 단계 (기본: 생성 시 지정한 래더)
            attempts: 주어지면 단계별 기록을 덧붙임

        Raises:
            AllStrategiesExhaustedException: 모든 단계 실패 또는 예산 소진
        """
        records = attempts if attempts is not None else []
        reasons: List[str] = []

        for spec in steps or self.steps:
            if budget.is_exhausted():
                reason = f"budget exhausted ({budget.remaining_ms():.0f}ms left)"
                records.append(AttemptRecord(spec.label, "skipped", reason))
                reasons.append(f"{spec.label}: {reason}")
                logger.info(f"[LADDER] Stopping before {spec.label}: {reason}")
                break

            provider = self.providers.get(spec.provider)
            if provider is None:
                records.append(AttemptRecord(spec.label, "skipped", "provider not configured"))
                logger.debug(f"[LADDER] {spec.label} skipped: provider not configured")
                continue

            started = monotonic()
            record = AttemptRecord(spec.label, "failed")
            try:
                page = await self._run_step(url, spec, provider, budget, record)
            except PriceLinkException as e:
                record.reason = e.message
                record.elapsed_ms = round((monotonic() - started) * 1000, 1)
                records.append(record)
                reasons.append(f"{spec.label}: {e.message}")
                logger.info(f"[LADDER] {spec.label} failed in {record.elapsed_ms:.0f}ms: {e.message}")
                continue
            finally:
                budget.checkpoint(spec.label)

            record.outcome = "ok"
            record.elapsed_ms = page.elapsed_ms
            records.append(record)
            logger.info(f"[LADDER] {spec.label} OK (len={len(page.html)}, {page.elapsed_ms:.0f}ms)")
            return page

        if not reasons:
            reasons.append("no configured provider for any ladder step")
        raise AllStrategiesExhaustedException(reasons)

    async def _run_step(
        self,
        url: str,
        spec: FetchAttemptSpec,
        provider: ScrapingProvider,
        budget: BudgetManager,
        record: AttemptRecord,
    ) -> RawPage:
        started = monotonic()
        attempt = 0
        while True:
            timeout_ms = budget.attempt_timeout_ms(spec.timeout_ms)
            if timeout_ms <= 0:
                raise NetworkTimeoutException(spec.label, 0)

            try:
                html = await self._call(provider, url, spec, timeout_ms)
            except PriceLinkException as e:
                if not self.strategy.is_retryable(e) or attempt >= self.strategy.max_retries:
                    raise
                delay_ms = self.strategy.retry_delay_ms(attempt)
                if not budget.can_afford(delay_ms):
                    raise
                logger.info(f"[LADDER] {spec.label} {e.error_code}, retrying in {delay_ms}ms")
                await self._sleep(delay_ms / 1000.0)
                attempt += 1
                record.retries = attempt
                continue

            reason = find_invalid_reason(html, self.min_html_length)
            if reason:
                raise BlockedPageException(reason)

            return RawPage(
                html=html,
                spec=spec,
                elapsed_ms=round((monotonic() - started) * 1000, 1),
            )

    async def _call(
        self,
        provider: ScrapingProvider,
        url: str,
        spec: FetchAttemptSpec,
        timeout_ms: int,
    ) -> str:
        timeout_s = timeout_ms / 1000.0

        async def guarded() -> str:
            # 세마포어 대기 시간도 단계 타임아웃에 포함
            async with self.limiter:
                return await provider.fetch(url, spec, timeout_s=timeout_s)

        try:
            return await asyncio.wait_for(guarded(), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            raise NetworkTimeoutException(spec.label, timeout_ms) from e
