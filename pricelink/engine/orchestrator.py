"""Product Info Orchestrator - 조회 파이프라인의 진입점

Coordinates the lookup pipeline:
1. URL 정규화 (단축 링크 해제, 추적 파라미터 제거)
2. Fetch Ladder (싼 단계부터)
3. 다중 소스 파싱 + 문서 전체 2차 스캔
4. 비렌더 결과가 부족하면 같은 예산 안에서 렌더링 단계로 승격
5. 선택 (제목 우선순위, 가격 최솟값)

어떤 예외도 밖으로 내보내지 않고 상태가 담긴 ExtractionResult로 변환합니다.
"""

from typing import List, Optional, Sequence

from pricelink.core.config import settings
from pricelink.core.exceptions import (
    AllStrategiesExhaustedException,
    MalformedUrlException,
    NoDataExtractedException,
)
from pricelink.core.logging import logger
from pricelink.crawlers.boundary import ParsedInfo, parse_product_info, scan_fallback_candidates
from pricelink.crawlers.result import FetchAttemptSpec, RawPage
from pricelink.utils.url_utils import UrlNormalizer

from .budget import BudgetConfig, BudgetManager
from .ladder import AttemptRecord, FetchLadder
from .result import ExtractionResult
from .selection import SelectionPolicy, select_result
from .strategy import RENDER_LADDER, ExecutionStrategy, render_steps


def parse_page(page: RawPage) -> ParsedInfo:
    """페이지 파싱 + 2차 스캔 후보 병합"""
    return parse_product_info(page.html).with_candidates(scan_fallback_candidates(page.html))


class ProductInfoOrchestrator:
    """상품 정보 조회 오케스트레이터

    예산은 요청마다 새로 만들어 동시 요청끼리 공유하지 않습니다.

    Usage:
        orchestrator = ProductInfoOrchestrator(ladder)
        result = await orchestrator.lookup("https://link.coupang.com/a/xxxx")
        if result.is_success:
            print(result.title, result.price)
    """

    def __init__(
        self,
        ladder: FetchLadder,
        normalizer: Optional[UrlNormalizer] = None,
        budget_config: Optional[BudgetConfig] = None,
        *,
        escalate_to_render: Optional[bool] = None,
        selection_policy: Optional[SelectionPolicy] = None,
    ):
        """
        Args:
            ladder: 페치 래더
            normalizer: URL 정규화기 (기본: 공유 HTTP 클라이언트 사용)
            budget_config: 요청 예산 (기본: settings)
            escalate_to_render: 비렌더 결과 부족 시 렌더링 승격 여부
            selection_policy: 가격 선택 정책
        """
        if ladder is None:
            raise ValueError("ladder must not be None")

        self.ladder = ladder
        self.normalizer = normalizer or UrlNormalizer()
        self.budget_config = budget_config or BudgetConfig.from_settings()
        self.escalate_to_render = (
            settings.crawler_escalate_to_render if escalate_to_render is None else escalate_to_render
        )
        self.selection_policy = selection_policy or SelectionPolicy(settings.crawler_price_selection)
        self.render_steps: Sequence[FetchAttemptSpec] = render_steps(ladder.steps) or RENDER_LADDER

    async def lookup(self, raw_url: str, render_only: bool = False) -> ExtractionResult:
        """상품 링크 하나 조회

        Args:
            raw_url: 사용자가 붙여 넣은 링크
            render_only: True면 렌더링 단계만 사용 (느린 엔드포인트)

        Returns:
            ExtractionResult: 항상 반환 (예외 없음)
        """
        budget = BudgetManager(self.budget_config)
        budget.start()
        records: List[AttemptRecord] = []
        final_url: Optional[str] = None

        try:
            normalized = await self.normalizer.normalize(raw_url, budget)
            final_url = normalized.url
            budget.checkpoint("normalized")
            logger.info(f"[ORCHESTRATOR] Lookup started: {final_url} (render_only={render_only})")

            steps = self.render_steps if render_only else self.ladder.steps
            page = await self.ladder.fetch(final_url, budget, steps=steps, attempts=records)
            parsed = [parse_page(page)]

            if self.escalate_to_render and ExecutionStrategy.should_escalate_to_render(page.spec, parsed[0]):
                escalated = await self._escalate(final_url, budget, records)
                if escalated is not None:
                    parsed.append(escalated)

            selection = select_result(parsed, self.selection_policy)
            attempts = [r.to_dict() for r in records]

            if not selection.has_data:
                error = NoDataExtractedException(final_url)
                logger.warning(f"[ORCHESTRATOR] {error}")
                return ExtractionResult.no_data(
                    final_url=final_url,
                    elapsed_ms=budget.elapsed_ms(),
                    attempts=attempts,
                    provider=selection.provider,
                    reason=error.message,
                )

            logger.info(
                f"[ORCHESTRATOR] Lookup completed: title={'yes' if selection.title else 'no'} "
                f"price={selection.price} provider={selection.provider} "
                f"elapsed={budget.elapsed_ms():.0f}ms"
            )
            return ExtractionResult.success(
                final_url=final_url,
                title=selection.title,
                price=selection.price,
                currency=selection.currency,
                provider=selection.provider,
                elapsed_ms=budget.elapsed_ms(),
                attempts=attempts,
                candidates=selection.candidates,
            )

        except MalformedUrlException as e:
            logger.info(f"[ORCHESTRATOR] Rejected input: {e.message}")
            return ExtractionResult.malformed_url(e.message, budget.elapsed_ms())
        except AllStrategiesExhaustedException as e:
            logger.warning(f"[ORCHESTRATOR] {e.message} (elapsed={budget.elapsed_ms():.0f}ms)")
            return ExtractionResult.exhausted(
                final_url=final_url,
                reason=e.message,
                elapsed_ms=budget.elapsed_ms(),
                attempts=[r.to_dict() for r in records],
            )
        except Exception as e:
            logger.error(f"[ORCHESTRATOR] Lookup failed: error={type(e).__name__}", exc_info=True)
            return ExtractionResult.internal_error(
                reason=f"{type(e).__name__}: {e}",
                elapsed_ms=budget.elapsed_ms(),
                final_url=final_url,
                attempts=[r.to_dict() for r in records],
            )

    async def _escalate(
        self,
        final_url: str,
        budget: BudgetManager,
        records: List[AttemptRecord],
    ) -> Optional[ParsedInfo]:
        """렌더링 단계로 재시도. 실패해도 첫 결과는 유지합니다."""
        if budget.is_exhausted():
            logger.info("[ORCHESTRATOR] Render escalation skipped: budget exhausted")
            return None

        failed = {r.step for r in records if r.outcome == "failed"}
        steps = [spec for spec in self.render_steps if spec.label not in failed]
        if not steps:
            logger.info("[ORCHESTRATOR] Render escalation skipped: every render step already failed")
            return None

        logger.info(f"[ORCHESTRATOR] Escalating to render (remaining={budget.remaining_ms():.0f}ms)")
        try:
            page = await self.ladder.fetch(final_url, budget, steps=steps, attempts=records)
        except AllStrategiesExhaustedException as e:
            logger.info(f"[ORCHESTRATOR] Render escalation failed: {e.message}")
            return None
        return parse_page(page)
