"""Execution Strategy - 래더 구성과 재시도/승격 결정

사이트는 렌더링 여부와 디바이스에 따라 다른 마크업을 내주고 429/봇 차단이 잦아
싸고 빠른 단계부터 비싼 단계 순으로 시도합니다.
"""

from typing import Optional, Sequence, Tuple

from pricelink.core.config import Settings, settings
from pricelink.core.exceptions import UpstreamRateLimitedException, UpstreamServerException
from pricelink.crawlers.boundary import ParsedInfo
from pricelink.crawlers.result import DeviceProfile, FetchAttemptSpec, ProxyTier, UpstreamProvider


Ladder = Tuple[FetchAttemptSpec, ...]

DEFAULT_LADDER: Ladder = (
    FetchAttemptSpec(False, DeviceProfile.DESKTOP, ProxyTier.STANDARD, 2500, UpstreamProvider.SCRAPINGBEE),
    FetchAttemptSpec(False, DeviceProfile.MOBILE, ProxyTier.STANDARD, 2500, UpstreamProvider.SCRAPINGBEE),
    FetchAttemptSpec(True, DeviceProfile.DESKTOP, ProxyTier.PREMIUM, 6500, UpstreamProvider.SCRAPINGBEE),
    FetchAttemptSpec(True, DeviceProfile.MOBILE, ProxyTier.PREMIUM, 6500, UpstreamProvider.SCRAPINGBEE),
    FetchAttemptSpec(True, DeviceProfile.DESKTOP, ProxyTier.PREMIUM, 6500, UpstreamProvider.SCRAPERAPI),
    # 프로바이더 없이 직접 요청 (최후 수단)
    FetchAttemptSpec(False, DeviceProfile.DESKTOP, ProxyTier.STANDARD, 2500, UpstreamProvider.DIRECT),
)


def render_steps(ladder: Sequence[FetchAttemptSpec]) -> Ladder:
    return tuple(step for step in ladder if step.render)


# JS-heavy 페이지용 (느린 엔드포인트, 승격)
RENDER_LADDER: Ladder = render_steps(DEFAULT_LADDER)


class ExecutionStrategy:
    """재시도 / 렌더링 승격 결정

    Usage:
        strategy = ExecutionStrategy()

        if strategy.is_retryable(error) and attempt < strategy.max_retries:
            await sleep(strategy.retry_delay_ms(attempt) / 1000)
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        max_delay_ms: Optional[int] = None,
        config: Optional[Settings] = None,
    ):
        cfg = config or settings
        self.max_retries = cfg.crawler_max_retries if max_retries is None else max_retries
        self.base_delay_ms = cfg.crawler_retry_base_delay_ms if base_delay_ms is None else base_delay_ms
        self.max_delay_ms = cfg.crawler_retry_max_delay_ms if max_delay_ms is None else max_delay_ms

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        """429 / 5xx만 같은 단계에서 재시도"""
        return isinstance(error, (UpstreamRateLimitedException, UpstreamServerException))

    def retry_delay_ms(self, attempt: int) -> int:
        """지수 백오프 (attempt는 0부터)"""
        return int(min(self.max_delay_ms, self.base_delay_ms * (2 ** attempt)))

    @staticmethod
    def should_escalate_to_render(step: FetchAttemptSpec, parsed: ParsedInfo) -> bool:
        """비렌더 결과에 제목이나 가격이 빠져 있으면 렌더링 단계로 승격"""
        if step.render:
            return False
        return parsed.title is None or not parsed.has_price
