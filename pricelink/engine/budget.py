"""Budget Manager - 요청 단위 시간 예산 관리

서버리스 호스트의 하드 제한(6~10초)보다 먼저 통제된 응답을 돌려주기 위해
래더의 모든 단계가 하나의 예산을 공유합니다.

예산 구조 (기본값):
- 전체: 8000ms
- 단계 타임아웃: min(명목 타임아웃, 남은 시간 - 안전 여유 200ms)
- 남은 시간이 500ms 미만이면 다음 단계를 시도하지 않음
"""

from dataclasses import dataclass
from time import monotonic
from typing import Callable, Optional

from pricelink.core.config import Settings, settings


@dataclass
class BudgetConfig:
    """예산 설정 (밀리초)"""

    total_budget_ms: int = 8000
    min_viable_ms: int = 500  # 단계를 시작할 최소 남은 시간
    safety_margin_ms: int = 200  # 단계 타임아웃에서 빼 두는 여유

    def __post_init__(self):
        """설정 검증"""
        if self.total_budget_ms <= 0:
            raise ValueError(f"total_budget_ms must be positive: {self.total_budget_ms}")
        if self.min_viable_ms < 0 or self.safety_margin_ms < 0:
            raise ValueError("min_viable_ms and safety_margin_ms must be >= 0")
        if self.min_viable_ms >= self.total_budget_ms:
            raise ValueError(
                f"min_viable_ms ({self.min_viable_ms}) must be smaller than total budget ({self.total_budget_ms})"
            )

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "BudgetConfig":
        cfg = config or settings
        return cls(
            total_budget_ms=cfg.crawler_total_budget_ms,
            min_viable_ms=cfg.crawler_min_viable_ms,
            safety_margin_ms=cfg.crawler_safety_margin_ms,
        )


class BudgetManager:
    """요청 하나의 시간 예산 관리자

    Usage:
        budget = BudgetManager(BudgetConfig(total_budget_ms=8000))
        budget.start()

        timeout_ms = budget.attempt_timeout_ms(2500)
        budget.checkpoint("scrapingbee/desktop/no-render/standard")

        if budget.is_exhausted():
            ...

        report = budget.get_report()
    """

    def __init__(self, config: Optional[BudgetConfig] = None, clock: Callable[[], float] = monotonic):
        self.config = config or BudgetConfig()
        self._clock = clock
        self.start_time: Optional[float] = None
        self._checkpoints: dict[str, float] = {}

    def start(self) -> None:
        """예산 측정 시작"""
        self.start_time = self._clock()
        self._checkpoints.clear()

    def checkpoint(self, name: str) -> None:
        """체크포인트 기록

        Raises:
            RuntimeError: start()가 호출되지 않은 경우
        """
        if self.start_time is None:
            raise RuntimeError("Budget not started. Call start() first.")
        self._checkpoints[name] = round(self.elapsed_ms(), 1)

    def elapsed_ms(self) -> float:
        """경과 시간 (start() 전에는 0.0)"""
        if self.start_time is None:
            return 0.0
        return (self._clock() - self.start_time) * 1000.0

    def remaining_ms(self) -> float:
        """남은 예산 (음수가 되지 않음)"""
        return max(0.0, self.config.total_budget_ms - self.elapsed_ms())

    def is_exhausted(self) -> bool:
        return self.remaining_ms() < self.config.min_viable_ms

    def attempt_timeout_ms(self, nominal_ms: int) -> int:
        """단계에 적용할 타임아웃

        명목 타임아웃과 (남은 예산 - 안전 여유) 중 작은 값. 0이면 시도할 수 없음.
        """
        usable = self.remaining_ms() - self.config.safety_margin_ms
        return max(0, int(min(nominal_ms, usable)))

    def can_afford(self, delay_ms: float) -> bool:
        """delay_ms를 기다린 뒤에도 최소 실행 시간이 남는지 여부"""
        return self.remaining_ms() - delay_ms >= self.config.min_viable_ms

    def get_report(self) -> dict:
        """예산 사용 리포트

        Returns:
            dict: total_budget_ms, elapsed_ms, remaining_ms, checkpoints, is_exhausted
        """
        return {
            "total_budget_ms": self.config.total_budget_ms,
            "elapsed_ms": round(self.elapsed_ms(), 1),
            "remaining_ms": round(self.remaining_ms(), 1),
            "checkpoints": self._checkpoints.copy(),
            "is_exhausted": self.is_exhausted(),
        }
