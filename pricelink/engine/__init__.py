"""Engine Layer - 조회 파이프라인 오케스트레이션

This module provides the core engine layer:
- ProductInfoOrchestrator: Main entry point for a product lookup
- FetchLadder: Time-budgeted fallback across fetch strategies
- BudgetManager: Per-request time budget
- ExecutionStrategy: Retry / render escalation decisions
- Selection: Title priority and lowest-price policy
- ExtractionResult: Standardized result format
"""

from .budget import BudgetConfig, BudgetManager
from .ladder import AttemptRecord, FetchLadder
from .orchestrator import ProductInfoOrchestrator, parse_page
from .result import ExtractionResult, ExtractionStatus
from .selection import Selection, SelectionPolicy, select_price, select_result
from .strategy import DEFAULT_LADDER, RENDER_LADDER, ExecutionStrategy, render_steps

__all__ = [
    "ProductInfoOrchestrator",
    "parse_page",
    "FetchLadder",
    "AttemptRecord",
    "BudgetManager",
    "BudgetConfig",
    "ExtractionResult",
    "ExtractionStatus",
    "Selection",
    "SelectionPolicy",
    "select_price",
    "select_result",
    "ExecutionStrategy",
    "DEFAULT_LADDER",
    "RENDER_LADDER",
    "render_steps",
]
