"""Extraction Result - 요청 하나의 최종 결과 표준 형식"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ExtractionStatus(str, Enum):
    """조회 상태"""

    SUCCESS = "success"  # 제목 또는 가격 확보
    NO_DATA = "no_data"  # 페이지는 정상이지만 추출 실패
    EXHAUSTED = "exhausted"  # 모든 래더 단계 실패
    MALFORMED_URL = "malformed_url"  # 입력 URL 문법 오류
    TIMEOUT = "timeout"  # 라우트 하드 캡 초과
    INTERNAL_ERROR = "internal_error"  # 예상하지 못한 오류


@dataclass
class ExtractionResult:
    """조회 결과 표준 포맷

    Attributes:
        status: 조회 상태
        final_url: 정규화된 상품 URL
        title: 상품명
        price: 최저가 (KRW 정수)
        currency: 통화
        provider: 상품명을 제공한 소스 태그
        reason: 실패 사유
        elapsed_ms: 소요 시간 (밀리초)
        attempts: 래더 단계별 기록
        candidates: 발견한 가격 후보 (정렬됨)
    """

    status: ExtractionStatus
    final_url: Optional[str] = None
    title: Optional[str] = None
    price: Optional[int] = None
    currency: str = "KRW"
    provider: Optional[str] = None

    # 디버깅 정보
    reason: Optional[str] = None
    elapsed_ms: Optional[float] = None
    attempts: List[dict[str, Any]] = field(default_factory=list)
    candidates: List[int] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == ExtractionStatus.SUCCESS

    @property
    def is_client_error(self) -> bool:
        return self.status == ExtractionStatus.MALFORMED_URL

    def debug_info(self) -> dict[str, Any]:
        return {
            "prices": list(self.candidates),
            "attempts": list(self.attempts),
            "elapsed_ms": self.elapsed_ms,
        }

    @classmethod
    def success(
        cls,
        final_url: str,
        title: Optional[str],
        price: Optional[int],
        currency: str,
        provider: Optional[str],
        elapsed_ms: float,
        attempts: Optional[List[dict]] = None,
        candidates: Optional[List[int]] = None,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.SUCCESS,
            final_url=final_url,
            title=title,
            price=price,
            currency=currency,
            provider=provider,
            elapsed_ms=elapsed_ms,
            attempts=attempts or [],
            candidates=candidates or [],
        )

    @classmethod
    def no_data(
        cls, final_url: str, elapsed_ms: float, attempts: Optional[List[dict]] = None,
        provider: Optional[str] = None, reason: Optional[str] = None,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.NO_DATA,
            final_url=final_url,
            provider=provider,
            reason=reason or "No title or price found on the product page",
            elapsed_ms=elapsed_ms,
            attempts=attempts or [],
        )

    @classmethod
    def exhausted(
        cls, final_url: Optional[str], reason: str, elapsed_ms: float,
        attempts: Optional[List[dict]] = None,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.EXHAUSTED,
            final_url=final_url,
            reason=reason,
            elapsed_ms=elapsed_ms,
            attempts=attempts or [],
        )

    @classmethod
    def malformed_url(cls, reason: str, elapsed_ms: float = 0.0) -> "ExtractionResult":
        return cls(status=ExtractionStatus.MALFORMED_URL, reason=reason, elapsed_ms=elapsed_ms)

    @classmethod
    def timeout(cls, elapsed_ms: float, final_url: Optional[str] = None) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.TIMEOUT,
            final_url=final_url,
            reason="Lookup timed out",
            elapsed_ms=elapsed_ms,
        )

    @classmethod
    def internal_error(
        cls, reason: str, elapsed_ms: float, final_url: Optional[str] = None,
        attempts: Optional[List[dict]] = None,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.INTERNAL_ERROR,
            final_url=final_url,
            reason=reason,
            elapsed_ms=elapsed_ms,
            attempts=attempts or [],
        )
