"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional, Sequence


class PriceLinkException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# URL 관련 예외
class MalformedUrlException(PriceLinkException):
    """URL로 파싱할 수 없는 입력 (재시도 없음, 4xx)"""
    def __init__(self, url: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Malformed URL: {reason}"
        super().__init__(message, "MALFORMED_URL", details or {"url": url, "reason": reason})


class ShortLinkResolutionException(PriceLinkException):
    """단축 링크 리다이렉트 추적 중 네트워크 오류 (정규화기 내부에서 복구)"""
    def __init__(self, url: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Short link resolution failed: {reason}"
        super().__init__(message, "SHORT_LINK_FAILED", details or {"url": url, "reason": reason})


# 업스트림(스크래핑 프로바이더) 관련 예외
class UpstreamException(PriceLinkException):
    """업스트림 호출 실패의 기본 클래스 - 래더 단계 실패로 처리"""
    def __init__(self, message: str, error_code: str = "UPSTREAM_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "UPSTREAM_ERROR", details)


class UpstreamRateLimitedException(UpstreamException):
    """HTTP 429 - 1회 백오프 재시도 후 다음 단계"""
    def __init__(self, provider: str, details: Optional[dict[str, Any]] = None):
        message = f"{provider} upstream rate limited (HTTP 429)"
        super().__init__(message, "UPSTREAM_RATE_LIMITED", details or {"provider": provider, "status_code": 429})


class UpstreamServerException(UpstreamException):
    """HTTP 5xx - 1회 백오프 재시도 후 다음 단계"""
    def __init__(self, provider: str, status_code: int, details: Optional[dict[str, Any]] = None):
        message = f"{provider} upstream server error (HTTP {status_code})"
        super().__init__(message, "UPSTREAM_SERVER_ERROR",
                        details or {"provider": provider, "status_code": status_code})


class UpstreamHttpException(UpstreamException):
    """그 외 non-2xx 응답"""
    def __init__(self, provider: str, status_code: int, body: str = "", details: Optional[dict[str, Any]] = None):
        short = body[:300] + "..." if len(body) > 300 else body
        message = f"{provider} returned HTTP {status_code} {short}".rstrip()
        super().__init__(message, "UPSTREAM_HTTP_ERROR",
                        details or {"provider": provider, "status_code": status_code})


class UpstreamTransportException(UpstreamException):
    """연결 실패 등 전송 계층 오류"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Transport error during '{operation}': {reason}"
        super().__init__(message, "UPSTREAM_TRANSPORT_ERROR",
                        details or {"operation": operation, "reason": reason})


class NetworkTimeoutException(UpstreamException):
    """네트워크 타임아웃 예외"""
    def __init__(self, operation: str, timeout_ms: int, details: Optional[dict[str, Any]] = None):
        message = f"Network timeout during '{operation}' after {timeout_ms}ms"
        super().__init__(message, "NETWORK_TIMEOUT",
                        details or {"operation": operation, "timeout_ms": timeout_ms})


# 페이지/추출 관련 예외
class BlockedPageException(PriceLinkException):
    """전송은 성공했지만 내용 검증에 실패한 페이지 (봇 차단/빈 페이지)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Blocked or empty page: {reason}"
        super().__init__(message, "BLOCKED_PAGE", details or {"reason": reason})


class AllStrategiesExhaustedException(PriceLinkException):
    """모든 래더 단계 실패 또는 예산 소진 (요청 종료, 예외적 상황 아님)"""
    def __init__(self, reasons: Sequence[str], details: Optional[dict[str, Any]] = None):
        self.reasons = list(reasons)
        joined = " | ".join(self.reasons) if self.reasons else "no strategy attempted"
        message = f"All fetch strategies failed: {joined}"
        super().__init__(message, "ALL_STRATEGIES_EXHAUSTED", details or {"reasons": self.reasons})


class NoDataExtractedException(PriceLinkException):
    """페이지는 정상이지만 어떤 소스에서도 상품명/가격을 찾지 못함"""
    def __init__(self, url: str, details: Optional[dict[str, Any]] = None):
        message = f"No title or price found for {url}"
        super().__init__(message, "NO_DATA_EXTRACTED", details or {"url": url})


# 쿠팡 파트너스 관련 예외
class AffiliateConfigException(PriceLinkException):
    """파트너스 키 미설정"""
    def __init__(self, missing: Sequence[str], details: Optional[dict[str, Any]] = None):
        message = f"Coupang Partners credentials missing: {', '.join(missing)}"
        super().__init__(message, "AFFILIATE_NOT_CONFIGURED", details or {"missing": list(missing)})


class AffiliateApiException(PriceLinkException):
    """딥링크 API 오류 응답"""
    def __init__(self, reason: str, status_code: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        message = f"Coupang Partners API failed: {reason}"
        super().__init__(message, "AFFILIATE_API_ERROR",
                        details or {"reason": reason, "status_code": status_code})
