"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 스크래핑 프로바이더
    # 키가 비어 있으면 해당 프로바이더를 쓰는 래더 단계는 건너뜁니다.
    scrapingbee_key: str = ""
    scrapingbee_premium: bool = False  # 모든 요청에 premium_proxy 강제 (SCRAPINGBEE_PREMIUM=1)
    scrapingbee_endpoint: str = "https://app.scrapingbee.com/api/v1"
    scraperapi_key: str = ""
    scraperapi_endpoint: str = "https://api.scraperapi.com/"

    # 쿠팡 파트너스
    coupang_access_key: str = ""
    coupang_secret_key: str = ""
    coupang_sub_id: str = ""
    coupang_api_host: str = "api-gateway.coupang.com"
    affiliate_timeout_ms: int = 5000

    # 단축 링크 해제
    short_link_max_hops: int = 5
    short_link_timeout_ms: int = 2000

    # 래더 예산 (서버리스 호스트 제한 6~10초보다 짧게)
    crawler_total_budget_ms: int = 8000
    crawler_min_viable_ms: int = 500  # 남은 시간이 이보다 적으면 다음 단계 시도 안 함
    crawler_safety_margin_ms: int = 200
    crawler_retry_base_delay_ms: int = 300
    crawler_retry_max_delay_ms: int = 1200
    crawler_max_retries: int = 1  # 429/5xx 재시도 횟수

    # 페이지 검증 / 가격 정규화
    crawler_min_html_length: int = 2000
    crawler_max_price: int = 100_000_000
    # 너무 싼 가격(오탐) 배제용 하한. 0이면 비활성화
    crawler_min_price_threshold: int = 0

    # 업스트림 동시 호출 제한 (프로세스 단위)
    crawler_upstream_concurrency: int = 2

    # 비렌더 결과에 제목/가격이 없으면 렌더링 단계로 승격
    crawler_escalate_to_render: bool = True

    # "minimum" | "trusted_minimum"
    crawler_price_selection: str = "minimum"

    crawler_country_code: str = "kr"
    crawler_render_wait_ms: int = 2000
    crawler_render_wait_for: str = 'meta[property="og:title"], script[type="application/ld+json"]'

    crawler_http_impersonate: str = "chrome110"
    crawler_http_max_clients: int = 20
    crawler_desktop_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    )
    crawler_mobile_user_agent: str = (
        "Mozilla/5.0 (Linux; Android 13; SM-S908N) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Mobile Safari/537.36"
    )

    # API
    api_title: str = "쿠팡 상품 정보 서비스"
    api_version: str = "1.0.0"
    api_description: str = "쿠팡 상품 링크에서 상품명과 최저가를 추출하고 파트너스 딥링크를 생성합니다."

    # 래더 예산보다 조금 길게 잡은 라우트 하드 캡
    api_request_timeout_s: float = 9.5
    # true면 래더 소진 → 502, 타임아웃 → 504 (기본은 항상 200 + success:false)
    api_strict_status_codes: bool = False
    api_include_debug: bool = False

    # 로깅
    log_level: str = "INFO"

    @field_validator(
        "crawler_total_budget_ms",
        "crawler_min_viable_ms",
        "crawler_min_html_length",
        "crawler_max_price",
        "short_link_timeout_ms",
        "affiliate_timeout_ms",
    )
    @classmethod
    def validate_positive_ms(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator(
        "crawler_safety_margin_ms",
        "crawler_retry_base_delay_ms",
        "crawler_retry_max_delay_ms",
        "crawler_max_retries",
        "crawler_min_price_threshold",
        "short_link_max_hops",
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must be >= 0")
        return v

    @field_validator("crawler_upstream_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("crawler_upstream_concurrency must be positive")
        return v

    @field_validator("crawler_price_selection")
    @classmethod
    def validate_price_selection(cls, v: str) -> str:
        if v not in ("minimum", "trusted_minimum"):
            raise ValueError("crawler_price_selection must be 'minimum' or 'trusted_minimum'")
        return v

    @property
    def has_affiliate_credentials(self) -> bool:
        return bool(self.coupang_access_key and self.coupang_secret_key and self.coupang_sub_id)

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
