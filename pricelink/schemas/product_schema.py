"""Pydantic 스키마 정의

응답 필드는 프론트엔드가 쓰는 camelCase 이름(finalUrl, originalLink 등)으로 직렬화합니다.
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductInfoRequest(BaseModel):
    """상품 정보 조회 요청

    url이 빠진 요청도 모델 단계에서는 통과시키고 라우트에서 400으로 응답합니다.
    """
    url: Optional[str] = Field(None, max_length=2048, description="쿠팡 상품 링크 (단축 링크 허용)")

    @field_validator("url")
    @classmethod
    def strip_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class DeeplinkRequest(ProductInfoRequest):
    """딥링크 생성 요청"""


class ProductInfoResponse(BaseModel):
    """상품 정보 조회 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(..., description="제목 또는 가격을 찾았는지 여부")
    final_url: Optional[str] = Field(None, alias="finalUrl", description="정규화된 상품 URL")
    title: Optional[str] = Field(None, description="상품명")
    price: Optional[int] = Field(None, ge=0, description="최저가 (KRW)")
    currency: str = Field("KRW", description="통화")
    provider: Optional[str] = Field(None, description="상품명을 제공한 소스")
    error: Optional[str] = Field(None, description="실패 사유 (success=false일 때)")
    debug: Optional[dict[str, Any]] = Field(None, description="가격 후보 / 단계 기록")

    def to_payload(self) -> dict[str, Any]:
        """JSON 응답 본문. title/price는 null로 유지하고 나머지 빈 필드는 생략합니다."""
        payload = self.model_dump(by_alias=True)
        for key in ("finalUrl", "error", "debug"):
            if payload.get(key) is None:
                payload.pop(key, None)
        return payload


class DeeplinkResponse(BaseModel):
    """딥링크 생성 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    original_link: Optional[str] = Field(None, alias="originalLink")
    short_link: Optional[str] = Field(None, alias="shortLink")
    landing_url: Optional[str] = Field(None, alias="landingUrl")
    error: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        if payload.get("error") is None:
            payload.pop("error", None)
        return payload


class PingResponse(BaseModel):
    """환경 변수 점검 응답"""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    has_env: bool = Field(..., alias="hasEnv", description="파트너스 키 3종 설정 여부")


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    providers: list[str] = Field(default_factory=list, description="설정된 스크래핑 프로바이더")
