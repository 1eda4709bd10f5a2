"""헬스 체크 / 환경 점검 엔드포인트"""
from datetime import datetime

from fastapi import APIRouter

from pricelink import __version__
from pricelink.core.config import settings
from pricelink.crawlers import configured_provider_names
from pricelink.schemas.product_schema import HealthResponse, PingResponse

router = APIRouter(tags=["health"])


@router.get("/ping")
async def ping():
    """파트너스 키 설정 여부 (키 값은 노출하지 않음)"""
    return PingResponse(has_env=settings.has_affiliate_credentials).model_dump(by_alias=True)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - 설정된 스크래핑 프로바이더 (direct만 있으면 degraded)
    """
    providers = configured_provider_names()
    status = "ok" if len(providers) > 1 else "degraded"
    return HealthResponse(
        status=status,
        timestamp=datetime.now(),
        version=__version__,
        providers=providers,
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": settings.api_title,
        "version": __version__,
        "docs": "/docs",
    }
