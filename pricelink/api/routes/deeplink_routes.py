"""Deeplink Routes - 쿠팡 파트너스 제휴 링크 생성"""

from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from pricelink.core.exceptions import MalformedUrlException, PriceLinkException
from pricelink.core.logging import logger
from pricelink.schemas.product_schema import DeeplinkRequest, DeeplinkResponse
from pricelink.services.affiliate_service import CoupangPartnersClient
from pricelink.utils.url_utils import UrlNormalizer

router = APIRouter(prefix="/api/v1", tags=["deeplink"])

_affiliate_client: Optional[CoupangPartnersClient] = None
_url_normalizer: Optional[UrlNormalizer] = None


def get_affiliate_client() -> CoupangPartnersClient:
    """CoupangPartnersClient 싱글톤"""
    global _affiliate_client
    if _affiliate_client is None:
        _affiliate_client = CoupangPartnersClient()
    return _affiliate_client


def get_url_normalizer() -> UrlNormalizer:
    global _url_normalizer
    if _url_normalizer is None:
        _url_normalizer = UrlNormalizer()
    return _url_normalizer


def _failure(error: str, status_code: int = 200) -> JSONResponse:
    body = DeeplinkResponse(success=False, error=error)
    return JSONResponse(status_code=status_code, content=body.to_payload())


@router.post("/deeplink")
async def create_deeplink(
    request: DeeplinkRequest,
    client: CoupangPartnersClient = Depends(get_affiliate_client),
    normalizer: UrlNormalizer = Depends(get_url_normalizer),
):
    """상품 링크 → 제휴 단축 링크

    링크를 먼저 정규화해 추적 파라미터가 제휴 링크에 섞이지 않게 합니다.
    """
    if not request.url:
        return _failure("url is required", status_code=400)

    try:
        normalized = await normalizer.normalize(request.url)
    except MalformedUrlException as e:
        logger.info(f"[API] Deeplink rejected: {e.message}")
        return _failure(e.message, status_code=400)

    try:
        result = await client.create_deeplink(normalized.url)
    except PriceLinkException as e:
        logger.warning(f"[API] Deeplink failed: {e}")
        return _failure(e.message)
    except Exception as e:
        logger.error("[API] Deeplink failed unexpectedly", exc_info=True)
        return _failure(f"{type(e).__name__}: {e}")

    body = DeeplinkResponse(
        success=True,
        original_link=result.original_url,
        short_link=result.short_url,
        landing_url=result.landing_url,
    )
    return JSONResponse(status_code=200, content=body.to_payload())


@router.options("/deeplink")
async def deeplink_options():
    return Response(status_code=200)
