"""Product Routes - 상품 정보 조회

HTTP Layer는 요청을 ProductInfoOrchestrator로 위임하고 결과를 JSON으로 옮기는
Translator 역할만 수행합니다.
"""

import asyncio
from time import monotonic
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from pricelink.core.config import settings
from pricelink.core.logging import logger, sanitize_for_log
from pricelink.crawlers import build_providers
from pricelink.engine import ExtractionResult, ExtractionStatus, FetchLadder, ProductInfoOrchestrator
from pricelink.schemas.product_schema import ProductInfoRequest, ProductInfoResponse

router = APIRouter(prefix="/api/v1", tags=["product"])

# 싱글톤
_upstream_limiter: Optional[asyncio.Semaphore] = None
_orchestrator: Optional[ProductInfoOrchestrator] = None


def get_upstream_limiter() -> asyncio.Semaphore:
    """프로세스 단위 업스트림 동시 호출 제한"""
    global _upstream_limiter
    if _upstream_limiter is None:
        _upstream_limiter = asyncio.Semaphore(settings.crawler_upstream_concurrency)
    return _upstream_limiter


def get_orchestrator(
    limiter: asyncio.Semaphore = Depends(get_upstream_limiter),
) -> ProductInfoOrchestrator:
    """ProductInfoOrchestrator 싱글톤"""
    global _orchestrator
    if _orchestrator is None:
        ladder = FetchLadder(build_providers(), limiter=limiter)
        _orchestrator = ProductInfoOrchestrator(ladder)
    return _orchestrator


def _status_code_for(result: ExtractionResult) -> int:
    if result.status == ExtractionStatus.MALFORMED_URL:
        return 400
    if settings.api_strict_status_codes:
        strict = {
            ExtractionStatus.EXHAUSTED: 502,
            ExtractionStatus.TIMEOUT: 504,
            ExtractionStatus.INTERNAL_ERROR: 500,
        }
        return strict.get(result.status, 200)
    return 200


def build_response(result: ExtractionResult) -> JSONResponse:
    """ExtractionResult → JSON 응답"""
    body = ProductInfoResponse(
        success=result.is_success,
        final_url=result.final_url,
        title=result.title,
        price=result.price,
        currency=result.currency,
        provider=result.provider,
        error=None if result.is_success else result.reason,
        debug=result.debug_info() if settings.api_include_debug else None,
    )
    return JSONResponse(status_code=_status_code_for(result), content=body.to_payload())


def missing_url_response() -> JSONResponse:
    body = ProductInfoResponse(success=False, error="url is required")
    return JSONResponse(status_code=400, content=body.to_payload())


async def _lookup(
    request: ProductInfoRequest,
    orchestrator: ProductInfoOrchestrator,
    render_only: bool,
) -> JSONResponse:
    if not request.url:
        logger.info("[API] Rejected request without url")
        return missing_url_response()

    logger.info(f"[API] Product info request (render_only={render_only}): {sanitize_for_log(request.url, max_length=120)}")
    started = monotonic()
    try:
        # 래더 예산보다 조금 긴 하드 캡
        result = await asyncio.wait_for(
            orchestrator.lookup(request.url, render_only=render_only),
            timeout=settings.api_request_timeout_s,
        )
    except asyncio.TimeoutError:
        elapsed_ms = (monotonic() - started) * 1000
        logger.error(f"[API] Timeout after {elapsed_ms:.0f}ms")
        result = ExtractionResult.timeout(elapsed_ms=elapsed_ms)
    except Exception as e:
        logger.error("[API] Product info lookup failed", exc_info=True)
        result = ExtractionResult.internal_error(
            reason=f"{type(e).__name__}: {e}",
            elapsed_ms=(monotonic() - started) * 1000,
        )

    return build_response(result)


@router.post("/product-info")
async def product_info(
    request: ProductInfoRequest,
    orchestrator: ProductInfoOrchestrator = Depends(get_orchestrator),
):
    """상품 정보 조회 (싼 단계 우선, 필요하면 렌더링 승격)

    Flow:
        1. 링크 정규화 (단축 링크 해제, 추적 파라미터 제거)
        2. 래더로 페이지 확보
        3. 다중 소스 파싱 → 제목 / 최저가
    """
    return await _lookup(request, orchestrator, render_only=False)


@router.post("/product-info/slow")
async def product_info_slow(
    request: ProductInfoRequest,
    orchestrator: ProductInfoOrchestrator = Depends(get_orchestrator),
):
    """JS 렌더링이 필요한 페이지용 (렌더링 단계만 사용)"""
    return await _lookup(request, orchestrator, render_only=True)


@router.options("/product-info")
@router.options("/product-info/slow")
async def product_info_options():
    return Response(status_code=200)
