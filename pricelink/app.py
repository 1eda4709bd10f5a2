"""FastAPI 앱 팩토리"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricelink.core.config import settings
from pricelink.core.logging import logger
from pricelink.api import deeplink_router, health_router, product_router
from pricelink.crawlers.http_client import shutdown_shared_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    yield
    logger.info("Shutting down application...")
    await shutdown_shared_http_client()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """잘못된 요청 본문 → 400 {success: false, error}"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    detail = first.get("msg", "invalid request")
    error = f"Invalid request body ({location}): {detail}" if location else f"Invalid request body: {detail}"
    logger.info(f"[API] {request.method} {request.url.path} rejected: {error}")
    return JSONResponse(status_code=400, content={"success": False, "error": error})


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def cors_headers_middleware(request: Request, call_next):
    """Origin 헤더가 없는 요청(서버 간 호출, curl 등)의 응답에도 CORS 헤더 부착"""
    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan,
    )

    # CORS (credentials 없이 와일드카드 origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.middleware("http")(cors_headers_middleware)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(product_router)
    app.include_router(deeplink_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
