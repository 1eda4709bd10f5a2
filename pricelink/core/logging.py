"""로깅 설정 (Security Enhanced)"""
import logging
import re
import sys
import os
from pricelink.core.config import settings


# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"


def setup_logging() -> logging.Logger:
    """로거 초기화 및 설정"""

    logger = logging.getLogger("pricelink")

    # Production에서는 최소 INFO 레벨
    log_level = settings.log_level.upper()
    if IS_PRODUCTION and log_level == "DEBUG":
        log_level = "INFO"

    logger.setLevel(getattr(logging, log_level))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level))

    if IS_PRODUCTION:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger


logger = setup_logging()


_SECRET_QUERY_PATTERN = re.compile(r"(?i)\b(api_key|access-key|signature|token)=([^&\s,]+)")


def redact_url(value: str) -> str:
    """URL/헤더 문자열의 키·서명 값을 *** 로 치환"""
    if not value:
        return value
    return _SECRET_QUERY_PATTERN.sub(lambda m: f"{m.group(1)}=***", value)


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """민감 정보 제거 후 로깅용 문자열 반환

    Args:
        value: 로깅할 문자열
        max_length: 최대 길이

    Returns:
        제거된 문자열
    """
    if not value:
        return "[empty]"

    result = redact_url(value)

    patterns_to_mask = [
        ('password', '***'),
        ('secret', '***'),
    ]
    for pattern, mask in patterns_to_mask:
        if pattern.lower() in result.lower():
            result = mask
            break

    if len(result) > max_length:
        result = result[:max_length] + "..."

    return result
