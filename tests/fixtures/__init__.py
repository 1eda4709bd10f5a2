"""테스트 자산(데이터) 레이어

규칙:
- 로직 없음 (단순 문자열/primitive)
- 엔진/네트워크 의존 없음
"""

from . import pages

__all__ = ["pages"]
