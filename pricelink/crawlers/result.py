"""Crawler data types

페치 전략 한 칸(FetchAttemptSpec)과 그 결과 페이지(RawPage)의 표준 형식을 정의합니다.
"""

from dataclasses import dataclass
from enum import Enum


class DeviceProfile(str, Enum):
    """요청 User-Agent 프로필"""

    DESKTOP = "desktop"
    MOBILE = "mobile"


class ProxyTier(str, Enum):
    """프로바이더 프록시 등급"""

    STANDARD = "standard"
    PREMIUM = "premium"


class UpstreamProvider(str, Enum):
    """페이지를 가져오는 업스트림"""

    SCRAPINGBEE = "scrapingbee"
    SCRAPERAPI = "scraperapi"
    DIRECT = "direct"  # 스크래핑 프로바이더 없이 직접 요청 (최후 수단)


@dataclass(frozen=True)
class FetchAttemptSpec:
    """래더의 한 단계

    Attributes:
        render: JS 렌더링 여부
        device: desktop/mobile UA
        proxy_tier: standard/premium 프록시
        timeout_ms: 단계 명목 타임아웃 (실제로는 남은 예산으로 잘림)
        provider: 사용할 업스트림
    """

    render: bool
    device: DeviceProfile
    proxy_tier: ProxyTier
    timeout_ms: int
    provider: UpstreamProvider

    @property
    def label(self) -> str:
        mode = "render" if self.render else "no-render"
        return f"{self.provider.value}/{self.device.value}/{mode}/{self.proxy_tier.value}"


@dataclass(frozen=True)
class RawPage:
    """페치 결과 HTML + 출처

    Attributes:
        html: 본문
        spec: 이 페이지를 만든 래더 단계
        elapsed_ms: 단계 소요 시간
    """

    html: str
    spec: FetchAttemptSpec
    elapsed_ms: float = 0.0

    @property
    def provenance(self) -> str:
        return self.spec.label
