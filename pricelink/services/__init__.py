"""외부 서비스 어댑터"""

from .affiliate_service import CoupangPartnersClient, DeeplinkResult, build_authorization, sign_request

__all__ = ["CoupangPartnersClient", "DeeplinkResult", "build_authorization", "sign_request"]
