"""쿠팡 상품 링크 정규화 / 최저가·상품명 추출 / 파트너스 딥링크 서비스"""

__version__ = "1.0.0"
