"""공통 인프라: 설정, 로깅, 예외"""
