"""
Statistical analysis engine service

통계 분석 엔진(특수 함수, 분포, 가설 검정, 상관/분할표, 가정 점검, 검정 추천)과
이를 감싸는 캐시/백그라운드 작업/성능 측정 계층, FastAPI HTTP 인터페이스를 제공합니다.
"""

__version__ = "1.0.0"
