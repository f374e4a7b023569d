"""
통계 분석 엔진 API

이 모듈은 FastAPI를 사용한 통계 분석 서비스의 메인 애플리케이션을 정의합니다.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .routers import statistical_analysis
from .utils.performance import get_performance_stats
from .exceptions import (
    BaseAPIException,
    ValidationError,
    NumericalError,
    base_api_exception_handler,
    validation_error_handler,
    numerical_error_handler,
    general_exception_handler
)

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 생명주기 관리

    시작 시 엔진(캐시/작업 큐 협력자)을 초기화합니다.
    """
    logger.info("애플리케이션 시작 중...")
    statistical_analysis.get_engine()
    logger.info(f"통계 분석 엔진 준비 완료 (캐시: {'Redis' if settings.CACHE_REDIS_URL else '메모리'}, "
                f"백그라운드 임계값: {settings.BACKGROUND_THRESHOLD})")

    yield

    logger.info("애플리케이션 종료 중...")
    logger.info("애플리케이션 종료 완료")


# FastAPI 애플리케이션 생성
app = FastAPI(
    title="Statistical Analysis Engine API",
    version=__version__,
    description="""
    ## 통계 분석 엔진 API

    ### 주요 기능
    - **기술 통계 / 빈도 분석**
    - **가설 검정**: t-검정, 일원 분산분석(Tukey HSD), 단순 선형 회귀, 비모수 검정
    - **상관 / 분할표**: Pearson/Spearman 상관 행렬, 카이제곱 독립성 검정
    - **검정 추천**: 자료형과 표본 크기 기반
    - **백그라운드 처리**: 대용량 입력은 Celery 작업으로 처리
    """,
    lifespan=lifespan
)

# CORS 미들웨어 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 예외 핸들러 등록
app.add_exception_handler(BaseAPIException, base_api_exception_handler)
app.add_exception_handler(ValidationError, validation_error_handler)
app.add_exception_handler(NumericalError, numerical_error_handler)
app.add_exception_handler(Exception, general_exception_handler)

# 라우터 등록
app.include_router(statistical_analysis.router)


@app.get("/", summary="API 루트", tags=["General"])
async def root():
    """API 루트 엔드포인트"""
    return {
        "message": "Welcome to Statistical Analysis Engine API",
        "version": __version__,
        "docs": "/docs",
        "redoc": "/redoc",
        "status": "healthy"
    }


@app.get("/health", summary="헬스 체크", tags=["General"])
async def health_check():
    """애플리케이션 헬스 체크"""
    return {
        "status": "healthy",
        "services": {
            "api": "healthy",
            "cache": "redis" if settings.CACHE_REDIS_URL else "memory",
            "background_jobs": "enabled" if settings.BACKGROUND_ENABLED else "disabled"
        }
    }


@app.get("/api/performance", summary="성능 통계", tags=["General"])
async def performance_stats():
    """분석 유형별 호출 수, 실패 수, 캐시 적중률, 평균/최대 연산 시간"""
    return {
        "status": "success",
        "data": get_performance_stats()
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "stats_engine.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
