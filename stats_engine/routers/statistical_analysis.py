"""
통계 분석 API 라우터

통계 분석 엔진의 각 분석을 HTTP 엔드포인트로 제공합니다.
입력 크기가 백그라운드 임계값을 넘으면 Celery 작업으로 등록하고 작업 정보를 반환합니다.
"""

import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config import settings
from ..exceptions import AnalysisJobNotFoundException
from ..models.statistical_analysis import (
    AnalysisRequest,
    ANOVARequest,
    ContingencyTableRequest,
    CorrelationRequest,
    DescriptiveStatsRequest,
    FrequencyAnalysisRequest,
    JobInfo,
    JobStatusResponse,
    NonParametricTestRequest,
    NormalityTestRequest,
    RegressionRequest,
    TestSuggestionRequest,
    TTestRequest,
)
from ..statistical_analysis.engine import StatisticalAnalysisEngine, build_engine
from ..tasks import get_analysis_status
from ..utils.job_queue import CeleryJobQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/statistical-analysis", tags=["Statistical Analysis"])


@lru_cache(maxsize=None)
def get_engine() -> StatisticalAnalysisEngine:
    """요청 간 공유되는 엔진 (캐시/작업 큐 협력자 포함)"""
    job_queue = CeleryJobQueue() if settings.BACKGROUND_ENABLED else None
    return build_engine(job_queue=job_queue)


def _run(engine: StatisticalAnalysisEngine, request: AnalysisRequest) -> Dict[str, Any]:
    analysis_type, params = request.to_analysis()
    priority = request.priority.value if request.priority else None
    logger.info(f"통계 분석 요청 수신: {analysis_type}")

    outcome = engine.run_analysis(analysis_type, params, owner_id=request.owner_id, priority=priority)
    if outcome['status'] == 'queued':
        job = JobInfo(
            job_id=outcome['jobId'],
            analysis_type=analysis_type,
            input_size=outcome['inputSize'],
            status_url=f"{router.prefix}/jobs/{outcome['jobId']}",
        )
        return {"success": True, "job": job.model_dump()}
    return {"success": True, "result": outcome['result']}


@router.post("/descriptive", summary="기술 통계")
def descriptive_statistics(request: DescriptiveStatsRequest,
                           engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """평균, 중앙값, 최빈값, 분산, 사분위수, 왜도, 첨도를 계산합니다."""
    return _run(engine, request)


@router.post("/frequency", summary="빈도 분석")
def frequency_analysis(request: FrequencyAnalysisRequest,
                       engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """값별 빈도와 (숫자 데이터의 경우) 등간격 히스토그램을 계산합니다."""
    return _run(engine, request)


@router.post("/correlation", summary="상관 행렬")
def correlation_matrix(request: CorrelationRequest,
                       engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """Pearson 또는 Spearman 상관 행렬과 p-value를 계산합니다."""
    return _run(engine, request)


@router.post("/normality", summary="정규성 검정")
def normality_test(request: NormalityTestRequest,
                   engine: StatisticalAnalysisEngine = Depends(get_engine)):
    return _run(engine, request)


@router.post("/contingency", summary="분할표 및 카이제곱 독립성 검정")
def contingency_table(request: ContingencyTableRequest,
                      engine: StatisticalAnalysisEngine = Depends(get_engine)):
    return _run(engine, request)


@router.post("/t-test", summary="t-검정")
def t_test(request: TTestRequest, engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """
    단일 표본 / 독립 표본(Student, Welch) / 대응 표본 t-검정

    test_type에 따라 data, group1/group2, before/after 중 필요한 필드를 사용합니다.
    """
    return _run(engine, request)


@router.post("/anova", summary="일원 분산분석")
def anova(request: ANOVARequest, engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """유의한 경우 (그룹 3개 이상) Tukey HSD 사후검정 결과를 포함합니다."""
    return _run(engine, request)


@router.post("/regression", summary="단순 선형 회귀")
def regression(request: RegressionRequest, engine: StatisticalAnalysisEngine = Depends(get_engine)):
    return _run(engine, request)


@router.post("/nonparametric", summary="비모수 검정")
def nonparametric_test(request: NonParametricTestRequest,
                       engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """Mann-Whitney U, Wilcoxon 부호 순위, Kruskal-Wallis 검정"""
    return _run(engine, request)


@router.post("/suggest-tests", summary="검정 추천")
def suggest_tests(request: TestSuggestionRequest,
                  engine: StatisticalAnalysisEngine = Depends(get_engine)):
    """변수 자료형과 표본 크기를 바탕으로 적합한 검정을 신뢰도 순으로 추천합니다."""
    return _run(engine, request)


@router.get("/jobs/{job_id}", summary="백그라운드 분석 작업 상태 조회")
def job_status(job_id: str):
    """
    백그라운드 분석 작업 상태 조회

    Args:
        job_id: 작업 ID

    Returns:
        작업 상태 및 (완료 시) 결과
    """
    status_info = get_analysis_status(job_id)
    if status_info['status'] == 'PENDING':
        raise AnalysisJobNotFoundException(job_id)
    return {"success": True, "job": JobStatusResponse(**status_info).model_dump()}
