"""
Celery 작업 정의

이 모듈은 입력 크기가 큰 통계 분석을 백그라운드에서 수행하는 작업과
작업 상태 조회 함수를 정의합니다.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from .celery_app import celery_app
from .exceptions import StatisticalError
from .statistical_analysis.engine import StatisticalAnalysisEngine, build_engine
from .utils.retry import retry_delay

logger = logging.getLogger(__name__)

QUEUED_STATE = 'QUEUED'
RUNNING_STATE = 'RUNNING'


@lru_cache(maxsize=None)
def get_worker_engine() -> StatisticalAnalysisEngine:
    """워커 프로세스용 엔진 (작업 큐 없이 항상 즉시 계산)"""
    return build_engine(job_queue=None)


@celery_app.task(bind=True)
def run_statistical_analysis(self, analysis_type: str, params: Dict[str, Any],
                             owner_id: Optional[str] = None, max_retries: int = 2) -> Dict[str, Any]:
    """
    통계 분석 작업

    Args:
        analysis_type: 분석 유형 키 (StatisticalAnalysisEngine.ANALYSIS_METHODS)
        params: 분석 파라미터
        owner_id: 요청자 ID
        max_retries: 일시적 수치 오류 시 최대 재시도 횟수

    Returns:
        분석 결과 딕셔너리
    """
    task_id = self.request.id
    logger.info(f"통계 분석 작업 시작: {task_id} (유형={analysis_type}, 요청자={owner_id})")

    self.update_state(
        state=RUNNING_STATE,
        meta={
            'status': '분석 중...',
            'progress': 10,
            'analysis_type': analysis_type,
            'attempt': self.request.retries + 1
        }
    )

    engine = get_worker_engine()
    try:
        result = engine.execute_analysis(analysis_type, params)
    except StatisticalError as e:
        if e.retryable and self.request.retries < max_retries:
            countdown = retry_delay(
                self.request.retries + 1,
                base_delay=engine.config['retry_base_delay'],
                max_delay=engine.config['retry_max_delay'],
                backoff_multiplier=engine.config['retry_backoff_multiplier'],
            )
            logger.warning(f"일시적 수치 오류로 작업 재시도: {task_id} ({self.request.retries + 1}/{max_retries}) - {e.message}")
            raise self.retry(exc=e, countdown=countdown, max_retries=max_retries)
        logger.error(f"통계 분석 작업 실패: {task_id} [{e.error_code}] {e.message}")
        raise

    logger.info(f"통계 분석 작업 완료: {task_id}")
    return {
        'task_id': task_id,
        'analysis_type': analysis_type,
        'owner_id': owner_id,
        'status': 'completed',
        'result': result
    }


def get_analysis_status(task_id: str) -> Dict[str, Any]:
    """
    분석 작업 상태 조회

    Celery는 알 수 없는 작업 ID를 PENDING으로 보고합니다. 등록된 작업은
    CeleryJobQueue가 등록 시점에 QUEUED 상태를 기록하므로 PENDING은 미등록 작업을 뜻합니다.

    Args:
        task_id: 조회할 작업 ID

    Returns:
        작업 상태 정보
    """
    task_result = celery_app.AsyncResult(task_id)

    status_info = {
        'task_id': task_id,
        'status': task_result.status,
        'ready': task_result.ready(),
        'successful': task_result.successful(),
        'failed': task_result.failed()
    }

    # 작업이 완료된 경우 결과 포함
    if task_result.ready():
        if task_result.successful():
            status_info['result'] = task_result.result
        else:
            status_info['error'] = str(task_result.info)

    # 대기/진행 중인 경우 메타데이터 포함
    elif task_result.status in (QUEUED_STATE, RUNNING_STATE):
        status_info['meta'] = task_result.info

    return status_info
