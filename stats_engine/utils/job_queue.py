"""
백그라운드 작업 큐

대용량 입력의 분석을 Celery 작업으로 위임합니다.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class JobPriority(IntEnum):
    """작업 우선순위"""
    LOW = 1
    NORMAL = 2
    HIGH = 3
    CRITICAL = 4


class JobQueue(ABC):
    """작업 큐 협력자 인터페이스"""

    @abstractmethod
    def submit(self, job_type: str, payload: Dict[str, Any], priority: JobPriority = JobPriority.NORMAL,
               owner_id: Optional[str] = None, max_retries: int = 2) -> str:
        """작업을 등록하고 작업 ID를 반환"""


class CeleryJobQueue(JobQueue):
    """run_statistical_analysis Celery 작업으로 분석을 등록하는 큐"""

    def submit(self, job_type: str, payload: Dict[str, Any], priority: JobPriority = JobPriority.NORMAL,
               owner_id: Optional[str] = None, max_retries: int = 2) -> str:
        """
        분석 작업 등록

        Args:
            job_type: 분석 유형 (예: 'anova')
            payload: 분석 함수 인자 (JSON 직렬화 가능)
            priority: 작업 우선순위
            owner_id: 요청자 ID
            max_retries: 일시적 수치 오류 시 최대 재시도 횟수

        Returns:
            Celery 작업 ID
        """
        from ..tasks import QUEUED_STATE, run_statistical_analysis

        # 전송 전에 QUEUED 상태 기록 (미등록 ID는 PENDING)
        job_id = str(uuid.uuid4())
        run_statistical_analysis.backend.store_result(
            job_id,
            {'status': '대기 중', 'progress': 0, 'analysis_type': job_type, 'owner_id': owner_id},
            QUEUED_STATE,
        )
        run_statistical_analysis.apply_async(
            args=[job_type, payload],
            kwargs={'owner_id': owner_id, 'max_retries': max_retries},
            task_id=job_id,
            priority=int(priority),
        )
        logger.info(f"분석 작업 등록: {job_id} (유형={job_type}, 우선순위={JobPriority(priority).name}, "
                    f"요청자={owner_id})")
        return job_id
