"""
통계 분석 엔진

순수 함수로 구성된 분석 모듈 위에 다음 기능을 제공하는 호출자용 래퍼입니다.

- 연산 캐시: (함수 이름, 입력) 해시로 조회하여 동일 입력은 한 번만 계산
- 백그라운드 처리: 입력 크기가 임계값을 넘으면 작업 큐로 위임
- 성능 측정: 모든 진입점을 metrics.instrument()로 감쌈
- 재시도: 일시적 수치 오류(TransientNumericalError)에 한해 지수 백오프 재시도

엔진은 분석 상태를 보유하지 않으며, 모든 공개 메서드는 JSON 직렬화 가능한
카멜 케이스 딕셔너리를 반환합니다.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..config import settings
from ..exceptions import StatisticalError, UnsupportedAnalysisException, ValidationError
from ..utils.cache import ComputationCache, InMemoryComputationCache, RedisComputationCache, compute_cache_key
from ..utils.job_queue import JobPriority, JobQueue
from ..utils.performance import StatisticalMetricsRecorder, performance_recorder
from ..utils.retry import with_statistical_retry
from . import correlation, descriptive, hypothesis_tests, nonparametric, suggestions
from .assumptions import run_normality_tests
from .results import StatisticalResult

logger = logging.getLogger(__name__)


def _serialize(result: Any) -> Any:
    if isinstance(result, StatisticalResult):
        return result.to_dict(json_safe=True)
    if isinstance(result, list):
        return [_serialize(item) for item in result]
    return result


def _input_size(value: Any) -> int:
    """분석 입력의 데이터 포인트 수 (중첩된 그룹/변수 포함)"""
    if isinstance(value, Mapping):
        return sum(_input_size(item) for item in value.values())
    if isinstance(value, (list, tuple, np.ndarray, pd.Series)):
        return len(value)
    return 0


class StatisticalAnalysisEngine:
    """통계 분석 엔진"""

    # 분석 유형 키 → 엔진 메서드 이름 (HTTP/Celery 작업에서 사용)
    ANALYSIS_METHODS = {
        'descriptive': 'calculate_descriptive_stats',
        'frequency': 'perform_frequency_analysis',
        'correlation': 'calculate_correlation_matrix',
        'normality': 'test_normality',
        'contingency': 'create_contingency_table',
        'one-sample-t-test': 'one_sample_t_test',
        'independent-t-test': 'independent_t_test',
        'paired-t-test': 'paired_t_test',
        'anova': 'one_way_anova',
        'regression': 'linear_regression',
        'mann-whitney': 'mann_whitney_u_test',
        'wilcoxon': 'wilcoxon_signed_rank_test',
        'kruskal-wallis': 'kruskal_wallis_test',
        'suggest-tests': 'suggest_tests',
    }

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 cache: Optional[ComputationCache] = None,
                 job_queue: Optional[JobQueue] = None,
                 metrics: Optional[StatisticalMetricsRecorder] = None):
        """
        StatisticalAnalysisEngine 초기화

        Args:
            config: 기본 설정을 덮어쓸 설정 딕셔너리
            cache: 연산 캐시 (None이면 캐시 미사용)
            job_queue: 백그라운드 작업 큐 (None이면 항상 즉시 계산)
            metrics: 성능 기록기 (None이면 프로세스 전역 기록기)
        """
        self.config = {**self._get_default_config(), **(config or {})}
        self.cache = cache
        self.job_queue = job_queue
        self.metrics = metrics or performance_recorder
        logger.info("StatisticalAnalysisEngine 초기화 완료")

    def _get_default_config(self) -> Dict[str, Any]:
        """기본 설정 반환"""
        return {
            # 통계 검정 설정
            'alpha': 0.05,  # 유의수준
            'tukey_q_critical': 3.0,  # Tukey HSD 임계값
            'exact_chi_square_p_value': True,  # False면 3.841 임계값 기반 p-value
            'extended_regression_diagnostics': True,  # False면 JB/BP = 0

            # 백그라운드 처리
            'background_threshold': 10000,  # 데이터 포인트 수
            'background_max_retries': 2,
            'background_priority': 'NORMAL',

            # 캐시
            'cache_enabled': True,

            # 재시도
            'retry_max_attempts': 2,
            'retry_base_delay': 0.1,
            'retry_max_delay': 1.0,
            'retry_backoff_multiplier': 2,
        }

    def _alpha(self, alpha: Optional[float]) -> float:
        return self.config['alpha'] if alpha is None else alpha

    def _execute(self, name: str, payload: Dict[str, Any], compute: Callable[[], Any]) -> Any:
        """
        캐시 조회 → 측정 → 재시도 → 직렬화 → 캐시 저장

        Args:
            name: 분석 함수 이름 (캐시 키/지표 이름)
            payload: 분석 입력 (캐시 키 계산용)
            compute: 실제 분석 함수

        Returns:
            JSON 직렬화 가능한 결과
        """
        input_size = _input_size(payload)
        cache_key = None
        if self.cache is not None and self.config['cache_enabled']:
            cache_key = compute_cache_key(name, payload)
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.info(f"캐시 적중: {name} (입력 {input_size}개)")
                return self.metrics.instrument(name, input_size, lambda: cached, cache_hit=True)

        def run():
            result = with_statistical_retry(
                compute,
                max_attempts=self.config['retry_max_attempts'],
                base_delay=self.config['retry_base_delay'],
                max_delay=self.config['retry_max_delay'],
                backoff_multiplier=self.config['retry_backoff_multiplier'],
                operation_name=name,
            )
            return _serialize(result)

        logger.debug(f"통계 분석 시작: {name} (입력 {input_size}개)")
        try:
            result = self.metrics.instrument(name, input_size, run)
        except StatisticalError as e:
            logger.error(f"통계 분석 실패: {name} [{e.error_code}] {e.message}")
            raise

        if cache_key is not None:
            self.cache.set(cache_key, result)
        return result

    # 기술 통계 / 빈도 / 상관

    def calculate_descriptive_stats(self, values: Sequence, name: str = "data") -> Dict[str, Any]:
        return self._execute(
            'calculate_descriptive_stats',
            {'values': values, 'name': name},
            lambda: descriptive.calculate_descriptive_stats(values, name),
        )

    def perform_frequency_analysis(self, values: Sequence, bin_count: Optional[int] = None) -> Dict[str, Any]:
        return self._execute(
            'perform_frequency_analysis',
            {'values': values, 'bin_count': bin_count},
            lambda: correlation.perform_frequency_analysis(values, bin_count),
        )

    def calculate_correlation_matrix(self, data: Mapping[str, Sequence], method: str = 'pearson') -> Dict[str, Any]:
        return self._execute(
            'calculate_correlation_matrix',
            {'data': data, 'method': method},
            lambda: correlation.calculate_correlation_matrix(data, method),
        )

    def create_contingency_table(self, row_data: Sequence, column_data: Sequence, row_variable: str = 'row',
                                 column_variable: str = 'column') -> Dict[str, Any]:
        exact = self.config['exact_chi_square_p_value']
        return self._execute(
            'create_contingency_table',
            {'row_data': row_data, 'column_data': column_data, 'row_variable': row_variable,
             'column_variable': column_variable, 'exact_p_value': exact},
            lambda: correlation.create_contingency_table(row_data, column_data, row_variable,
                                                         column_variable, exact_p_value=exact),
        )

    def test_normality(self, data: Sequence, alpha: Optional[float] = None) -> List[Dict[str, Any]]:
        """Shapiro-Wilk / Kolmogorov-Smirnov 정규성 검정"""
        alpha = self._alpha(alpha)
        return self._execute(
            'test_normality',
            {'data': data, 'alpha': alpha},
            lambda: run_normality_tests(data, alpha),
        )

    # 모수 검정

    def one_sample_t_test(self, data: Sequence, population_mean: float = 0.0,
                          alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        return self._execute(
            'one_sample_t_test',
            {'data': data, 'population_mean': population_mean, 'alpha': alpha},
            lambda: hypothesis_tests.one_sample_t_test(data, population_mean, alpha),
        )

    def independent_t_test(self, group1: Sequence, group2: Sequence, equal_variances: bool = True,
                           alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        return self._execute(
            'independent_t_test',
            {'group1': group1, 'group2': group2, 'equal_variances': equal_variances, 'alpha': alpha},
            lambda: hypothesis_tests.independent_t_test(group1, group2, equal_variances, alpha),
        )

    def paired_t_test(self, before: Sequence, after: Sequence, alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        return self._execute(
            'paired_t_test',
            {'before': before, 'after': after, 'alpha': alpha},
            lambda: hypothesis_tests.paired_t_test(before, after, alpha),
        )

    def one_way_anova(self, groups: Mapping[str, Sequence], alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        q_critical = self.config['tukey_q_critical']
        return self._execute(
            'one_way_anova',
            {'groups': groups, 'alpha': alpha, 'q_critical': q_critical},
            lambda: hypothesis_tests.one_way_anova(groups, alpha, q_critical),
        )

    def linear_regression(self, x: Sequence, y: Sequence, alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        extended = self.config['extended_regression_diagnostics']
        return self._execute(
            'linear_regression',
            {'x': x, 'y': y, 'alpha': alpha, 'extended_diagnostics': extended},
            lambda: hypothesis_tests.linear_regression(x, y, alpha, extended_diagnostics=extended),
        )

    # 비모수 검정

    def mann_whitney_u_test(self, group1: Sequence, group2: Sequence, alpha: Optional[float] = None,
                            group_names: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        names = tuple(group_names) if group_names else ('Group 1', 'Group 2')
        if len(names) != 2:
            raise ValidationError("group_names must contain exactly two names", "INVALID_PARAMETER",
                                  {'group_names': list(names)})
        return self._execute(
            'mann_whitney_u_test',
            {'group1': group1, 'group2': group2, 'alpha': alpha, 'group_names': names},
            lambda: nonparametric.mann_whitney_u_test(group1, group2, alpha, names),
        )

    def wilcoxon_signed_rank_test(self, before: Sequence, after: Sequence,
                                  alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        return self._execute(
            'wilcoxon_signed_rank_test',
            {'before': before, 'after': after, 'alpha': alpha},
            lambda: nonparametric.wilcoxon_signed_rank_test(before, after, alpha),
        )

    def kruskal_wallis_test(self, groups: Mapping[str, Sequence], alpha: Optional[float] = None) -> Dict[str, Any]:
        alpha = self._alpha(alpha)
        return self._execute(
            'kruskal_wallis_test',
            {'groups': groups, 'alpha': alpha},
            lambda: nonparametric.kruskal_wallis_test(groups, alpha),
        )

    # 검정 추천

    def suggest_tests(self, data_types: Mapping[str, str], sample_sizes: Mapping[str, int],
                      num_groups: Optional[int] = None, paired_data: bool = False) -> List[Dict[str, Any]]:
        return self._execute(
            'suggest_tests',
            {'data_types': data_types, 'sample_sizes': sample_sizes, 'num_groups': num_groups,
             'paired_data': paired_data},
            lambda: suggestions.suggest_tests(data_types, sample_sizes, num_groups, paired_data),
        )

    # 분석 유형 기반 실행 (HTTP / Celery)

    def _resolve(self, analysis_type: str) -> Callable[..., Any]:
        method_name = self.ANALYSIS_METHODS.get(analysis_type)
        if method_name is None:
            raise UnsupportedAnalysisException(analysis_type)
        return getattr(self, method_name)

    def execute_analysis(self, analysis_type: str, params: Dict[str, Any]) -> Any:
        """
        분석 유형 키와 파라미터 딕셔너리로 분석을 즉시 실행

        Args:
            analysis_type: ANALYSIS_METHODS의 키
            params: 해당 메서드의 키워드 인자

        Returns:
            JSON 직렬화 가능한 결과
        """
        method = self._resolve(analysis_type)
        try:
            bound = inspect.signature(method).bind(**params)
        except TypeError as e:
            raise ValidationError(
                f"Invalid parameters for {analysis_type}: {e}",
                "INVALID_PARAMETER",
                {'analysis_type': analysis_type, 'parameters': sorted(params)},
            )
        return method(*bound.args, **bound.kwargs)

    def should_use_background_job(self, input_size: int) -> bool:
        return self.job_queue is not None and input_size > self.config['background_threshold']

    def submit_background_job(self, analysis_type: str, params: Dict[str, Any], owner_id: Optional[str] = None,
                              priority: Optional[Union[str, int, JobPriority]] = None) -> str:
        """
        분석을 작업 큐에 등록

        Returns:
            작업 ID
        """
        if self.job_queue is None:
            raise RuntimeError("No job queue configured for background analysis")
        self._resolve(analysis_type)

        priority = priority if priority is not None else self.config['background_priority']
        if isinstance(priority, str):
            try:
                priority = JobPriority[priority.upper()]
            except KeyError:
                raise ValidationError(f"Unknown job priority: {priority}", "INVALID_PARAMETER",
                                      {'priority': priority})
        job_id = self.job_queue.submit(
            analysis_type,
            params,
            priority=JobPriority(priority),
            owner_id=owner_id,
            max_retries=self.config['background_max_retries'],
        )
        logger.info(f"백그라운드 분석 작업 위임: {analysis_type} → {job_id}")
        return job_id

    def run_analysis(self, analysis_type: str, params: Dict[str, Any], owner_id: Optional[str] = None,
                     priority: Optional[Union[str, int, JobPriority]] = None) -> Dict[str, Any]:
        """
        입력 크기에 따라 즉시 계산하거나 백그라운드 작업으로 위임

        Returns:
            {'status': 'completed', 'result': ...} 또는
            {'status': 'queued', 'jobId': ..., 'analysisType': ..., 'inputSize': ...}
        """
        input_size = _input_size(params)
        if self.should_use_background_job(input_size):
            job_id = self.submit_background_job(analysis_type, params, owner_id, priority)
            return {'status': 'queued', 'jobId': job_id, 'analysisType': analysis_type, 'inputSize': input_size}
        return {'status': 'completed', 'result': self.execute_analysis(analysis_type, params)}


def build_engine(job_queue: Optional[JobQueue] = None, config: Optional[Dict[str, Any]] = None) -> StatisticalAnalysisEngine:
    """환경 설정(Settings)으로 캐시를 구성한 엔진 생성"""
    if settings.CACHE_REDIS_URL:
        cache = RedisComputationCache(url=settings.CACHE_REDIS_URL, ttl=settings.CACHE_TTL,
                                      prefix=settings.CACHE_PREFIX)
    else:
        cache = InMemoryComputationCache(max_entries=settings.CACHE_MAX_ENTRIES)
    engine_config = {'background_threshold': settings.BACKGROUND_THRESHOLD, **(config or {})}
    return StatisticalAnalysisEngine(config=engine_config, cache=cache, job_queue=job_queue)
