"""
통계 연산 성능 측정

엔진의 모든 진입점은 instrument()로 감싸져 지연 시간, 입력 크기, 캐시 적중
여부가 기록됩니다. 감싼 함수의 반환값과 예외는 그대로 전달됩니다.
"""

import logging
import threading
import time
from collections import defaultdict
from typing import Any, Callable, Dict, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')

SLOW_COMPUTATION_SECONDS = 1.0


class StatisticalMetricsRecorder:
    """분석 유형별 연산 지표 집계"""

    def __init__(self):
        self._lock = threading.Lock()
        self._stats: Dict[str, Dict[str, Any]] = defaultdict(lambda: {
            'calls': 0,
            'failures': 0,
            'cache_hits': 0,
            'total_time': 0.0,
            'max_time': 0.0,
            'max_input_size': 0,
        })

    def instrument(self, name: str, input_size: int, fn: Callable[[], T], cache_hit: bool = False) -> T:
        """
        연산 실행 및 지표 기록

        Args:
            name: 분석 유형
            input_size: 입력 데이터 포인트 수
            fn: 실행할 연산
            cache_hit: 캐시 적중 여부

        Returns:
            fn()의 반환값
        """
        start_time = time.perf_counter()
        success = False
        try:
            result = fn()
            success = True
            return result
        finally:
            elapsed = time.perf_counter() - start_time
            self._record(name, input_size, elapsed, success, cache_hit)

    def _record(self, name: str, input_size: int, elapsed: float, success: bool, cache_hit: bool) -> None:
        with self._lock:
            stats = self._stats[name]
            stats['calls'] += 1
            stats['total_time'] += elapsed
            stats['max_time'] = max(stats['max_time'], elapsed)
            stats['max_input_size'] = max(stats['max_input_size'], input_size)
            if not success:
                stats['failures'] += 1
            if cache_hit:
                stats['cache_hits'] += 1

        if elapsed > SLOW_COMPUTATION_SECONDS:
            logger.warning(f"느린 통계 연산: {name} ({elapsed:.3f}s, 입력 {input_size}개)")
        else:
            logger.debug(f"통계 연산 완료: {name} ({elapsed * 1000:.1f}ms, 입력 {input_size}개, "
                         f"캐시 {'적중' if cache_hit else '미스'}, 성공={success})")

    def get_performance_stats(self) -> Dict[str, Dict[str, Any]]:
        """분석 유형별 집계 스냅샷"""
        with self._lock:
            snapshot = {}
            for name, stats in self._stats.items():
                calls = stats['calls']
                snapshot[name] = {
                    **stats,
                    'avg_time': stats['total_time'] / calls if calls else 0.0,
                    'cache_hit_rate': stats['cache_hits'] / calls if calls else 0.0,
                }
            return snapshot

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()


# 프로세스 전역 기록기 (/api/performance 엔드포인트에서 조회)
performance_recorder = StatisticalMetricsRecorder()


def get_performance_stats() -> Dict[str, Dict[str, Any]]:
    return performance_recorder.get_performance_stats()
