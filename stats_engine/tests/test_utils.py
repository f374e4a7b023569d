"""
유틸리티 모듈 테스트

연산 캐시, 재시도 정책, 성능 기록기, 오류 메시지 카탈로그를 검증합니다.
"""

import json
import unittest
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
import redis

from stats_engine.exceptions import ConvergenceError, NumericalError, ValidationError
from stats_engine.utils.cache import (
    InMemoryComputationCache,
    RedisComputationCache,
    compute_cache_key,
)
from stats_engine.utils.error_messages import (
    ERROR_CATALOG,
    create_user_friendly_error,
    format_error_for_user,
    get_error_info,
    get_errors_by_category,
)
from stats_engine.utils.performance import StatisticalMetricsRecorder
from stats_engine.utils.retry import is_retryable, retry_delay, with_statistical_retry


class TestComputeCacheKey:

    def test_key_is_independent_of_dict_order(self):
        first = compute_cache_key('anova', {'groups': {'a': [1, 2]}, 'alpha': 0.05})
        second = compute_cache_key('anova', {'alpha': 0.05, 'groups': {'a': [1, 2]}})
        assert first == second

    def test_numpy_input_matches_list_input(self):
        assert compute_cache_key('f', {'x': np.array([1.0, 2.0])}) == compute_cache_key('f', {'x': [1.0, 2.0]})

    def test_function_name_is_part_of_key(self):
        assert compute_cache_key('mean', {'x': [1]}) != compute_cache_key('median', {'x': [1]})


class TestInMemoryComputationCache(unittest.TestCase):
    """프로세스 내 LRU 캐시 테스트 클래스"""

    def test_get_and_set(self):
        cache = InMemoryComputationCache()
        assert cache.get('missing') is None

        cache.set('key', {'mean': 1.0})
        assert cache.get('key') == {'mean': 1.0}

    def test_returned_values_are_independent_copies(self):
        cache = InMemoryComputationCache()
        stored = {'quartiles': [1.0, 2.0, 3.0]}
        cache.set('key', stored)
        stored['quartiles'][0] = 99.0

        first = cache.get('key')
        first['quartiles'][1] = 99.0

        assert cache.get('key') == {'quartiles': [1.0, 2.0, 3.0]}
        assert cache.get('key') is not cache.get('key')

    def test_least_recently_used_entry_is_evicted(self):
        cache = InMemoryComputationCache(max_entries=2)
        cache.set('a', 1)
        cache.set('b', 2)
        cache.get('a')
        cache.set('c', 3)

        assert cache.get('b') is None
        assert cache.get('a') == 1
        assert cache.get('c') == 3
        assert len(cache) == 2

    def test_clear(self):
        cache = InMemoryComputationCache()
        cache.set('a', 1)
        cache.clear()
        assert len(cache) == 0


class TestRedisComputationCache(unittest.TestCase):
    """Redis 캐시 테스트 클래스 (클라이언트 모킹)"""

    def setUp(self):
        self.client = MagicMock()
        self.cache = RedisComputationCache(client=self.client, ttl=7200, prefix='stats:')

    def test_set_uses_prefix_and_ttl(self):
        self.cache.set('abc', {'pValue': 0.03})

        self.client.setex.assert_called_once()
        key, ttl, value = self.client.setex.call_args.args
        assert key == 'stats:abc'
        assert ttl == 7200
        assert json.loads(value) == {'pValue': 0.03}

    def test_get_decodes_json(self):
        self.client.get.return_value = b'{"count": 3}'

        assert self.cache.get('abc') == {'count': 3}
        self.client.get.assert_called_once_with('stats:abc')

    def test_missing_key(self):
        self.client.get.return_value = None
        assert self.cache.get('abc') is None

    def test_redis_failure_is_a_cache_miss(self):
        self.client.get.side_effect = redis.exceptions.ConnectionError("connection refused")
        self.client.setex.side_effect = redis.exceptions.ConnectionError("connection refused")

        assert self.cache.get('abc') is None
        self.cache.set('abc', {'count': 3})

    def test_requires_client_or_url(self):
        with pytest.raises(ValueError):
            RedisComputationCache()

    def test_url_builds_client(self):
        with patch('stats_engine.utils.cache.redis.Redis.from_url') as mock_from_url:
            cache = RedisComputationCache(url='redis://localhost:6379/1')

        mock_from_url.assert_called_once_with('redis://localhost:6379/1')
        assert cache.client is mock_from_url.return_value


class TestRetry:

    def test_retry_delay_backoff(self):
        assert retry_delay(1) == pytest.approx(0.1)
        assert retry_delay(2) == pytest.approx(0.2)
        assert retry_delay(3) == pytest.approx(0.4)
        assert retry_delay(10) == 1.0

    def test_is_retryable(self):
        assert is_retryable(ConvergenceError("no convergence")) is True
        assert is_retryable(NumericalError("domain")) is False
        assert is_retryable(ValidationError("small")) is False
        assert is_retryable(ValueError("other")) is False

    def test_succeeds_after_transient_failure(self):
        sleep = MagicMock()
        operation = MagicMock(side_effect=[ConvergenceError("no convergence"), 42])

        assert with_statistical_retry(operation, max_attempts=2, sleep=sleep) == 42
        sleep.assert_called_once_with(pytest.approx(0.1))

    def test_delays_grow_between_attempts(self):
        sleep = MagicMock()
        operation = MagicMock(side_effect=ConvergenceError("no convergence"))

        with pytest.raises(ConvergenceError):
            with_statistical_retry(operation, max_attempts=3, base_delay=0.5, backoff_multiplier=3,
                                   max_delay=10.0, sleep=sleep)

        assert operation.call_count == 3
        assert [call.args[0] for call in sleep.call_args_list] == [pytest.approx(0.5), pytest.approx(1.5)]

    def test_fatal_errors_propagate_immediately(self):
        sleep = MagicMock()
        operation = MagicMock(side_effect=NumericalError("domain"))

        with pytest.raises(NumericalError):
            with_statistical_retry(operation, max_attempts=5, sleep=sleep)

        assert operation.call_count == 1
        sleep.assert_not_called()

    def test_other_exceptions_are_not_caught(self):
        operation = MagicMock(side_effect=KeyError('x'))
        with pytest.raises(KeyError):
            with_statistical_retry(operation, max_attempts=3, sleep=MagicMock())
        assert operation.call_count == 1


class TestStatisticalMetricsRecorder(unittest.TestCase):
    """성능 기록기 테스트 클래스"""

    def setUp(self):
        self.recorder = StatisticalMetricsRecorder()

    def test_result_passes_through(self):
        assert self.recorder.instrument('mean', 3, lambda: 2.0) == 2.0

        stats = self.recorder.get_performance_stats()['mean']
        assert stats['calls'] == 1
        assert stats['failures'] == 0
        assert stats['max_input_size'] == 3
        assert stats['avg_time'] >= 0.0

    def test_exception_passes_through_and_is_counted(self):
        def failing():
            raise ValidationError("too small")

        with pytest.raises(ValidationError):
            self.recorder.instrument('t_test', 1, failing)

        assert self.recorder.get_performance_stats()['t_test']['failures'] == 1

    def test_slow_computation_logs_warning(self):
        with patch('stats_engine.utils.performance.time.perf_counter', side_effect=[0.0, 2.5]):
            with self.assertLogs('stats_engine.utils.performance', level='WARNING') as logs:
                self.recorder.instrument('anova', 100000, lambda: None)

        assert '느린 통계 연산' in logs.output[0]
        assert self.recorder.get_performance_stats()['anova']['max_time'] == pytest.approx(2.5)

    def test_reset(self):
        self.recorder.instrument('mean', 1, lambda: 1)
        self.recorder.reset()
        assert self.recorder.get_performance_stats() == {}


class TestErrorMessages:

    def test_catalog_lookup(self):
        info = get_error_info('INSUFFICIENT_DATA')
        assert info.category == 'data'
        assert get_error_info('NOT_A_CODE') is None

    def test_unknown_code_falls_back(self):
        info = create_user_friendly_error('NOT_A_CODE')
        assert info.title == 'Unexpected error'
        assert 'NOT_A_CODE' in info.technical_message

    def test_context_is_applied_to_a_copy(self):
        original = list(ERROR_CATALOG['CONSTANT_VALUES'].suggestions)
        info = create_user_friendly_error('CONSTANT_VALUES', {
            'sample_size': 12,
            'missing_count': 3,
            'variable_name': 'latency',
            'test_type': 't-test',
        })

        assert info.suggestions[0] == '3 missing values were found'
        assert info.suggestions[1] == 'Your sample size is 12, which is quite small'
        assert info.user_message.startswith('Variable "latency"')
        assert info.user_message.endswith('for t-test analysis')
        assert ERROR_CATALOG['CONSTANT_VALUES'].suggestions == original

    def test_large_sample_adds_no_size_hint(self):
        info = create_user_friendly_error('INSUFFICIENT_DATA', {'sample_size': 100})
        assert info.suggestions == ERROR_CATALOG['INSUFFICIENT_DATA'].suggestions

    def test_errors_by_category(self):
        computational = get_errors_by_category('computational')
        assert {'NUMERICAL_INSTABILITY', 'CONVERGENCE_FAILURE', 'DOMAIN_ERROR'} <= set(computational)

    def test_format_error_for_user(self):
        info = create_user_friendly_error('CONVERGENCE_FAILURE')

        assert format_error_for_user(info) == info.user_message
        detailed = format_error_for_user(info, include_details=True)
        assert '1. Check for extreme values in your data' in detailed

    def test_to_dict_keys(self):
        data = create_user_friendly_error('DOMAIN_ERROR').to_dict()
        assert set(data) == {'title', 'userMessage', 'technicalMessage', 'suggestions', 'severity', 'category'}


if __name__ == '__main__':
    unittest.main()
