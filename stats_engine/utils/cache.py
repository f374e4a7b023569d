"""
연산 결과 캐시

엔진은 (함수 이름, 직렬화된 입력)의 해시를 키로 캐시를 조회합니다.
TTL/제거 정책은 각 캐시 구현이 결정합니다.
"""

import copy
import hashlib
import json
import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Optional

import numpy as np
import redis

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    # numpy 배열, pandas Series
    if isinstance(value, np.ndarray) or hasattr(value, 'to_list'):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


def compute_cache_key(function_name: str, payload: Any) -> str:
    """
    연산 해시 생성

    Args:
        function_name: 분석 함수 이름
        payload: 분석 입력 (JSON 직렬화 가능 구조)

    Returns:
        md5 hex digest
    """
    serialized = json.dumps(payload, sort_keys=True, default=_json_default, separators=(',', ':'))
    return hashlib.md5(f"{function_name}{serialized}".encode('utf-8')).hexdigest()


class ComputationCache(ABC):
    """캐시 협력자 인터페이스"""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """캐시된 값 또는 None"""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """값 저장"""


class InMemoryComputationCache(ComputationCache):
    """프로세스 내 LRU 캐시 (저장/조회 시 깊은 복사본을 주고받음)"""

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._entries:
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(self._entries[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = copy.deepcopy(value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisComputationCache(ComputationCache):
    """
    Redis 기반 캐시

    값은 JSON으로 저장되며 ttl 초 후 만료됩니다. Redis 장애 시에는 캐시 미스로
    처리하여 계산이 계속 진행되도록 합니다.
    """

    def __init__(self, client: Optional["redis.Redis"] = None, url: Optional[str] = None,
                 ttl: int = 7200, prefix: str = 'stats:'):
        if client is None:
            if not url:
                raise ValueError("RedisComputationCache requires a client or a url")
            client = redis.Redis.from_url(url)
        self.client = client
        self.ttl = ttl
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning(f"Redis 캐시 조회 실패, 캐시 미스로 처리: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self.client.setex(self._key(key), self.ttl, json.dumps(value, default=_json_default))
        except redis.RedisError as e:
            logger.warning(f"Redis 캐시 저장 실패: {e}")
