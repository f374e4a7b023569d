"""
기술 통계 모듈

결측값(None/NaN)을 걸러낸 복사본 위에서 평균, 중앙값, 최빈값, 분산, 사분위수,
왜도, 첨도를 계산합니다. 호출자가 넘긴 데이터는 변경하지 않습니다.
"""

import logging
import math
from typing import Iterable, Optional

import numpy as np

from .results import DescriptiveStats
from .validation import filter_valid

logger = logging.getLogger(__name__)


def sample_variance(data: np.ndarray) -> float:
    return float(np.var(data, ddof=1))


def sample_skewness(data: np.ndarray) -> Optional[float]:
    """표본 왜도 (n >= 3 필요)"""
    n = data.size
    if n < 3:
        return None
    deviations = data - data.mean()
    sum_squares = float(np.sum(deviations ** 2))
    if sum_squares == 0:
        return None
    std = math.sqrt(sum_squares / (n - 1))
    return float(n * np.sum(deviations ** 3) / ((n - 1) * (n - 2) * std ** 3))


def sample_kurtosis(data: np.ndarray) -> Optional[float]:
    """표본 초과 첨도 (n >= 4 필요)"""
    n = data.size
    if n < 4:
        return None
    deviations = data - data.mean()
    second = float(np.sum(deviations ** 2))
    if second == 0:
        return None
    fourth = float(np.sum(deviations ** 4))
    return ((n - 1) / ((n - 2) * (n - 3))) * ((n * (n + 1) * fourth) / (second * second) - 3 * (n - 1))


def _mode(ordered: np.ndarray) -> float:
    values, counts = np.unique(ordered, return_counts=True)
    # 동률이면 가장 작은 값
    return float(values[int(np.argmax(counts))])


def calculate_descriptive_stats(values: Iterable, name: str = "data") -> DescriptiveStats:
    """
    기술 통계량 계산

    Args:
        values: 숫자 시퀀스
        name: 변수 이름

    Returns:
        DescriptiveStats. 유효값이 없으면 count=0, null_count=원본 길이.
    """
    data, null_count = filter_valid(values, name)
    n = int(data.size)
    if n == 0:
        logger.debug(f"유효한 값 없음: {name} (결측 {null_count}개)")
        return DescriptiveStats(count=0, null_count=null_count)

    ordered = np.sort(data)
    variance = sample_variance(data) if n > 1 else None
    quartiles = tuple(float(q) for q in np.quantile(ordered, [0.25, 0.5, 0.75]))

    return DescriptiveStats(
        count=n,
        null_count=null_count,
        mean=float(np.mean(data)),
        median=float(np.median(ordered)),
        mode=_mode(ordered),
        standard_deviation=math.sqrt(variance) if variance is not None else None,
        variance=variance,
        minimum=float(ordered[0]),
        maximum=float(ordered[-1]),
        range=float(ordered[-1] - ordered[0]),
        quartiles=quartiles,
        skewness=sample_skewness(data),
        kurtosis=sample_kurtosis(data),
    )
