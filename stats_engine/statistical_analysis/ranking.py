"""
동점 평균 순위 계산 (순위 기반 검정과 Spearman 상관에서 공용)
"""

from typing import Iterable

import numpy as np


def average_ranks(values: Iterable[float]) -> np.ndarray:
    """
    1..n 순위를 매기며, 같은 값이 연속된 구간에는 그 구간 순위의 평균을 부여

    Args:
        values: 결측값이 제거된 숫자 시퀀스

    Returns:
        입력 순서에 맞춘 float 순위 배열
    """
    data = np.asarray(list(values), dtype=float)
    n = data.size
    ranks = np.empty(n, dtype=float)
    if n == 0:
        return ranks

    order = np.argsort(data, kind='mergesort')
    ordered = data[order]

    start = 0
    while start < n:
        end = start
        while end + 1 < n and ordered[end + 1] == ordered[start]:
            end += 1
        # 위치 start..end 는 순위 start+1..end+1
        ranks[order[start:end + 1]] = (start + end) / 2.0 + 1.0
        start = end + 1

    return ranks
