"""
입력 검증 및 결측값 필터링

모든 분석 함수는 이 모듈의 함수로 호출자 데이터의 필터링된 복사본을 만들고,
수치 계산을 시작하기 전에 표본 크기/형태 사전 조건을 확인합니다.
"""

import math
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

from ..exceptions import ValidationError


def _to_numeric(series: pd.Series, name: str) -> np.ndarray:
    try:
        numeric = pd.to_numeric(series, errors='raise')
    except (ValueError, TypeError) as e:
        raise ValidationError(
            f"Variable '{name}' contains non-numeric values",
            error_code="NON_NUMERIC_DATA",
            details={"variable_name": name}
        ) from e
    return numeric.to_numpy(dtype=float)


def filter_valid(values: Iterable, name: str = "data") -> Tuple[np.ndarray, int]:
    """
    결측값을 제거한 float 배열 복사본 생성

    Args:
        values: 숫자 시퀀스 (None/NaN 허용)
        name: 오류 메시지에 사용할 변수 이름

    Returns:
        (유효값 배열, 결측값 개수)
    """
    series = pd.Series(list(values), dtype=object)
    data = _to_numeric(series[~series.isna()], name)
    data = data[~np.isnan(data)]
    return data, int(len(series) - data.size)


def filter_valid_pairs(x: Iterable, y: Iterable, x_name: str = "x",
                       y_name: str = "y") -> Tuple[np.ndarray, np.ndarray]:
    """
    두 변수 중 하나라도 결측인 쌍을 제거 (pairwise deletion)

    Returns:
        (x 유효값 배열, y 유효값 배열), 두 배열의 길이는 같음
    """
    x_values = list(x)
    y_values = list(y)
    if len(x_values) != len(y_values):
        raise ValidationError(
            f"'{x_name}' and '{y_name}' must have the same length "
            f"({len(x_values)} != {len(y_values)})",
            error_code="MISMATCHED_LENGTHS",
            details={x_name: len(x_values), y_name: len(y_values)}
        )

    x_series = pd.Series(x_values, dtype=object)
    y_series = pd.Series(y_values, dtype=object)
    keep = ~(x_series.isna() | y_series.isna())

    x_data = _to_numeric(x_series[keep], x_name)
    y_data = _to_numeric(y_series[keep], y_name)
    finite = ~(np.isnan(x_data) | np.isnan(y_data))
    return x_data[finite], y_data[finite]


def validate_alpha(alpha: float) -> float:
    if alpha is None or isinstance(alpha, bool) or not isinstance(alpha, (int, float)) \
            or math.isnan(alpha) or not 0 < alpha < 1:
        raise ValidationError(
            f"Significance level alpha must be between 0 and 1, got {alpha}",
            error_code="INVALID_PARAMETER",
            details={"alpha": alpha}
        )
    return float(alpha)


def require_sample_size(data: np.ndarray, minimum: int, message: str, **context) -> None:
    if data.size < minimum:
        raise ValidationError(
            message,
            error_code="INSUFFICIENT_DATA",
            details={"sample_size": int(data.size), "minimum": minimum, **context}
        )
