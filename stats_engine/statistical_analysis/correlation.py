"""
상관 및 분할표 분석 모듈

Pearson/Spearman 상관 행렬, 빈도/히스토그램 분석, 분할표와 카이제곱 독립성
검정(Cramér's V 포함)을 제공합니다.
"""

import logging
import math
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..exceptions import ValidationError
from .distributions import chi_square_cdf, two_tailed_t_p_value, clamp_probability
from .ranking import average_ranks
from .results import (
    CorrelationMatrix,
    FrequencyItem,
    HistogramBin,
    FrequencyAnalysisResult,
    ChiSquareTestResult,
    ContingencyTable,
)
from .validation import filter_valid, filter_valid_pairs

logger = logging.getLogger(__name__)

CORRELATION_METHODS = ('pearson', 'spearman')
LEGACY_CHI_SQUARE_THRESHOLD = 3.841


def _label(value: Any) -> str:
    """범주 레이블 문자열 변환 (정수값 float는 정수로 표기)"""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _is_number(value: Any) -> bool:
    return pd.api.types.is_number(value) and not isinstance(value, (bool, np.bool_))


def pearson_correlation(x: np.ndarray, y: np.ndarray) -> float:
    """표본 상관계수. 유효 쌍이 2개 미만이거나 분산이 0이면 NaN."""
    if x.size < 2:
        return math.nan
    dx = x - x.mean()
    dy = y - y.mean()
    denominator = math.sqrt(float(np.sum(dx * dx)) * float(np.sum(dy * dy)))
    if denominator == 0:
        return math.nan
    return max(-1.0, min(1.0, float(np.sum(dx * dy)) / denominator))


def spearman_correlation(x: np.ndarray, y: np.ndarray) -> float:
    """순위(동점 평균 순위)에 대한 Pearson 상관계수"""
    if x.size < 2:
        return math.nan
    return pearson_correlation(average_ranks(x), average_ranks(y))


def correlation_p_value(r: float, n: int) -> float:
    if math.isnan(r) or n < 3:
        return math.nan
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * math.sqrt((n - 2) / (1 - r * r))
    return two_tailed_t_p_value(t_stat, n - 2)


def calculate_correlation_matrix(data: Mapping[str, Sequence], method: str = 'pearson') -> CorrelationMatrix:
    """
    상관 행렬 계산 (쌍별 결측 제거)

    Args:
        data: 변수 이름 → 값 시퀀스 (모두 같은 길이)
        method: 'pearson' 또는 'spearman'

    Returns:
        CorrelationMatrix. 대각 원소는 1, 유효 쌍이 2개 미만인 원소는 NaN.
    """
    if method not in CORRELATION_METHODS:
        raise ValidationError(
            f"Unsupported correlation method '{method}'. Use one of: {', '.join(CORRELATION_METHODS)}",
            error_code="INVALID_PARAMETER",
            details={"method": method}
        )

    variables = [str(name) for name in data.keys()]
    columns = [list(values) for values in data.values()]
    lengths = {len(values) for values in columns}
    if len(lengths) > 1:
        raise ValidationError(
            "All variables must have the same number of observations",
            error_code="MISMATCHED_LENGTHS",
            details={name: len(values) for name, values in zip(variables, columns)}
        )

    correlate = pearson_correlation if method == 'pearson' else spearman_correlation
    k = len(variables)
    matrix = [[1.0 if i == j else math.nan for j in range(k)] for i in range(k)]
    p_values = [[0.0 if i == j else math.nan for j in range(k)] for i in range(k)]
    sample_sizes = [[0] * k for _ in range(k)]

    for i in range(k):
        sample_sizes[i][i] = int(filter_valid(columns[i], variables[i])[0].size)
        for j in range(i + 1, k):
            x, y = filter_valid_pairs(columns[i], columns[j], variables[i], variables[j])
            r = correlate(x, y)
            p = correlation_p_value(r, int(x.size))
            matrix[i][j] = matrix[j][i] = r
            p_values[i][j] = p_values[j][i] = p
            sample_sizes[i][j] = sample_sizes[j][i] = int(x.size)

    logger.debug(f"상관 행렬 계산 완료: {k}개 변수, method={method}")
    return CorrelationMatrix(
        variables=variables,
        matrix=matrix,
        method=method,
        p_values=p_values,
        sample_sizes=sample_sizes,
    )


def _histogram(data: np.ndarray, bin_count: int) -> Tuple[List[HistogramBin], np.ndarray]:
    minimum = float(data.min())
    maximum = float(data.max())
    width = (maximum - minimum) / bin_count

    if width == 0:
        indices = np.zeros(data.size, dtype=int)
    else:
        indices = np.minimum(np.floor((data - minimum) / width).astype(int), bin_count - 1)
    counts = np.bincount(indices, minlength=bin_count)

    bins = []
    for i in range(bin_count):
        low = minimum + i * width
        high = maximum if i == bin_count - 1 else minimum + (i + 1) * width
        bins.append(HistogramBin(bin=f"[{low:.2f}, {high:.2f})", count=int(counts[i]), range=(low, high)))
    return bins, counts


def perform_frequency_analysis(values: Sequence, bin_count: Optional[int] = None) -> FrequencyAnalysisResult:
    """
    빈도 분석

    값이 모두 숫자이고 bin_count가 주어지면 등간격 히스토그램 구간별 빈도를,
    그 외에는 값(문자열 변환)별 빈도를 처음 등장한 순서대로 계산합니다.

    Args:
        values: 관측값 시퀀스 (숫자 또는 범주)
        bin_count: 히스토그램 구간 수

    Returns:
        FrequencyAnalysisResult
    """
    if bin_count is not None and (isinstance(bin_count, bool) or int(bin_count) != bin_count or bin_count < 1):
        raise ValidationError(
            f"bin_count must be a positive integer, got {bin_count}",
            error_code="INVALID_PARAMETER",
            details={"bin_count": bin_count}
        )

    series = pd.Series(list(values), dtype=object)
    valid = series[~series.isna()]
    total = int(valid.size)
    null_count = int(series.size - total)

    histogram = None
    if bin_count and total > 0 and all(_is_number(value) for value in valid):
        numeric, _ = filter_valid(valid.tolist())
        histogram, counts = _histogram(numeric, int(bin_count))
        labels = [item.bin for item in histogram]
    else:
        label_series = valid.map(_label)
        counts_by_label = label_series.value_counts(sort=False).reindex(label_series.unique())
        labels = counts_by_label.index.tolist()
        counts = counts_by_label.to_numpy()

    frequencies = []
    cumulative = 0
    for label, count in zip(labels, counts):
        cumulative += int(count)
        frequencies.append(FrequencyItem(
            value=label,
            count=int(count),
            relative_frequency=int(count) / total if total else 0.0,
            cumulative_frequency=cumulative / total if total else 0.0,
        ))

    return FrequencyAnalysisResult(
        frequencies=frequencies,
        total_count=total,
        null_count=null_count,
        histogram=histogram,
    )


def chi_square_test(observed: np.ndarray, exact_p_value: bool = True) -> ChiSquareTestResult:
    """
    카이제곱 독립성 검정

    Args:
        observed: 관측 빈도 행렬 (행/열 각각 2개 이상)
        exact_p_value: True이면 카이제곱 CDF로 p-value 계산, False이면 χ²>3.841 임계값 근사

    Returns:
        ChiSquareTestResult
    """
    observed = np.asarray(observed, dtype=float)
    rows, cols = observed.shape
    grand_total = float(observed.sum())
    if rows < 2 or cols < 2 or grand_total == 0:
        raise ValidationError(
            "Chi-square test requires at least 2 categories per variable and a non-empty table",
            details={"rows": rows, "columns": cols, "sample_size": int(grand_total)}
        )

    expected = np.outer(observed.sum(axis=1), observed.sum(axis=0)) / grand_total
    positive = expected > 0
    statistic = float(np.sum((observed[positive] - expected[positive]) ** 2 / expected[positive]))
    df = (rows - 1) * (cols - 1)

    if exact_p_value:
        p_value = clamp_probability(1 - chi_square_cdf(statistic, df))
        method = 'chi-square-cdf'
    else:
        p_value = 0.01 if statistic > LEGACY_CHI_SQUARE_THRESHOLD else 0.1
        method = 'threshold'

    return ChiSquareTestResult(
        statistic=statistic,
        p_value=p_value,
        degrees_of_freedom=df,
        expected=expected.tolist(),
        cramers_v=math.sqrt(statistic / (grand_total * min(rows - 1, cols - 1))),
        p_value_method=method,
    )


def create_contingency_table(row_data: Sequence, column_data: Sequence, row_variable: str = 'row',
                             column_variable: str = 'column', exact_p_value: bool = True) -> ContingencyTable:
    """
    분할표 생성 및 카이제곱 검정

    행/열 레이블은 결측이 아닌 고유값을 문자열로 변환해 정렬한 것입니다.
    어느 변수든 범주가 2개 미만이면 chi_square_test는 None입니다.
    """
    rows = list(row_data)
    columns = list(column_data)
    if len(rows) != len(columns):
        raise ValidationError(
            "Row and column data must have the same length",
            error_code="MISMATCHED_LENGTHS",
            details={row_variable: len(rows), column_variable: len(columns)}
        )

    frame = pd.DataFrame({'row': pd.Series(rows, dtype=object), 'column': pd.Series(columns, dtype=object)})
    row_labels = sorted({_label(value) for value in frame['row'].dropna()})
    column_labels = sorted({_label(value) for value in frame['column'].dropna()})

    complete = frame.dropna()
    if complete.empty:
        table = pd.DataFrame(0, index=row_labels, columns=column_labels)
    else:
        table = pd.crosstab(complete['row'].map(_label), complete['column'].map(_label))
        table = table.reindex(index=row_labels, columns=column_labels, fill_value=0)
    observed = table.to_numpy(dtype=int)

    row_totals = observed.sum(axis=1)
    column_totals = observed.sum(axis=0)
    grand_total = int(observed.sum())

    test_result = None
    if len(row_labels) >= 2 and len(column_labels) >= 2 and grand_total > 0:
        test_result = chi_square_test(observed, exact_p_value)
    else:
        logger.info(f"카이제곱 검정 생략: {row_variable}={len(row_labels)}개 범주, "
                    f"{column_variable}={len(column_labels)}개 범주")

    return ContingencyTable(
        row_variable=row_variable,
        column_variable=column_variable,
        row_labels=row_labels,
        column_labels=column_labels,
        observed=observed.tolist(),
        row_totals=[int(total) for total in row_totals],
        column_totals=[int(total) for total in column_totals],
        grand_total=grand_total,
        chi_square_test=test_result,
    )
