"""
통계 분석 결과 데이터 클래스

각 결과 객체는 to_dict()로 카멜 케이스 키를 갖는 딕셔너리를 반환합니다.
이 키 이름들은 UI/리포트가 의존하는 공개 API이므로 변경하지 않아야 합니다.
"""

import math
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


def _camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _convert(value: Any, json_safe: bool) -> Any:
    if isinstance(value, StatisticalResult):
        return value.to_dict(json_safe=json_safe)
    if isinstance(value, np.ndarray):
        return _convert(value.tolist(), json_safe)
    if isinstance(value, np.generic):
        return _convert(value.item(), json_safe)
    if isinstance(value, dict):
        return {key: _convert(item, json_safe) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_convert(item, json_safe) for item in value]
    if isinstance(value, float) and json_safe and not math.isfinite(value):
        return None
    return value


@dataclass
class StatisticalResult:
    """결과 데이터 클래스의 공통 직렬화"""

    def to_dict(self, json_safe: bool = False) -> Dict[str, Any]:
        """
        카멜 케이스 키 딕셔너리로 변환

        Args:
            json_safe: True이면 NaN/Infinity를 None으로 변환하여 JSON 인코딩 가능하게 만듦

        Returns:
            결과 딕셔너리
        """
        result = {}
        for item in fields(self):
            key = item.metadata.get('key', _camel_case(item.name))
            result[key] = _convert(getattr(self, item.name), json_safe)
        return result


@dataclass
class AssumptionResult(StatisticalResult):
    """가정 검정 결과 (실패해도 상위 검정을 중단시키지 않음)"""
    name: str
    test: str
    result: str  # passed | failed | warning
    message: str
    statistic: Optional[float] = None
    p_value: Optional[float] = None


@dataclass
class NormalityTestResult(StatisticalResult):
    """정규성 검정 결과 (단순화된 임계값 기반 p-value)"""
    test_name: str
    statistic: Optional[float]
    p_value: Optional[float]
    is_normal: Optional[bool]
    alpha: float
    error: Optional[str] = None


@dataclass
class DescriptiveStats(StatisticalResult):
    """기술 통계량"""
    count: int
    null_count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    mode: Optional[float] = None
    standard_deviation: Optional[float] = None
    variance: Optional[float] = None
    minimum: Optional[float] = field(default=None, metadata={'key': 'min'})
    maximum: Optional[float] = field(default=None, metadata={'key': 'max'})
    range: Optional[float] = None
    quartiles: Optional[Tuple[float, float, float]] = None  # (Q1, 중앙값, Q3)
    skewness: Optional[float] = None
    kurtosis: Optional[float] = None

    def to_dict(self, json_safe: bool = False) -> Dict[str, Any]:
        if self.count == 0:
            return {'count': 0, 'nullCount': self.null_count}
        return super().to_dict(json_safe=json_safe)


@dataclass
class TTestResult(StatisticalResult):
    """t-검정 결과"""
    test_type: str  # one-sample | independent | paired
    statistic: float
    p_value: float
    degrees_of_freedom: float
    confidence_interval: Tuple[float, float]
    mean_difference: float
    standard_error: float
    effect_size: float
    alpha: float
    significant: bool
    assumptions: List[AssumptionResult] = field(default_factory=list)
    equal_variances: Optional[bool] = None


@dataclass
class GroupStatistics(StatisticalResult):
    group: str
    n: int
    mean: float
    standard_deviation: float
    standard_error: float


@dataclass
class PostHocTestResult(StatisticalResult):
    """Tukey HSD 쌍별 비교 결과"""
    comparison: str
    mean_difference: float
    statistic: float
    p_value: float
    adjusted_p_value: float
    confidence_interval: Tuple[float, float]
    significant: bool


@dataclass
class ANOVAResult(StatisticalResult):
    """일원 분산분석 결과"""
    f_statistic: float
    p_value: float
    degrees_of_freedom_between: int
    degrees_of_freedom_within: int
    sum_of_squares_between: float
    sum_of_squares_within: float
    mean_square_between: float
    mean_square_within: float
    eta_squared: float
    alpha: float
    significant: bool
    group_statistics: List[GroupStatistics] = field(default_factory=list)
    post_hoc_tests: Optional[List[PostHocTestResult]] = None
    assumptions: List[AssumptionResult] = field(default_factory=list)


@dataclass
class RegressionCoefficient(StatisticalResult):
    variable: str
    coefficient: float
    standard_error: float
    t_statistic: float
    p_value: float
    confidence_interval: Tuple[float, float]


@dataclass
class RegressionDiagnostics(StatisticalResult):
    durbin_watson: float = field(metadata={'key': 'durbin_watson'})
    jarque_bera: float = field(metadata={'key': 'jarque_bera'})
    breusch_pagan: float = field(metadata={'key': 'breusch_pagan'})


@dataclass
class RegressionResult(StatisticalResult):
    """단순 선형 회귀 결과"""
    coefficients: List[RegressionCoefficient]
    r_squared: float
    adjusted_r_squared: float
    f_statistic: float
    f_p_value: float
    degrees_of_freedom: int
    standard_error: float
    residuals: List[float]
    fitted_values: List[float]
    diagnostics: RegressionDiagnostics
    n: int
    assumptions: List[AssumptionResult] = field(default_factory=list)


@dataclass
class NonParametricTestResult(StatisticalResult):
    """비모수 검정 결과"""
    test_type: str  # mann-whitney | wilcoxon | kruskal-wallis
    statistic: float
    p_value: float
    alpha: float
    significant: bool
    effect_size: Optional[float] = None
    z_score: Optional[float] = None
    degrees_of_freedom: Optional[int] = None
    ranks: Optional[Dict[str, float]] = None
    medians: Optional[Dict[str, float]] = None
    u_statistics: Optional[Dict[str, float]] = None


@dataclass
class CorrelationMatrix(StatisticalResult):
    """상관 행렬 (대각 원소는 항상 1)"""
    variables: List[str]
    matrix: List[List[float]]
    method: str
    p_values: List[List[float]]
    sample_sizes: List[List[int]]


@dataclass
class FrequencyItem(StatisticalResult):
    value: Any
    count: int
    relative_frequency: float
    cumulative_frequency: float


@dataclass
class HistogramBin(StatisticalResult):
    bin: str
    count: int
    range: Tuple[float, float]


@dataclass
class FrequencyAnalysisResult(StatisticalResult):
    frequencies: List[FrequencyItem]
    total_count: int
    null_count: int
    histogram: Optional[List[HistogramBin]] = None


@dataclass
class ChiSquareTestResult(StatisticalResult):
    """카이제곱 독립성 검정 결과"""
    statistic: float
    p_value: float
    degrees_of_freedom: int
    expected: List[List[float]]
    cramers_v: float
    p_value_method: str  # chi-square-cdf | threshold


@dataclass
class ContingencyTable(StatisticalResult):
    """분할표"""
    row_variable: str
    column_variable: str
    row_labels: List[str]
    column_labels: List[str]
    observed: List[List[int]]
    row_totals: List[int]
    column_totals: List[int]
    grand_total: int
    chi_square_test: Optional[ChiSquareTestResult] = None


@dataclass
class TestSuggestion(StatisticalResult):
    """추천 검정"""
    __test__ = False

    test_name: str
    test_type: str
    rationale: str
    assumptions: List[str]
    alternatives: List[str]
    confidence: float
