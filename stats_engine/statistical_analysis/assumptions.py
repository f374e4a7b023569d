"""
가정 검정 모듈

정규성(단순화된 Shapiro-Wilk, Kolmogorov-Smirnov), 등분산성, 선형성, 잔차의
등분산성을 점검합니다. 점검 실패는 예외가 아니라 AssumptionResult 데이터로
기록되어 상위 검정 결과에 첨부됩니다.
"""

import logging
import math
from typing import Dict, List, Sequence

import numpy as np

from ..exceptions import ValidationError, StatisticalError
from .distributions import normal_cdf
from .results import AssumptionResult, NormalityTestResult
from .validation import filter_valid, validate_alpha

logger = logging.getLogger(__name__)

SHAPIRO_WILK_MIN_N = 3
SHAPIRO_WILK_MAX_N = 5000
SHAPIRO_WILK_W_THRESHOLD = 0.9
KS_CRITICAL_COEFFICIENT = 1.36  # alpha = 0.05
VARIANCE_RATIO_LIMIT = 4.0
LINEARITY_THRESHOLD = 0.3
PSEUDO_P_REJECT = 0.01
PSEUDO_P_ACCEPT = 0.1


def _population_variance(data: np.ndarray) -> float:
    return float(np.var(data)) if data.size else 0.0


def variance_ratio(variances: Sequence[float]) -> float:
    """최대/최소 분산 비율. 최소 분산이 0이면 inf (둘 다 0이면 1)."""
    largest = max(variances)
    smallest = min(variances)
    if smallest == 0:
        return 1.0 if largest == 0 else math.inf
    return largest / smallest


def shapiro_wilk_test(data: Sequence[float], alpha: float = 0.05) -> NormalityTestResult:
    """
    단순화된 Shapiro-Wilk 정규성 검정

    W = (Σ_{i<n/2} (x_(n-1-i) - x_(i)))² / ((n-1)·분산) 이며, p-value는
    W > 0.9 이면 0.1, 아니면 0.01 인 2단계 근사값입니다.

    Args:
        data: 결측값이 제거된 숫자 배열
        alpha: 유의수준

    Returns:
        NormalityTestResult
    """
    alpha = validate_alpha(alpha)
    values = np.sort(np.asarray(data, dtype=float))
    n = values.size
    if n < SHAPIRO_WILK_MIN_N or n > SHAPIRO_WILK_MAX_N:
        raise ValidationError(
            f"Shapiro-Wilk test requires sample size between {SHAPIRO_WILK_MIN_N} and {SHAPIRO_WILK_MAX_N}",
            details={"sample_size": int(n)}
        )

    variance = _population_variance(values)
    if variance == 0:
        raise ValidationError("Shapiro-Wilk test requires non-constant data", error_code="CONSTANT_VALUES")

    half = n // 2
    spread = float(np.sum(values[::-1][:half] - values[:half]))
    w_statistic = spread * spread / ((n - 1) * variance)
    p_value = PSEUDO_P_ACCEPT if w_statistic > SHAPIRO_WILK_W_THRESHOLD else PSEUDO_P_REJECT

    return NormalityTestResult(
        test_name='Shapiro-Wilk',
        statistic=w_statistic,
        p_value=p_value,
        is_normal=p_value > alpha,
        alpha=alpha,
    )


def kolmogorov_smirnov_test(data: Sequence[float], alpha: float = 0.05) -> NormalityTestResult:
    """
    Kolmogorov-Smirnov 정규성 검정 (표본 평균/표준편차 기반)

    D 통계량을 임계값 1.36/√n 과 비교하여 2단계 p-value를 산출합니다.
    """
    alpha = validate_alpha(alpha)
    values = np.sort(np.asarray(data, dtype=float))
    n = values.size
    if n < 2:
        raise ValidationError("Insufficient data for Kolmogorov-Smirnov test", details={"sample_size": int(n)})

    mean = float(values.mean())
    std = math.sqrt(_population_variance(values))
    if std == 0:
        raise ValidationError("Kolmogorov-Smirnov test requires non-constant data", error_code="CONSTANT_VALUES")

    empirical = np.arange(1, n + 1) / n
    theoretical = np.array([normal_cdf((value - mean) / std) for value in values])
    d_statistic = float(np.max(np.abs(empirical - theoretical)))

    critical_value = KS_CRITICAL_COEFFICIENT / math.sqrt(n)
    p_value = PSEUDO_P_REJECT if d_statistic > critical_value else PSEUDO_P_ACCEPT

    return NormalityTestResult(
        test_name='Kolmogorov-Smirnov',
        statistic=d_statistic,
        p_value=p_value,
        is_normal=p_value > alpha,
        alpha=alpha,
    )


def run_normality_tests(data: Sequence[float], alpha: float = 0.05) -> List[NormalityTestResult]:
    """두 정규성 검정을 모두 실행. 실행할 수 없는 검정은 error 필드로 보고합니다."""
    alpha = validate_alpha(alpha)
    values, _ = filter_valid(data, "data")

    results = []
    for name, check in (('Shapiro-Wilk', shapiro_wilk_test), ('Kolmogorov-Smirnov', kolmogorov_smirnov_test)):
        try:
            results.append(check(values, alpha))
        except ValidationError as e:
            logger.debug(f"{name} 검정 생략: {e.message}")
            results.append(NormalityTestResult(
                test_name=name, statistic=None, p_value=None, is_normal=None, alpha=alpha, error=e.message
            ))
    return results


def check_t_test_assumptions(data: np.ndarray, alpha: float = 0.05) -> List[AssumptionResult]:
    """단일/대응 표본 t-검정의 정규성 가정 점검"""
    try:
        normality = shapiro_wilk_test(data, alpha)
    except StatisticalError as e:
        return [AssumptionResult(
            name='Normality',
            test='Shapiro-Wilk',
            result='warning',
            message='Could not perform normality test: ' + e.message,
        )]

    return [AssumptionResult(
        name='Normality',
        test='Shapiro-Wilk',
        result='passed' if normality.is_normal else 'failed',
        statistic=normality.statistic,
        p_value=normality.p_value,
        message=('Data appears to be normally distributed' if normality.is_normal
                 else 'Data may not be normally distributed. Consider non-parametric alternatives.'),
    )]


def check_independent_t_test_assumptions(group1: np.ndarray, group2: np.ndarray,
                                         alpha: float = 0.05) -> List[AssumptionResult]:
    """독립 표본 t-검정의 정규성 및 등분산성 점검"""
    assumptions = []

    try:
        both_normal = shapiro_wilk_test(group1, alpha).is_normal and shapiro_wilk_test(group2, alpha).is_normal
        assumptions.append(AssumptionResult(
            name='Normality',
            test='Shapiro-Wilk',
            result='passed' if both_normal else 'failed',
            message=('Both groups appear normally distributed' if both_normal
                     else 'One or both groups may not be normally distributed'),
        ))
    except StatisticalError as e:
        assumptions.append(AssumptionResult(
            name='Normality',
            test='Shapiro-Wilk',
            result='warning',
            message='Could not perform normality test: ' + e.message,
        ))

    ratio = variance_ratio([_population_variance(group1), _population_variance(group2)])
    assumptions.append(AssumptionResult(
        name='Equal Variances',
        test='F-ratio',
        result='passed' if ratio < VARIANCE_RATIO_LIMIT else 'failed',
        statistic=ratio,
        message=('Variances appear equal' if ratio < VARIANCE_RATIO_LIMIT
                 else "Variances may be unequal. Consider Welch's t-test."),
    ))
    return assumptions


def check_anova_assumptions(groups: Dict[str, np.ndarray], alpha: float = 0.05) -> List[AssumptionResult]:
    """분산분석의 그룹별 정규성 및 분산 동질성 점검"""
    all_normal = True
    for name, values in groups.items():
        try:
            if not shapiro_wilk_test(values, alpha).is_normal:
                all_normal = False
        except StatisticalError as e:
            logger.debug(f"그룹 '{name}' 정규성 검정 불가: {e.message}")
            all_normal = False

    ratio = variance_ratio([_population_variance(values) for values in groups.values()])
    return [
        AssumptionResult(
            name='Normality',
            test='Shapiro-Wilk',
            result='passed' if all_normal else 'failed',
            message=('All groups appear normally distributed' if all_normal
                     else 'One or more groups may not be normally distributed'),
        ),
        AssumptionResult(
            name='Homogeneity of Variances',
            test='Variance Ratio',
            result='passed' if ratio < VARIANCE_RATIO_LIMIT else 'failed',
            statistic=ratio,
            message=('Variances appear homogeneous' if ratio < VARIANCE_RATIO_LIMIT
                     else 'Variances may be heterogeneous. Consider non-parametric alternatives.'),
        ),
    ]


def check_regression_assumptions(x: np.ndarray, y: np.ndarray, residuals: np.ndarray,
                                 alpha: float = 0.05) -> List[AssumptionResult]:
    """회귀분석의 선형성, 잔차 정규성, 등분산성 점검"""
    assumptions = []

    correlation = float(np.corrcoef(x, y)[0, 1])
    linear = abs(correlation) > LINEARITY_THRESHOLD
    assumptions.append(AssumptionResult(
        name='Linearity',
        test='Correlation',
        result='passed' if linear else 'warning',
        statistic=correlation,
        message=('Linear relationship appears reasonable' if linear
                 else 'Weak linear relationship. Consider non-linear models.'),
    ))

    try:
        normality = shapiro_wilk_test(residuals, alpha)
        assumptions.append(AssumptionResult(
            name='Normality of Residuals',
            test='Shapiro-Wilk',
            result='passed' if normality.is_normal else 'failed',
            statistic=normality.statistic,
            p_value=normality.p_value,
            message=('Residuals appear normally distributed' if normality.is_normal
                     else 'Residuals may not be normally distributed'),
        ))
    except StatisticalError as e:
        assumptions.append(AssumptionResult(
            name='Normality of Residuals',
            test='Shapiro-Wilk',
            result='warning',
            message='Could not test residual normality: ' + e.message,
        ))

    half = residuals.size // 2
    ratio = variance_ratio([_population_variance(residuals[:half]), _population_variance(residuals[half:])])
    assumptions.append(AssumptionResult(
        name='Homoscedasticity',
        test='Variance Ratio',
        result='passed' if ratio < VARIANCE_RATIO_LIMIT else 'failed',
        statistic=ratio,
        message=('Residual variance appears constant' if ratio < VARIANCE_RATIO_LIMIT
                 else 'Residual variance may not be constant'),
    ))
    return assumptions
