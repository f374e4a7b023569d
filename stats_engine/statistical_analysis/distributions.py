"""
확률 분포 모듈

특수 함수 위에 정규, Student-t, F, 카이제곱 누적분포함수와 신뢰구간 계산에
필요한 분위수 함수를 구현합니다.
"""

import math

from ..exceptions import NumericalError
from .special_functions import erf, incomplete_beta, incomplete_gamma, normal_inverse

SQRT_2 = math.sqrt(2.0)
NORMAL_APPROXIMATION_DF = 30


def _check_df(df: float, name: str = "df") -> None:
    if math.isnan(df) or df <= 0:
        raise NumericalError(f"Degrees of freedom must be positive, got {name}={df}", details={name: df})


def _check_probability(p: float) -> None:
    if math.isnan(p) or p < 0.0 or p > 1.0:
        raise NumericalError(f"Probability must lie in [0, 1], got {p}", details={"p": p})


def clamp_probability(p: float) -> float:
    return min(1.0, max(0.0, p))


def normal_cdf(z: float) -> float:
    """표준정규 누적분포, 0.5 * (1 + erf(z / √2))"""
    if math.isinf(z):
        return 1.0 if z > 0 else 0.0
    return clamp_probability(0.5 * (1.0 + erf(z / SQRT_2)))


def t_cdf(t: float, df: float) -> float:
    """Student-t 누적분포 (x = df / (df + t²) 인 정규화 불완전 베타 함수 사용)"""
    _check_df(df)
    if math.isnan(t):
        raise NumericalError("tCDF is undefined for NaN", details={"t": t, "df": df})
    if math.isinf(t):
        return 1.0 if t > 0 else 0.0

    x = df / (df + t * t)
    tail = 0.5 * incomplete_beta(x, df / 2.0, 0.5)
    return 1.0 - tail if t >= 0 else tail


def t_inverse(p: float, df: float) -> float:
    """
    Student-t 분위수

    df == 1 이면 Cauchy 분포의 정확한 분위수, df > 30 이면 정규 분위수,
    그 사이는 정규 분위수 주변의 Cornish-Fisher 전개를 사용합니다.
    """
    _check_probability(p)
    _check_df(df)
    if p == 0.0:
        return -math.inf
    if p == 1.0:
        return math.inf

    if df == 1:
        return math.tan(math.pi * (p - 0.5))

    z = normal_inverse(p)
    if df > NORMAL_APPROXIMATION_DF:
        return z

    z2 = z * z
    z3 = z2 * z
    z5 = z3 * z2
    z7 = z5 * z2
    g1 = (z3 + z) / 4.0
    g2 = (5.0 * z5 + 16.0 * z3 + 3.0 * z) / 96.0
    g3 = (3.0 * z7 + 19.0 * z5 + 17.0 * z3 - 15.0 * z) / 384.0
    return z + g1 / df + g2 / df ** 2 + g3 / df ** 3


def f_cdf(f: float, df1: float, df2: float) -> float:
    """F 분포 누적분포 (f <= 0 이면 0)"""
    _check_df(df1, "df1")
    _check_df(df2, "df2")
    if math.isnan(f):
        raise NumericalError("fCDF is undefined for NaN", details={"f": f})
    if f <= 0:
        return 0.0
    if math.isinf(f):
        return 1.0

    x = df2 / (df2 + df1 * f)
    return clamp_probability(1.0 - incomplete_beta(x, df2 / 2.0, df1 / 2.0))


def chi_square_cdf(x: float, df: float) -> float:
    """카이제곱 누적분포 P(df/2, x/2) (x <= 0 이면 0)"""
    _check_df(df)
    if math.isnan(x):
        raise NumericalError("chiSquareCDF is undefined for NaN", details={"x": x})
    if x <= 0:
        return 0.0
    return incomplete_gamma(df / 2.0, x / 2.0)


def two_tailed_t_p_value(t: float, df: float) -> float:
    if math.isnan(t):
        return 1.0
    return clamp_probability(2.0 * (1.0 - t_cdf(abs(t), df)))


def two_tailed_normal_p_value(z: float) -> float:
    if math.isnan(z):
        return 1.0
    return clamp_probability(2.0 * (1.0 - normal_cdf(abs(z))))
