"""
특수 함수 모듈

오차 함수, 로그 감마, 정규화 불완전 베타/감마 함수, 표준정규 분위수 함수를
순수 파이썬으로 구현합니다. 모든 함수는 결정적이며 정의역 밖의 입력에 대해서는
NaN을 반환하지 않고 NumericalError를 발생시킵니다.
"""

import logging
import math
from typing import Tuple

from ..exceptions import NumericalError, ConvergenceError

logger = logging.getLogger(__name__)

# Abramowitz & Stegun 7.1.26
ERF_COEFFICIENTS = (0.254829592, -0.284496736, 1.421413741, -1.453152027, 1.061405429)
ERF_P = 0.3275911

# Lanczos (6항)
LANCZOS_COEFFICIENTS = (
    76.18009172947146,
    -86.50532032941677,
    24.01409824083091,
    -1.231739572450155,
    0.1208650973866179e-2,
    -0.5395239384953e-5,
)
LANCZOS_SERIES_START = 1.000000000190015
SQRT_TWO_PI = 2.5066282746310005

MAX_ITERATIONS = 100
BETA_EPSILON = 1e-15
GAMMA_EPSILON = 1e-15
GAMMA_FPMIN = 1e-30

# 정규 분위수 유리 근사 계수
NORMAL_INV_A = (
    -3.969683028665376e+01, 2.209460984245205e+02, -2.759285104469687e+02,
    1.383577518672690e+02, -3.066479806614716e+01, 2.506628277459239e+00,
)
NORMAL_INV_B = (
    -5.447609879822406e+01, 1.615858368580409e+02, -1.556989798598866e+02,
    6.680131188771972e+01, -1.328068155288572e+01,
)
NORMAL_INV_C = (
    -7.784894002430293e-03, -3.223964580411365e-01, -2.400758277161838e+00,
    -2.549732539343734e+00, 4.374664141464968e+00, 2.938163982698783e+00,
)
NORMAL_INV_D = (
    7.784695709041462e-03, 3.224671290700398e-01, 2.445134137142996e+00,
    3.754408661907416e+00,
)
NORMAL_INV_P_LOW = 0.02425


def erf(x: float) -> float:
    """
    오차 함수 (Abramowitz-Stegun 유리 근사, 최대 오차 약 1.5e-7)

    Args:
        x: 실수 입력

    Returns:
        erf(x)
    """
    if math.isnan(x):
        raise NumericalError("erf is undefined for NaN", details={"x": x})
    if x == 0:
        return 0.0

    sign = 1.0 if x > 0 else -1.0
    x = abs(x)
    a1, a2, a3, a4, a5 = ERF_COEFFICIENTS

    t = 1.0 / (1.0 + ERF_P * x)
    y = 1.0 - (((((a5 * t + a4) * t) + a3) * t + a2) * t + a1) * t * math.exp(-x * x)
    return sign * y


def log_gamma(x: float) -> float:
    """
    로그 감마 함수 (Lanczos 근사)

    Args:
        x: 양의 실수

    Returns:
        ln Γ(x)
    """
    if not x > 0:
        raise NumericalError(f"logGamma requires x > 0, got {x}", details={"x": x})

    y = x
    tmp = x + 5.5
    tmp -= (x + 0.5) * math.log(tmp)
    series = LANCZOS_SERIES_START
    for coefficient in LANCZOS_COEFFICIENTS:
        y += 1
        series += coefficient / y
    return -tmp + math.log(SQRT_TWO_PI * series / x)


def _clamp_tiny(value: float, floor: float) -> float:
    return floor if abs(value) < floor else value


def beta_continued_fraction(x: float, a: float, b: float) -> float:
    """
    불완전 베타 함수의 연분수 (modified Lentz 방법)

    최대 100회 반복, 수렴 임계값 1e-15. 분모가 0에 가까워지면 1e-15로 고정합니다.
    """
    qab = a + b
    qap = a + 1.0
    qam = a - 1.0

    c = 1.0
    d = 1.0 - qab * x / qap
    d = 1.0 / _clamp_tiny(d, BETA_EPSILON)
    h = d

    converged = False
    for m in range(1, MAX_ITERATIONS + 1):
        m2 = 2 * m

        # 짝수 단계
        aa = m * (b - m) * x / ((qam + m2) * (a + m2))
        d = 1.0 / _clamp_tiny(1.0 + aa * d, BETA_EPSILON)
        c = _clamp_tiny(1.0 + aa / c, BETA_EPSILON)
        h *= d * c

        # 홀수 단계
        aa = -(a + m) * (qab + m) * x / ((a + m2) * (qap + m2))
        d = 1.0 / _clamp_tiny(1.0 + aa * d, BETA_EPSILON)
        c = _clamp_tiny(1.0 + aa / c, BETA_EPSILON)
        delta = d * c
        h *= delta

        if abs(delta - 1.0) < BETA_EPSILON:
            converged = True
            break

    if not math.isfinite(h):
        raise ConvergenceError(
            "Beta continued fraction produced a non-finite value",
            details={"x": x, "a": a, "b": b}
        )
    if not converged:
        logger.debug(f"베타 연분수 최대 반복 도달: x={x}, a={a}, b={b}")
    return h


def incomplete_beta(x: float, a: float, b: float) -> float:
    """
    정규화 불완전 베타 함수 I_x(a, b)

    x < (a+1)/(a+b+2) 이면 연분수를 직접 사용하고, 그렇지 않으면 대칭 관계
    I_x(a,b) = 1 - I_{1-x}(b,a) 로 보수를 계산합니다.

    Args:
        x: [0, 1] 구간의 값
        a: 양의 형상 모수
        b: 양의 형상 모수

    Returns:
        I_x(a, b) ∈ [0, 1]
    """
    if not (a > 0 and b > 0):
        raise NumericalError(f"incompleteBeta requires a > 0 and b > 0, got a={a}, b={b}",
                             details={"a": a, "b": b})
    if not 0.0 <= x <= 1.0:
        raise NumericalError(f"incompleteBeta requires 0 <= x <= 1, got x={x}", details={"x": x})
    if x == 0.0:
        return 0.0
    if x == 1.0:
        return 1.0

    log_bt = (log_gamma(a + b) - log_gamma(a) - log_gamma(b)
              + a * math.log(x) + b * math.log(1.0 - x))
    bt = math.exp(log_bt)

    if x < (a + 1.0) / (a + b + 2.0):
        result = bt * beta_continued_fraction(x, a, b) / a
    else:
        result = 1.0 - bt * beta_continued_fraction(1.0 - x, b, a) / b
    return min(1.0, max(0.0, result))


def _gamma_series(a: float, x: float) -> Tuple[float, bool]:
    """
    P(a, x) 급수 전개 (x < a+1 구간)

    항의 비율이 x / (a + n) 이므로 a와 x가 모두 큰 경우(예: 자유도 1000 부근의
    카이제곱) 수렴이 느려, 반복 상한에서 잘린 결과는 1e-5 수준의 오차를 가질 수
    있습니다. 이때 수렴 여부는 False로 반환되고 DEBUG 로그만 남습니다.
    """
    term = 1.0 / a
    total = term
    for n in range(1, MAX_ITERATIONS):
        term *= x / (a + n)
        total += term
        if abs(term) < GAMMA_EPSILON:
            return total, True
    return total, False


def _gamma_continued_fraction(a: float, x: float) -> Tuple[float, bool]:
    b = x + 1.0 - a
    c = 1.0 / GAMMA_FPMIN
    d = 1.0 / b
    h = d
    for i in range(1, MAX_ITERATIONS):
        an = -i * (i - a)
        b += 2.0
        d = 1.0 / _clamp_tiny(an * d + b, GAMMA_FPMIN)
        c = _clamp_tiny(b + an / c, GAMMA_FPMIN)
        delta = d * c
        h *= delta
        if abs(delta - 1.0) < GAMMA_EPSILON:
            return h, True
    return h, False


def incomplete_gamma(a: float, x: float) -> float:
    """
    정규화 하부 불완전 감마 함수 P(a, x)

    x < a+1 이면 급수 전개, 그 외에는 연분수로 평가합니다.
    반복 횟수는 최대 100회로 제한되므로 a가 수백 이상이면 정확도가 떨어집니다.

    Args:
        a: 양의 형상 모수
        x: 0 이상의 값

    Returns:
        P(a, x) ∈ [0, 1]
    """
    if math.isnan(x) or x < 0 or not a > 0:
        raise NumericalError(f"incompleteGamma requires a > 0 and x >= 0, got a={a}, x={x}",
                             details={"a": a, "x": x})
    if x == 0:
        return 0.0
    if math.isinf(x):
        return 1.0

    log_prefactor = -x + a * math.log(x) - log_gamma(a)

    if x < a + 1.0:
        total, converged = _gamma_series(a, x)
        result = total * math.exp(log_prefactor)
    else:
        h, converged = _gamma_continued_fraction(a, x)
        result = 1.0 - math.exp(log_prefactor) * h

    if not math.isfinite(result):
        raise ConvergenceError(
            "Incomplete gamma evaluation produced a non-finite value",
            details={"a": a, "x": x}
        )
    if not converged:
        logger.debug(f"불완전 감마 최대 반복 도달: a={a}, x={x}")
    return min(1.0, max(0.0, result))


def normal_inverse(p: float) -> float:
    """
    표준정규분포의 분위수 함수 (유리 근사, 꼬리/중앙 두 구간)

    Args:
        p: [0, 1] 구간의 확률

    Returns:
        Φ⁻¹(p). p=0 이면 -inf, p=1 이면 +inf.
    """
    if math.isnan(p) or p < 0.0 or p > 1.0:
        raise NumericalError(f"normalInverse requires 0 <= p <= 1, got {p}", details={"p": p})
    if p == 0.0:
        return -math.inf
    if p == 1.0:
        return math.inf
    if p == 0.5:
        return 0.0

    a1, a2, a3, a4, a5, a6 = NORMAL_INV_A
    b1, b2, b3, b4, b5 = NORMAL_INV_B
    c1, c2, c3, c4, c5, c6 = NORMAL_INV_C
    d1, d2, d3, d4 = NORMAL_INV_D

    if p < NORMAL_INV_P_LOW or p > 1.0 - NORMAL_INV_P_LOW:
        tail = p if p < 0.5 else 1.0 - p
        q = math.sqrt(-2.0 * math.log(tail))
        value = ((((((c1 * q + c2) * q + c3) * q + c4) * q + c5) * q + c6)
                 / ((((d1 * q + d2) * q + d3) * q + d4) * q + 1.0))
        return value if p < 0.5 else -value

    q = p - 0.5
    r = q * q
    return ((((((a1 * r + a2) * r + a3) * r + a4) * r + a5) * r + a6) * q
            / (((((b1 * r + b2) * r + b3) * r + b4) * r + b5) * r + 1.0))
