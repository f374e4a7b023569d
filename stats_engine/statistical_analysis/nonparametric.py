"""
비모수 검정 모듈

Mann-Whitney U, Wilcoxon 부호 순위, Kruskal-Wallis 검정을 구현합니다.
세 검정 모두 ``ranking`` 모듈의 동점 평균 순위를 사용합니다.
"""

import logging
import math
from typing import Dict, Mapping, Sequence, Tuple

import numpy as np

from ..exceptions import ValidationError
from .distributions import chi_square_cdf, two_tailed_normal_p_value, clamp_probability
from .ranking import average_ranks
from .results import NonParametricTestResult
from .validation import filter_valid, filter_valid_pairs, validate_alpha

logger = logging.getLogger(__name__)


def mann_whitney_u_test(group1: Sequence, group2: Sequence, alpha: float = 0.05,
                        group_names: Tuple[str, str] = ('Group 1', 'Group 2')) -> NonParametricTestResult:
    """
    Mann-Whitney U 검정 (대표본 정규 근사)

    통계량은 U = min(U1, U2) 이며, 두 U 값은 ``u_statistics`` 에 보존되고
    합은 항상 n1 * n2 입니다.
    """
    alpha = validate_alpha(alpha)
    values1, _ = filter_valid(group1, group_names[0])
    values2, _ = filter_valid(group2, group_names[1])
    if values1.size < 1 or values2.size < 1:
        raise ValidationError(
            "Mann-Whitney U test requires at least 1 observation in each group",
            details={"sample_size": int(min(values1.size, values2.size)), "minimum": 1}
        )

    n1, n2 = int(values1.size), int(values2.size)
    ranks = average_ranks(np.concatenate([values1, values2]))
    ranks1, ranks2 = ranks[:n1], ranks[n1:]

    u1 = float(ranks1.sum()) - n1 * (n1 + 1) / 2
    u2 = float(ranks2.sum()) - n2 * (n2 + 1) / 2
    u_statistic = min(u1, u2)

    mean_u = n1 * n2 / 2
    std_u = math.sqrt(n1 * n2 * (n1 + n2 + 1) / 12)
    z_score = (u_statistic - mean_u) / std_u
    p_value = two_tailed_normal_p_value(z_score)

    return NonParametricTestResult(
        test_type='mann-whitney',
        statistic=u_statistic,
        p_value=p_value,
        alpha=alpha,
        significant=p_value < alpha,
        effect_size=abs(z_score) / math.sqrt(n1 + n2),
        z_score=z_score,
        ranks={group_names[0]: float(ranks1.mean()), group_names[1]: float(ranks2.mean())},
        medians={group_names[0]: float(np.median(values1)), group_names[1]: float(np.median(values2))},
        u_statistics={group_names[0]: u1, group_names[1]: u2},
    )


def wilcoxon_signed_rank_test(before: Sequence, after: Sequence, alpha: float = 0.05) -> NonParametricTestResult:
    """
    Wilcoxon 부호 순위 검정 (after - before 차이 기준)

    결측 쌍과 차이가 0인 쌍을 제거한 뒤 절댓값 차이에 순위를 매깁니다.
    """
    alpha = validate_alpha(alpha)
    before_values, after_values = filter_valid_pairs(before, after, "before", "after")
    differences = after_values - before_values
    differences = differences[differences != 0]
    if differences.size < 1:
        raise ValidationError(
            "Wilcoxon signed-rank test requires at least 1 non-zero difference",
            details={"sample_size": 0, "minimum": 1}
        )

    n = int(differences.size)
    ranks = average_ranks(np.abs(differences))
    w_plus = float(ranks[differences > 0].sum())
    w_minus = n * (n + 1) / 2 - w_plus
    w_statistic = min(w_plus, w_minus)

    mean_w = n * (n + 1) / 4
    std_w = math.sqrt(n * (n + 1) * (2 * n + 1) / 24)
    z_score = (w_statistic - mean_w) / std_w
    p_value = two_tailed_normal_p_value(z_score)

    return NonParametricTestResult(
        test_type='wilcoxon',
        statistic=w_statistic,
        p_value=p_value,
        alpha=alpha,
        significant=p_value < alpha,
        effect_size=abs(z_score) / math.sqrt(n),
        z_score=z_score,
        ranks={'positive': w_plus, 'negative': w_minus},
        medians={'before': float(np.median(before_values)), 'after': float(np.median(after_values)),
                 'difference': float(np.median(differences))},
    )


def kruskal_wallis_test(groups: Mapping[str, Sequence], alpha: float = 0.05) -> NonParametricTestResult:
    """
    Kruskal-Wallis H 검정 (자유도 k - 1 카이제곱 분포 기준)

    효과 크기는 엡실론 제곱 H / (N - 1) 입니다.
    """
    alpha = validate_alpha(alpha)
    if len(groups) < 2:
        raise ValidationError(
            "Kruskal-Wallis test requires at least 2 groups",
            error_code="INVALID_GROUPS",
            details={"group_count": len(groups)}
        )

    valid_groups: Dict[str, np.ndarray] = {}
    for name, values in groups.items():
        data, _ = filter_valid(values, str(name))
        if data.size < 1:
            raise ValidationError(
                f"Group {name} must have at least 1 observation",
                details={"group": str(name), "sample_size": 0, "minimum": 1}
            )
        valid_groups[str(name)] = data

    sizes = [data.size for data in valid_groups.values()]
    total_n = int(sum(sizes))
    ranks = average_ranks(np.concatenate(list(valid_groups.values())))

    mean_ranks = {}
    weighted = 0.0
    offset = 0
    for (name, data), size in zip(valid_groups.items(), sizes):
        group_ranks = ranks[offset:offset + size]
        offset += size
        rank_sum = float(group_ranks.sum())
        weighted += rank_sum * rank_sum / size
        mean_ranks[name] = rank_sum / size

    h_statistic = 12 / (total_n * (total_n + 1)) * weighted - 3 * (total_n + 1)
    df = len(valid_groups) - 1
    p_value = clamp_probability(1 - chi_square_cdf(h_statistic, df))
    logger.debug(f"Kruskal-Wallis: k={len(valid_groups)}, N={total_n}, H={h_statistic:.4f}")

    return NonParametricTestResult(
        test_type='kruskal-wallis',
        statistic=h_statistic,
        p_value=p_value,
        alpha=alpha,
        significant=p_value < alpha,
        effect_size=h_statistic / (total_n - 1) if total_n > 1 else None,
        degrees_of_freedom=df,
        ranks=mean_ranks,
        medians={name: float(np.median(data)) for name, data in valid_groups.items()},
    )
