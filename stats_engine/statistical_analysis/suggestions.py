"""
검정 추천 휴리스틱

변수 유형, 표본 크기, 그룹 수, 대응 여부만으로 적절한 검정을 추천합니다.
부작용이 없고 같은 입력에 대해 항상 같은 순서의 결과를 반환합니다.
"""

import logging
from typing import List, Mapping, Optional

from ..exceptions import ValidationError
from .results import TestSuggestion

logger = logging.getLogger(__name__)

VARIABLE_TYPES = ('numeric', 'categorical')
SMALL_SAMPLE_SIZE = 30
SMALL_SAMPLE_PENALTY = 0.9


def _suggestion(test_name: str, test_type: str, rationale: str, assumptions: List[str],
                confidence: float, alternatives: Optional[List[str]] = None) -> TestSuggestion:
    return TestSuggestion(
        test_name=test_name,
        test_type=test_type,
        rationale=rationale,
        assumptions=assumptions,
        alternatives=alternatives or [],
        confidence=confidence,
    )


def suggest_tests(data_types: Mapping[str, str], sample_sizes: Mapping[str, int],
                  num_groups: Optional[int] = None, paired_data: bool = False) -> List[TestSuggestion]:
    """
    데이터 특성에 맞는 통계 검정 추천

    Args:
        data_types: 변수 이름 → 'numeric' | 'categorical'
        sample_sizes: 변수 이름 → 표본 크기
        num_groups: 비교할 그룹 수 (선택)
        paired_data: 대응 표본 여부

    Returns:
        신뢰도 내림차순으로 정렬된 추천 목록
    """
    if not data_types:
        raise ValidationError("At least one variable is required to suggest tests",
                              error_code="INVALID_PARAMETER")
    invalid = {name: kind for name, kind in data_types.items() if kind not in VARIABLE_TYPES}
    if invalid:
        raise ValidationError(
            f"Variable types must be one of {', '.join(VARIABLE_TYPES)}",
            error_code="INVALID_PARAMETER",
            details={"invalid_types": invalid}
        )

    variables = list(data_types.keys())
    kinds = [data_types[name] for name in variables]
    two_numeric = len(variables) == 2 and kinds == ['numeric', 'numeric']
    suggestions: List[TestSuggestion] = []

    if len(variables) == 1 and kinds[0] == 'numeric':
        suggestions.append(_suggestion(
            'One-Sample t-test', 'parametric',
            'Compare sample mean to known population mean',
            ['Normality', 'Independence'], 0.8,
            alternatives=['Wilcoxon Signed-Rank Test'],
        ))
        suggestions.append(_suggestion(
            'Normality Tests', 'diagnostic',
            'Test if data follows normal distribution',
            ['Independence'], 0.9,
        ))

    if two_numeric:
        if paired_data:
            suggestions.append(_suggestion(
                'Paired t-test', 'parametric',
                'Compare means of paired observations',
                ['Normality of differences', 'Independence'], 0.9,
                alternatives=['Wilcoxon Signed-Rank Test'],
            ))
        else:
            suggestions.append(_suggestion(
                'Independent t-test', 'parametric',
                'Compare means of two independent groups',
                ['Normality', 'Equal variances', 'Independence'], 0.9,
                alternatives=['Mann-Whitney U Test'],
            ))
            suggestions.append(_suggestion(
                'Linear Regression', 'regression',
                'Model relationship between variables',
                ['Linearity', 'Normality of residuals', 'Homoscedasticity'], 0.8,
            ))
            suggestions.append(_suggestion(
                'Correlation Analysis', 'association',
                'Measure strength of linear relationship',
                ['Linearity', 'Normality (for significance testing)'], 0.9,
                alternatives=['Spearman Correlation'],
            ))

    if num_groups and num_groups > 2:
        suggestions.append(_suggestion(
            'One-Way ANOVA', 'parametric',
            'Compare means across multiple groups',
            ['Normality', 'Homogeneity of variances', 'Independence'], 0.9,
            alternatives=['Kruskal-Wallis Test'],
        ))

    if kinds.count('categorical') == 2:
        suggestions.append(_suggestion(
            'Chi-Square Test of Independence', 'non-parametric',
            'Test association between categorical variables',
            ['Expected frequencies ≥ 5', 'Independence'], 0.9,
            alternatives=["Fisher's Exact Test"],
        ))

    if sample_sizes and min(sample_sizes.values()) < SMALL_SAMPLE_SIZE:
        for suggestion in suggestions:
            if suggestion.alternatives:
                suggestion.confidence *= SMALL_SAMPLE_PENALTY

        if two_numeric and paired_data:
            suggestions.append(_suggestion(
                'Wilcoxon Signed-Rank Test', 'non-parametric',
                'Robust alternative for small paired samples or non-normal differences',
                ['Symmetric distribution of differences', 'Independence of pairs'], 0.95,
            ))
        elif two_numeric:
            suggestions.append(_suggestion(
                'Mann-Whitney U Test', 'non-parametric',
                'Robust alternative for small samples or non-normal data',
                ['Independence', 'Similar distribution shapes'], 0.95,
            ))
        if num_groups and num_groups > 2:
            suggestions.append(_suggestion(
                'Kruskal-Wallis Test', 'non-parametric',
                'Robust alternative to ANOVA for small groups or non-normal data',
                ['Independence', 'Similar distribution shapes'], 0.95,
            ))

    logger.debug(f"검정 추천 {len(suggestions)}건 생성")
    return sorted(suggestions, key=lambda item: item.confidence, reverse=True)
