"""
통계 오류 메시지 카탈로그

``StatisticalError``의 오류 코드를 사용자용 메시지, 기술 설명, 해결 제안으로
매핑합니다.
"""

import copy
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass
class StatisticalErrorInfo:
    """사용자 친화적 오류 정보"""
    title: str
    user_message: str
    technical_message: str
    suggestions: List[str] = field(default_factory=list)
    severity: str = "medium"  # low | medium | high
    category: str = "computational"  # data | statistical | computational | assumption

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "title": data["title"],
            "userMessage": data["user_message"],
            "technicalMessage": data["technical_message"],
            "suggestions": data["suggestions"],
            "severity": data["severity"],
            "category": data["category"],
        }


ERROR_CATALOG: Dict[str, StatisticalErrorInfo] = {
    "INSUFFICIENT_DATA": StatisticalErrorInfo(
        title="Insufficient data",
        user_message="Not enough data points to perform this analysis",
        technical_message="Sample size is below the minimum required for reliable statistical inference",
        suggestions=[
            "Collect more data points",
            "Consider using non-parametric alternatives",
            "Check for missing values that might be reducing your sample size",
        ],
        severity="high",
        category="data",
    ),
    "MISMATCHED_LENGTHS": StatisticalErrorInfo(
        title="Mismatched lengths",
        user_message="Paired variables must contain the same number of observations",
        technical_message="Input arrays that are combined pairwise have different lengths",
        suggestions=[
            "Check that both variables come from the same rows",
            "Remove unmatched observations before running the analysis",
        ],
        severity="high",
        category="data",
    ),
    "NON_NUMERIC_DATA": StatisticalErrorInfo(
        title="Non-numeric data",
        user_message="This analysis requires numeric data, but text or categorical data was found",
        technical_message="Non-numeric values detected in variables requiring numeric input",
        suggestions=[
            "Convert categorical variables to numeric codes if appropriate",
            "Use different analysis methods for categorical data",
            "Check data import settings and column types",
        ],
        severity="high",
        category="data",
    ),
    "CONSTANT_VALUES": StatisticalErrorInfo(
        title="No variation",
        user_message="Your data has no variation (all values are the same)",
        technical_message="Zero variance detected in one or more variables",
        suggestions=[
            "Check if the correct variable was selected",
            "Verify data import was successful",
            "Consider if this variable is meaningful for analysis",
        ],
        severity="medium",
        category="data",
    ),
    "ZERO_VARIANCE_GROUP": StatisticalErrorInfo(
        title="Zero variance group",
        user_message="One or more groups has no variation in the data",
        technical_message="Zero variance detected in one or more groups",
        suggestions=[
            "Check if the correct grouping variable was used",
            "Verify data import and processing",
            "Consider if this group should be excluded",
            "Combine groups if appropriate",
        ],
        severity="high",
        category="data",
    ),
    "INVALID_GROUPS": StatisticalErrorInfo(
        title="Invalid groups",
        user_message="The analysis needs more groups than were provided",
        technical_message="Number of groups is below the minimum required by the test",
        suggestions=[
            "Check the grouping variable",
            "Use a two-sample test when only two groups are available",
        ],
        severity="high",
        category="data",
    ),
    "INVALID_PARAMETER": StatisticalErrorInfo(
        title="Invalid parameter",
        user_message="One of the analysis parameters is outside its valid range",
        technical_message="Parameter validation failed before computation",
        suggestions=[
            "Use a significance level between 0 and 1 (for example 0.05)",
            "Check the documentation for accepted parameter values",
        ],
        severity="medium",
        category="statistical",
    ),
    "NUMERICAL_INSTABILITY": StatisticalErrorInfo(
        title="Numerical instability",
        user_message="The calculation encountered numerical precision issues",
        technical_message="Numerical instability detected during computation",
        suggestions=[
            "Check for extreme outliers in your data",
            "Consider data scaling or normalization",
            "Verify data quality and remove invalid values",
        ],
        severity="medium",
        category="computational",
    ),
    "CONVERGENCE_FAILURE": StatisticalErrorInfo(
        title="Convergence failure",
        user_message="The statistical algorithm failed to find a solution",
        technical_message="Iterative algorithm failed to converge",
        suggestions=[
            "Check for extreme values in your data",
            "Try the analysis again",
            "Consider a non-parametric alternative",
        ],
        severity="high",
        category="computational",
    ),
    "DOMAIN_ERROR": StatisticalErrorInfo(
        title="Domain error",
        user_message="A statistical function received a value outside its valid range",
        technical_message="Special function argument is outside its mathematical domain",
        suggestions=[
            "Verify data quality and remove invalid values",
            "Contact support if the problem persists",
        ],
        severity="high",
        category="computational",
    ),
    "SMALL_EXPECTED_FREQUENCIES": StatisticalErrorInfo(
        title="Small expected frequencies",
        user_message="Some categories have too few observations for chi-square test",
        technical_message="Expected frequencies below 5 in chi-square test",
        suggestions=[
            "Combine categories with low frequencies",
            "Use Fisher's exact test instead",
            "Collect more data",
        ],
        severity="medium",
        category="statistical",
    ),
}

UNKNOWN_ERROR = StatisticalErrorInfo(
    title="Unexpected error",
    user_message="An unexpected error occurred during statistical analysis",
    technical_message="Unknown error code",
    suggestions=[
        "Check your data for common issues",
        "Try a different analysis method",
        "Contact support if the problem persists",
    ],
    severity="medium",
    category="computational",
)


def get_error_info(error_code: str) -> Optional[StatisticalErrorInfo]:
    return ERROR_CATALOG.get(error_code)


def create_user_friendly_error(error_code: str, context: Optional[Dict[str, Any]] = None) -> StatisticalErrorInfo:
    """
    오류 코드와 컨텍스트로부터 사용자용 오류 정보를 생성

    Args:
        error_code: 카탈로그 오류 코드
        context: sample_size, missing_count, variable_name, test_type 등 선택적 컨텍스트

    Returns:
        카탈로그 항목의 복사본 (컨텍스트 반영)
    """
    base = ERROR_CATALOG.get(error_code)
    if base is None:
        info = copy.deepcopy(UNKNOWN_ERROR)
        info.technical_message = f"Unknown error code: {error_code}"
        return info

    info = copy.deepcopy(base)
    if not context:
        return info

    sample_size = context.get("sample_size")
    if sample_size is not None and sample_size < 30:
        info.suggestions.insert(0, f"Your sample size is {sample_size}, which is quite small")

    missing_count = context.get("missing_count")
    if missing_count:
        info.suggestions.insert(0, f"{missing_count} missing values were found")

    variable_name = context.get("variable_name")
    if variable_name:
        info.user_message = info.user_message.replace("Your data", f'Variable "{variable_name}"')

    test_type = context.get("test_type")
    if test_type:
        info.user_message += f" for {test_type} analysis"

    return info


def get_errors_by_category(category: str) -> Dict[str, StatisticalErrorInfo]:
    return {code: info for code, info in ERROR_CATALOG.items() if info.category == category}


def format_error_for_user(info: StatisticalErrorInfo, include_details: bool = False) -> str:
    message = info.user_message
    if include_details and info.suggestions:
        lines = [f"{index}. {suggestion}" for index, suggestion in enumerate(info.suggestions, start=1)]
        message += "\n\nSuggestions:\n" + "\n".join(lines)
    return message
