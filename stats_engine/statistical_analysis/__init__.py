"""
Statistical Analysis Module

- Special functions and probability distributions
- Descriptive statistics and frequency analysis
- Parametric and non-parametric hypothesis tests
- Correlation matrices and contingency tables
- Assumption checks and test suggestions
- StatisticalAnalysisEngine (cache, background jobs, metrics, retry)
"""

from .descriptive import calculate_descriptive_stats
from .hypothesis_tests import (
    one_sample_t_test,
    independent_t_test,
    paired_t_test,
    one_way_anova,
    tukey_hsd,
    linear_regression,
)
from .nonparametric import mann_whitney_u_test, wilcoxon_signed_rank_test, kruskal_wallis_test
from .correlation import (
    calculate_correlation_matrix,
    perform_frequency_analysis,
    create_contingency_table,
    chi_square_test,
)
from .assumptions import run_normality_tests
from .suggestions import suggest_tests
from .engine import StatisticalAnalysisEngine, build_engine

__all__ = [
    'calculate_descriptive_stats',
    'one_sample_t_test',
    'independent_t_test',
    'paired_t_test',
    'one_way_anova',
    'tukey_hsd',
    'linear_regression',
    'mann_whitney_u_test',
    'wilcoxon_signed_rank_test',
    'kruskal_wallis_test',
    'calculate_correlation_matrix',
    'perform_frequency_analysis',
    'create_contingency_table',
    'chi_square_test',
    'run_normality_tests',
    'suggest_tests',
    'StatisticalAnalysisEngine',
    'build_engine',
]
