"""
가정 검정 단위 테스트
"""

import math

import numpy as np
import pytest
from scipy import stats

from stats_engine.exceptions import ValidationError
from stats_engine.statistical_analysis.assumptions import (
    variance_ratio,
    shapiro_wilk_test,
    kolmogorov_smirnov_test,
    run_normality_tests,
    check_t_test_assumptions,
    check_independent_t_test_assumptions,
    check_anova_assumptions,
    check_regression_assumptions,
)


class TestVarianceRatio:

    def test_ratio(self):
        assert variance_ratio([1.0, 4.0, 2.0]) == 4.0

    def test_zero_variances(self):
        assert variance_ratio([0.0, 0.0]) == 1.0
        assert variance_ratio([0.0, 2.0]) == math.inf


class TestShapiroWilk:

    def test_statistic_formula(self):
        # spread = (5-1) + (4-2) = 6, 모분산 = 2
        result = shapiro_wilk_test([3, 1, 5, 2, 4])

        assert result.test_name == 'Shapiro-Wilk'
        assert result.statistic == pytest.approx(36 / (4 * 2))
        assert result.p_value == 0.1
        assert result.is_normal is True

    def test_is_normal_compares_pseudo_p_value_with_alpha(self):
        result = shapiro_wilk_test([3, 1, 5, 2, 4], alpha=0.2)

        assert result.p_value == 0.1
        assert result.is_normal is False

    @pytest.mark.parametrize("size", [2, 5001])
    def test_sample_size_limits(self, size):
        with pytest.raises(ValidationError):
            shapiro_wilk_test(np.arange(size, dtype=float))

    def test_constant_data_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            shapiro_wilk_test([2.0, 2.0, 2.0])
        assert exc_info.value.error_code == 'CONSTANT_VALUES'


class TestKolmogorovSmirnov:

    def test_statistic_matches_direct_computation(self):
        data = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        z = (data - data.mean()) / data.std()
        expected = np.max(np.abs(np.arange(1, 6) / 5 - stats.norm.cdf(z)))

        result = kolmogorov_smirnov_test(data)

        assert result.statistic == pytest.approx(expected, abs=1e-6)
        assert result.p_value == 0.1
        assert result.is_normal is True

    def test_heavily_skewed_data_rejects(self):
        data = [0.0] * 40 + [100.0] * 2
        result = kolmogorov_smirnov_test(data)

        assert result.statistic > 1.36 / math.sqrt(len(data))
        assert result.is_normal is False

    def test_requires_two_observations(self):
        with pytest.raises(ValidationError):
            kolmogorov_smirnov_test([1.0])


class TestRunNormalityTests:

    def test_both_tests_reported(self):
        results = run_normality_tests([1.0, 2.0, 3.0, 4.0, 5.0])
        assert [item.test_name for item in results] == ['Shapiro-Wilk', 'Kolmogorov-Smirnov']
        assert all(item.error is None for item in results)

    def test_unrunnable_test_reports_error(self):
        results = run_normality_tests([1.0, 2.0])
        shapiro, ks = results

        assert shapiro.statistic is None
        assert shapiro.is_normal is None
        assert 'between 3 and 5000' in shapiro.error
        assert ks.error is None

    def test_missing_values_are_filtered(self):
        data = [2.1, 2.9, 3.2, 3.8, None, 4.1, 4.6, 5.0, float('nan'), 5.9]
        clean = [2.1, 2.9, 3.2, 3.8, 4.1, 4.6, 5.0, 5.9]

        results = run_normality_tests(data)
        expected = run_normality_tests(clean)

        assert all(item.error is None for item in results)
        assert [item.statistic for item in results] == pytest.approx([item.statistic for item in expected])
        assert [item.p_value for item in results] == [item.p_value for item in expected]

    @pytest.mark.parametrize("alpha", [0, 1, 5, -0.1, float('nan')])
    def test_invalid_alpha_raises(self, alpha):
        with pytest.raises(ValidationError) as exc_info:
            run_normality_tests([1.0, 2.0, 4.0, 7.0, 11.0], alpha=alpha)
        assert exc_info.value.error_code == 'INVALID_PARAMETER'

    def test_individual_tests_validate_alpha(self):
        with pytest.raises(ValidationError):
            shapiro_wilk_test([1.0, 2.0, 4.0], alpha=5)
        with pytest.raises(ValidationError):
            kolmogorov_smirnov_test([1.0, 2.0, 4.0], alpha=1.5)

    def test_to_dict(self):
        result = run_normality_tests([1.0, 2.0])[0].to_dict()
        assert set(result) == {'testName', 'statistic', 'pValue', 'isNormal', 'alpha', 'error'}


class TestAssumptionChecks:

    def test_t_test_assumption_warning_on_small_sample(self):
        results = check_t_test_assumptions(np.array([1.0, 2.0]))

        assert results[0].result == 'warning'
        assert results[0].message.startswith('Could not perform normality test')

    def test_unequal_variances_flagged(self):
        results = check_independent_t_test_assumptions(np.array([1.0, 2.0, 3.0]),
                                                       np.array([10.0, 20.0, 30.0]))
        equal_variances = results[1]

        assert equal_variances.name == 'Equal Variances'
        assert equal_variances.statistic == pytest.approx(100.0)
        assert equal_variances.result == 'failed'

    def test_anova_homogeneity(self):
        groups = {'a': np.array([1.0, 2.0, 3.0]), 'b': np.array([2.0, 3.0, 4.0])}
        results = check_anova_assumptions(groups)

        assert [item.name for item in results] == ['Normality', 'Homogeneity of Variances']
        assert results[1].result == 'passed'
        assert results[1].statistic == pytest.approx(1.0)

    def test_anova_small_group_fails_normality(self):
        groups = {'a': np.array([1.0, 2.0]), 'b': np.array([2.0, 3.0, 4.0])}
        assert check_anova_assumptions(groups)[0].result == 'failed'

    def test_regression_weak_linearity_is_warning(self):
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        y = np.array([3.0, 1.0, 4.0, 1.0, 5.0, 1.0])
        residuals = y - y.mean()
        results = check_regression_assumptions(x, y, residuals)

        assert results[0].name == 'Linearity'
        assert abs(results[0].statistic) <= 0.3
        assert results[0].result == 'warning'
