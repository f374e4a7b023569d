"""
모수 가설 검정 단위 테스트

t-검정, 일원 분산분석, Tukey HSD, 단순 선형 회귀를 scipy 결과와 비교합니다.
"""

import math
import unittest

import numpy as np
import pytest
from scipy import stats

from stats_engine.exceptions import ValidationError
from stats_engine.statistical_analysis.hypothesis_tests import (
    one_sample_t_test,
    independent_t_test,
    paired_t_test,
    one_way_anova,
    tukey_hsd,
    linear_regression,
    regression_diagnostics,
)


class TestOneSampleTTest(unittest.TestCase):
    """단일 표본 t-검정 테스트 클래스"""

    def setUp(self):
        self.data = [5.1, 4.9, 5.6, 5.8, 6.0, 5.3, 5.5, 4.7, 5.9, 6.2]

    def test_matches_scipy(self):
        result = one_sample_t_test(self.data, population_mean=5.0)
        expected = stats.ttest_1samp(self.data, 5.0)

        assert result.test_type == 'one-sample'
        assert result.statistic == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, abs=1e-8)
        assert result.degrees_of_freedom == 9

    def test_confidence_interval_brackets_mean(self):
        result = one_sample_t_test(self.data, population_mean=5.0)
        low, high = result.confidence_interval
        mean = float(np.mean(self.data))

        assert low < mean < high
        assert (low + high) / 2 == pytest.approx(mean)
        expected_low, expected_high = stats.t.interval(0.95, 9, loc=mean, scale=stats.sem(self.data))
        assert low == pytest.approx(expected_low, abs=1e-2)
        assert high == pytest.approx(expected_high, abs=1e-2)

    def test_effect_size_is_cohens_d(self):
        result = one_sample_t_test(self.data, population_mean=5.0)
        expected = (np.mean(self.data) - 5.0) / np.std(self.data, ddof=1)

        assert result.effect_size == pytest.approx(expected)
        assert result.mean_difference == pytest.approx(np.mean(self.data) - 5.0)

    def test_assumptions_attached(self):
        result = one_sample_t_test(self.data, population_mean=5.0)

        assert len(result.assumptions) == 1
        assert result.assumptions[0].name == 'Normality'
        assert result.assumptions[0].result in ('passed', 'failed')

    def test_requires_two_observations(self):
        with pytest.raises(ValidationError) as exc_info:
            one_sample_t_test([1.0, None])
        assert exc_info.value.error_code == 'INSUFFICIENT_DATA'

    def test_constant_data_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            one_sample_t_test([3.0, 3.0, 3.0])
        assert exc_info.value.error_code == 'CONSTANT_VALUES'

    def test_invalid_alpha_raises_before_computation(self):
        with pytest.raises(ValidationError) as exc_info:
            one_sample_t_test(self.data, alpha=1.5)
        assert exc_info.value.error_code == 'INVALID_PARAMETER'


class TestIndependentTTest:
    """독립 표본 t-검정 테스트 클래스"""

    group1 = [5.1, 4.9, 5.6, 5.8, 6.0, 5.3]
    group2 = [6.5, 6.8, 7.1, 6.9, 7.4, 7.9, 8.3]

    def test_student_matches_scipy(self):
        result = independent_t_test(self.group1, self.group2, equal_variances=True)
        expected = stats.ttest_ind(self.group1, self.group2, equal_var=True)

        assert result.statistic == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, abs=1e-8)
        assert result.degrees_of_freedom == len(self.group1) + len(self.group2) - 2
        assert result.equal_variances is True

    def test_welch_matches_scipy(self):
        result = independent_t_test(self.group1, self.group2, equal_variances=False)
        expected = stats.ttest_ind(self.group1, self.group2, equal_var=False)

        assert result.statistic == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, abs=1e-8)
        assert result.degrees_of_freedom < len(self.group1) + len(self.group2) - 2
        assert result.equal_variances is False

    def test_swapping_groups_negates_statistic(self):
        forward = independent_t_test(self.group1, self.group2)
        backward = independent_t_test(self.group2, self.group1)

        assert forward.statistic == pytest.approx(-backward.statistic)
        assert forward.p_value == pytest.approx(backward.p_value)
        assert forward.mean_difference == pytest.approx(-backward.mean_difference)

    def test_significant_difference(self):
        result = independent_t_test(self.group1, self.group2)
        assert result.significant is True
        assert result.p_value < 0.05

    def test_assumptions_include_equal_variances(self):
        result = independent_t_test(self.group1, self.group2)
        names = [assumption.name for assumption in result.assumptions]
        assert names == ['Normality', 'Equal Variances']

    def test_requires_two_per_group(self):
        with pytest.raises(ValidationError):
            independent_t_test([1.0], [2.0, 3.0])

    def test_zero_variance_in_both_groups_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            independent_t_test([1.0, 1.0], [2.0, 2.0])
        assert exc_info.value.error_code == 'ZERO_VARIANCE_GROUP'

    def test_to_dict_keys(self):
        result = independent_t_test(self.group1, self.group2).to_dict()
        for key in ['testType', 'statistic', 'pValue', 'degreesOfFreedom', 'confidenceInterval',
                    'meanDifference', 'standardError', 'effectSize', 'assumptions', 'equalVariances']:
            assert key in result


class TestPairedTTest:

    before = [200, 190, 210, 205, 198, 215, 220, 188]
    after = [192, 185, 201, 200, 190, 204, 212, 186]

    def test_matches_scipy(self):
        result = paired_t_test(self.before, self.after)
        expected = stats.ttest_rel(self.after, self.before)

        assert result.test_type == 'paired'
        assert result.statistic == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, abs=1e-8)
        assert result.degrees_of_freedom == len(self.before) - 1

    def test_incomplete_pairs_are_dropped(self):
        result = paired_t_test(self.before + [None], self.after + [180])
        assert result.degrees_of_freedom == len(self.before) - 1

    def test_mismatched_lengths_raise(self):
        with pytest.raises(ValidationError) as exc_info:
            paired_t_test([1, 2, 3], [1, 2])
        assert exc_info.value.error_code == 'MISMATCHED_LENGTHS'


class TestOneWayAnova(unittest.TestCase):
    """일원 분산분석 테스트 클래스"""

    def setUp(self):
        self.groups = {'A': [1, 2, 3], 'B': [4, 5, 6], 'C': [7, 8, 9]}

    def test_known_example(self):
        result = one_way_anova(self.groups)

        assert result.f_statistic == pytest.approx(27.0)
        assert result.degrees_of_freedom_between == 2
        assert result.degrees_of_freedom_within == 6
        assert result.sum_of_squares_between == pytest.approx(54.0)
        assert result.sum_of_squares_within == pytest.approx(6.0)
        assert result.mean_square_within == pytest.approx(1.0)
        assert result.eta_squared == pytest.approx(0.9)
        assert result.p_value == pytest.approx(0.001, abs=1e-6)
        assert result.significant is True

    def test_matches_scipy(self):
        groups = {
            'low': [23.1, 25.4, 22.8, 24.9, 26.0],
            'mid': [27.2, 28.9, 26.5, 29.1],
            'high': [30.4, 29.8, 31.9, 33.0, 30.1, 32.2],
        }
        result = one_way_anova(groups)
        expected = stats.f_oneway(*groups.values())

        assert result.f_statistic == pytest.approx(expected.statistic, rel=1e-9)
        assert result.p_value == pytest.approx(expected.pvalue, abs=1e-8)

    def test_post_hoc_comparisons(self):
        result = one_way_anova(self.groups)

        assert result.post_hoc_tests is not None
        assert [test.comparison for test in result.post_hoc_tests] == ['A vs B', 'A vs C', 'B vs C']

        first = result.post_hoc_tests[0]
        standard_error = math.sqrt(1.0 * (1 / 3 + 1 / 3))
        assert first.mean_difference == pytest.approx(-3.0)
        assert first.statistic == pytest.approx(3.0 / standard_error)
        assert first.p_value == 0.01
        assert first.adjusted_p_value == pytest.approx(0.03)
        assert first.significant is True
        assert first.confidence_interval[0] == pytest.approx(-3.0 - 3.0 * standard_error)
        assert first.confidence_interval[1] == pytest.approx(-3.0 + 3.0 * standard_error)

    def test_no_post_hoc_for_two_groups(self):
        result = one_way_anova({'A': [1, 2, 3], 'B': [7, 8, 9]})
        assert result.significant is True
        assert result.post_hoc_tests is None

    def test_no_post_hoc_when_not_significant(self):
        result = one_way_anova({'A': [1, 5, 9], 'B': [2, 6, 8], 'C': [3, 4, 9]})
        assert result.significant is False
        assert result.post_hoc_tests is None
        assert result.to_dict()['postHocTests'] is None

    def test_group_statistics(self):
        result = one_way_anova(self.groups)
        stats_by_group = {item.group: item for item in result.group_statistics}

        assert stats_by_group['B'].n == 3
        assert stats_by_group['B'].mean == pytest.approx(5.0)
        assert stats_by_group['B'].standard_deviation == pytest.approx(1.0)
        assert stats_by_group['B'].standard_error == pytest.approx(1 / math.sqrt(3))

    def test_requires_two_groups(self):
        with pytest.raises(ValidationError) as exc_info:
            one_way_anova({'A': [1, 2, 3]})
        assert exc_info.value.error_code == 'INVALID_GROUPS'

    def test_requires_two_observations_per_group(self):
        with pytest.raises(ValidationError) as exc_info:
            one_way_anova({'A': [1, 2, 3], 'B': [4]})
        assert exc_info.value.details['group'] == 'B'

    def test_zero_within_group_variance_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            one_way_anova({'A': [1, 1], 'B': [2, 2]})
        assert exc_info.value.error_code == 'ZERO_VARIANCE_GROUP'

    def test_to_dict_keys(self):
        result = one_way_anova(self.groups).to_dict()
        for key in ['fStatistic', 'pValue', 'degreesOfFreedomBetween', 'degreesOfFreedomWithin',
                    'meanSquareBetween', 'meanSquareWithin', 'sumOfSquaresBetween', 'sumOfSquaresWithin',
                    'etaSquared', 'groupStatistics', 'postHocTests', 'assumptions']:
            assert key in result


class TestTukeyHSD:

    def test_custom_critical_value(self):
        groups = {'A': np.array([1.0, 2.0, 3.0]), 'B': np.array([4.0, 5.0, 6.0])}
        strict = tukey_hsd(groups, ms_within=1.0, q_critical=10.0)

        assert strict[0].p_value == 0.1
        assert strict[0].adjusted_p_value == 0.1
        assert strict[0].significant is False


class TestLinearRegression(unittest.TestCase):
    """단순 선형 회귀 테스트 클래스"""

    def setUp(self):
        self.x = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]
        self.y = [2.3, 4.1, 6.2, 7.9, 10.1, 12.2, 13.8, 16.1, 18.0, 20.3]

    def test_matches_scipy_linregress(self):
        result = linear_regression(self.x, self.y)
        expected = stats.linregress(self.x, self.y)
        intercept, slope = result.coefficients

        assert intercept.variable == 'Intercept'
        assert slope.variable == 'X'
        assert slope.coefficient == pytest.approx(expected.slope, rel=1e-9)
        assert intercept.coefficient == pytest.approx(expected.intercept, rel=1e-9)
        assert slope.standard_error == pytest.approx(expected.stderr, rel=1e-9)
        assert intercept.standard_error == pytest.approx(expected.intercept_stderr, rel=1e-9)
        assert slope.p_value == pytest.approx(expected.pvalue, abs=1e-8)
        assert result.r_squared == pytest.approx(expected.rvalue ** 2, rel=1e-9)

    def test_f_test_agrees_with_slope_t_test(self):
        result = linear_regression(self.x, self.y)
        slope = result.coefficients[1]

        assert result.f_statistic == pytest.approx(slope.t_statistic ** 2, rel=1e-9)
        assert result.f_p_value == pytest.approx(slope.p_value, abs=1e-8)
        assert result.degrees_of_freedom == 8

    def test_near_perfect_line(self):
        result = linear_regression([1, 2, 3, 4, 5], [3, 5, 7, 9, 11])
        intercept, slope = result.coefficients

        assert slope.coefficient == pytest.approx(2.0)
        assert intercept.coefficient == pytest.approx(1.0)
        assert result.r_squared == pytest.approx(1.0)
        assert result.fitted_values == pytest.approx([3, 5, 7, 9, 11])

    def test_exact_line_degenerate_outputs(self):
        x = list(range(1, 11))
        result = linear_regression(x, [2 * value + 1 for value in x])
        intercept, slope = result.coefficients

        assert slope.coefficient == 2.0
        assert intercept.coefficient == 1.0
        assert result.r_squared == 1.0
        assert result.adjusted_r_squared == 1.0
        assert result.degrees_of_freedom == 8
        assert result.residuals == [0.0] * 10
        assert result.standard_error == 0.0

        for coefficient in result.coefficients:
            assert coefficient.standard_error == 0.0
            assert math.isinf(coefficient.t_statistic)
            assert coefficient.p_value == 0.0
            assert coefficient.confidence_interval == (coefficient.coefficient, coefficient.coefficient)
        assert math.isinf(result.f_statistic)
        assert result.f_p_value == 0.0

        assert math.isnan(result.diagnostics.durbin_watson)
        assert math.isnan(result.diagnostics.jarque_bera)
        assert math.isnan(result.diagnostics.breusch_pagan)

        json_safe = result.to_dict(json_safe=True)
        assert json_safe['fStatistic'] is None
        assert json_safe['diagnostics'] == {'durbin_watson': None, 'jarque_bera': None, 'breusch_pagan': None}

    def test_residuals_and_fitted_values(self):
        result = linear_regression(self.x, self.y)

        assert len(result.residuals) == len(self.x)
        assert sum(result.residuals) == pytest.approx(0.0, abs=1e-9)
        for fitted, residual, observed in zip(result.fitted_values, result.residuals, self.y):
            assert fitted + residual == pytest.approx(observed)

    def test_diagnostics(self):
        result = linear_regression(self.x, self.y)
        residuals = np.array(result.residuals)
        durbin_watson = np.sum(np.diff(residuals) ** 2) / np.sum(residuals ** 2)
        jarque_bera = stats.jarque_bera(residuals).statistic

        assert result.diagnostics.durbin_watson == pytest.approx(durbin_watson)
        assert result.diagnostics.jarque_bera == pytest.approx(jarque_bera, rel=1e-6)
        assert result.diagnostics.breusch_pagan >= 0

        keys = result.to_dict()['diagnostics'].keys()
        assert set(keys) == {'durbin_watson', 'jarque_bera', 'breusch_pagan'}

    def test_legacy_diagnostics_shape(self):
        result = linear_regression(self.x, self.y, extended_diagnostics=False)

        assert result.diagnostics.jarque_bera == 0.0
        assert result.diagnostics.breusch_pagan == 0.0

    def test_zero_residual_diagnostics_are_undefined(self):
        diagnostics = regression_diagnostics(np.array([1.0, 2.0, 3.0]), np.zeros(3))

        assert math.isnan(diagnostics.durbin_watson)
        assert diagnostics.to_dict(json_safe=True)['durbin_watson'] is None

    def test_assumptions(self):
        result = linear_regression(self.x, self.y)
        names = [assumption.name for assumption in result.assumptions]

        assert names == ['Linearity', 'Normality of Residuals', 'Homoscedasticity']
        assert result.assumptions[0].result == 'passed'

    def test_requires_three_points(self):
        with pytest.raises(ValidationError) as exc_info:
            linear_regression([1, 2, None], [1, 2, 3])
        assert exc_info.value.error_code == 'INSUFFICIENT_DATA'

    def test_constant_x_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            linear_regression([2, 2, 2, 2], [1, 2, 3, 4])
        assert exc_info.value.error_code == 'CONSTANT_VALUES'
        assert exc_info.value.details['variable_name'] == 'x'

    def test_constant_y_raises(self):
        with pytest.raises(ValidationError) as exc_info:
            linear_regression([1, 2, 3, 4], [5, 5, 5, 5])
        assert exc_info.value.details['variable_name'] == 'y'


if __name__ == '__main__':
    unittest.main()
