"""Tests for numeric, month and year evaluators."""

from datetime import MAXYEAR

import pytest

from caltimer.calendar import CalendarContext, CalendarUnit
from caltimer.core.errors import ExpressionError
from caltimer.expressions import MonthEvaluator, NumericEvaluator, YearEvaluator

CTX = CalendarContext(2020, 1, 1)


class TestNumericEvaluator:
    """Test second/minute/hour evaluation and next-value lookup."""

    def test_hour_range(self):
        evaluator = NumericEvaluator(CalendarUnit.HOUR, "*")
        assert evaluator.evaluate(CTX) == list(range(24))

    def test_hour_bounds(self):
        with pytest.raises(ExpressionError):
            NumericEvaluator(CalendarUnit.HOUR, "24").evaluate(CTX)

    def test_not_a_numeric_unit(self):
        with pytest.raises(ValueError):
            NumericEvaluator(CalendarUnit.DAY, "1")

    def test_values_before_evaluate(self):
        with pytest.raises(RuntimeError):
            NumericEvaluator(CalendarUnit.SECOND, "0").values

    def test_next_value(self):
        evaluator = NumericEvaluator(CalendarUnit.MINUTE, "0,15,30,45")
        evaluator.evaluate(CTX)
        assert evaluator.minimum_value == 0
        assert evaluator.next_value(15).value == 15
        assert evaluator.next_value(16).value == 30
        assert evaluator.next_value(46).is_overflow


class TestMonthEvaluator:
    """Test month numbers and names."""

    def test_names_any_case(self):
        assert MonthEvaluator("jan,MAR,December").evaluate(CTX) == [1, 3, 12]

    def test_wrapping_named_range(self):
        assert MonthEvaluator("nov-feb").evaluate(CTX) == [1, 2, 11, 12]

    def test_bounds(self):
        with pytest.raises(ExpressionError):
            MonthEvaluator("13").evaluate(CTX)
        with pytest.raises(ExpressionError):
            MonthEvaluator("0").evaluate(CTX)

    def test_unknown_name(self):
        with pytest.raises(ExpressionError):
            MonthEvaluator("jam").evaluate(CTX)


class TestYearEvaluator:
    """Test the year window and exhaustion."""

    def test_wildcard_uses_window(self):
        evaluator = YearEvaluator("*", 2020, year_window=2)
        assert evaluator.evaluate(CTX) == [2018, 2019, 2020, 2021, 2022]

    def test_explicit_year_outside_window(self):
        assert YearEvaluator("2099", 2020).evaluate(CTX) == [2099]

    def test_window_clipped_at_max_year(self):
        evaluator = YearEvaluator("*", MAXYEAR - 1, year_window=10)
        assert evaluator.evaluate(CTX)[-1] == MAXYEAR

    def test_past_year_is_exhausted(self):
        evaluator = YearEvaluator("2019", 2020)
        evaluator.evaluate(CTX)
        assert evaluator.next_value(2020).is_exhausted

    def test_future_year_found(self):
        evaluator = YearEvaluator("2019,2025", 2020)
        evaluator.evaluate(CTX)
        assert evaluator.next_value(2020).value == 2025

    def test_bounds(self):
        with pytest.raises(ExpressionError):
            YearEvaluator("0", 2020).evaluate(CTX)
        with pytest.raises(ExpressionError):
            YearEvaluator("10000", 2020).evaluate(CTX)
