"""Tests for the shared expression grammar."""

import pytest

from caltimer.core.errors import ExpressionError, ValidationError
from caltimer.expressions.grammar import EmptyValue, ExpressionParser


@pytest.fixture
def seconds():
    return ExpressionParser("second", (0, 59))


class TestScalarsAndWildcard:
    """Test single values and '*'."""

    def test_wildcard_covers_span(self, seconds):
        assert seconds.parse("*", 0, 59) == set(range(60))

    def test_scalar(self, seconds):
        assert seconds.parse("7", 0, 59) == {7}

    def test_whitespace_is_trimmed(self, seconds):
        assert seconds.parse("  7 ", 0, 59) == {7}

    @pytest.mark.parametrize("expression", ["60", "-1", "+99"])
    def test_out_of_bounds(self, seconds, expression):
        with pytest.raises(ExpressionError):
            seconds.parse(expression, 0, 59)

    @pytest.mark.parametrize("expression", ["", "   ", "abc", "1.5", "**"])
    def test_malformed(self, seconds, expression):
        with pytest.raises(ValidationError):
            seconds.parse(expression, 0, 59)

    def test_non_string_rejected(self, seconds):
        with pytest.raises(ExpressionError, match="must be a string"):
            seconds.parse(5, 0, 59)

    def test_error_carries_unit_and_expression(self, seconds):
        with pytest.raises(ExpressionError) as excinfo:
            seconds.parse("61", 0, 59)
        assert excinfo.value.unit == "second"
        assert excinfo.value.expression == "61"
        assert "Too large value: 61" in str(excinfo.value)


class TestRanges:
    """Test inclusive and wrapping ranges."""

    def test_inclusive(self, seconds):
        assert seconds.parse("10-13", 0, 59) == {10, 11, 12, 13}

    def test_wraps_around(self, seconds):
        assert seconds.parse("58-1", 0, 59) == {58, 59, 0, 1}

    def test_singleton(self, seconds):
        assert seconds.parse("5-5", 0, 59) == {5}

    def test_spaces_around_dash(self, seconds):
        assert seconds.parse("10 - 12", 0, 59) == {10, 11, 12}

    @pytest.mark.parametrize("expression", ["---", "1-2-3", "1-", "-", "a-b"])
    def test_malformed_range(self, seconds, expression):
        with pytest.raises(ExpressionError):
            seconds.parse(expression, 0, 59)


class TestLists:
    """Test comma separated lists."""

    def test_union_of_items(self, seconds):
        assert seconds.parse("1,5-7,30", 0, 59) == {1, 5, 6, 7, 30}

    def test_order_and_duplicates_do_not_matter(self, seconds):
        assert seconds.parse("30,1,1,5-7", 0, 59) == seconds.parse("1,5-7,30", 0, 59)

    @pytest.mark.parametrize("expression", ["1,,2", "1,", ",1"])
    def test_empty_item(self, seconds, expression):
        with pytest.raises(ExpressionError, match="Empty item"):
            seconds.parse(expression, 0, 59)

    def test_increment_inside_list_rejected(self, seconds):
        with pytest.raises(ExpressionError, match="Increment"):
            seconds.parse("1,*/5", 0, 59)


class TestIncrements:
    """Test A/N increments."""

    def test_wildcard_start(self, seconds):
        assert seconds.parse("*/15", 0, 59) == {0, 15, 30, 45}

    def test_numeric_start(self, seconds):
        assert seconds.parse("50/4", 0, 59) == {50, 54, 58}

    @pytest.mark.parametrize("expression", ["*/0", "*/-1", "*/x", "a/2", "5/", "/5", "1/2/3", "70/5"])
    def test_invalid(self, seconds, expression):
        with pytest.raises(ExpressionError):
            seconds.parse(expression, 0, 59)


class TestTextParser:
    """Test the unit word hook."""

    def test_words_resolved_before_integers(self):
        parser = ExpressionParser("month", (1, 12), lambda text: {"jan": 1, "mar": 3}.get(text.lower()))
        assert parser.parse("JAN-Mar", 1, 12) == {1, 2, 3}

    def test_empty_value_contributes_nothing(self):
        def words(text):
            if text == "never":
                raise EmptyValue(text)
            return None

        parser = ExpressionParser("day", (1, 31), words)
        assert parser.parse("never,3", 1, 31) == {3}
