"""Tests for ScheduleSpec."""

import dataclasses

import pytest

from caltimer.core.errors import ExpressionError, ValidationError
from caltimer.spec import ScheduleSpec


class TestScheduleSpec:
    """Test defaults, adapters and eager validation."""

    def test_defaults_are_wildcards(self):
        assert set(ScheduleSpec().to_dict().values()) == {"*"}

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ScheduleSpec().hour = "1"

    def test_describe(self):
        spec = ScheduleSpec(second="0", minute="30", hour="4")
        assert spec.describe() == "second=0 minute=30 hour=4 dayOfMonth=* dayOfWeek=* month=* year=*"
        assert str(spec) == spec.describe()

    def test_from_mapping_accepts_camel_case_and_ints(self):
        spec = ScheduleSpec.from_mapping({"dayOfMonth": "last", "dayOfWeek": "fri", "hour": 23})
        assert spec == ScheduleSpec(day_of_month="last", day_of_week="fri", hour="23")

    def test_from_mapping_snake_case(self):
        assert ScheduleSpec.from_mapping({"day_of_month": "1"}).day_of_month == "1"

    def test_from_mapping_unknown_field(self):
        with pytest.raises(ValidationError) as excinfo:
            ScheduleSpec.from_mapping({"weekday": "mon"})
        assert excinfo.value.context.metadata == {"field": "weekday"}

    def test_to_dict_round_trip(self):
        spec = ScheduleSpec(minute="*/5", month="jan-mar")
        assert ScheduleSpec.from_mapping(spec.to_dict()) == spec

    def test_validate_returns_self(self):
        spec = ScheduleSpec(day_of_month="2nd Fri", month="dec")
        assert spec.validate() is spec

    @pytest.mark.parametrize(
        ("field", "expression", "unit"),
        [
            ("second", "60", "second"),
            ("hour", "1-", "hour"),
            ("day_of_month", "---", "dayOfMonth"),
            ("day_of_week", "funday", "dayOfWeek"),
            ("month", "13", "month"),
            ("year", "*/0", "year"),
        ],
    )
    def test_validate_reports_the_failing_unit(self, field, expression, unit):
        spec = ScheduleSpec(**{field: expression})
        with pytest.raises(ExpressionError) as excinfo:
            spec.validate()
        assert excinfo.value.unit == unit
        assert excinfo.value.expression == expression

    def test_missing_ordinal_weekday_is_valid(self):
        """A 5th Friday is legal even though many months have none."""
        ScheduleSpec(day_of_month="5th Fri").validate()

    def test_range_with_missing_ordinal_still_checks_other_end(self):
        with pytest.raises(ExpressionError) as excinfo:
            ScheduleSpec(day_of_month="5th Fri-99").validate()
        assert excinfo.value.unit == "dayOfMonth"
