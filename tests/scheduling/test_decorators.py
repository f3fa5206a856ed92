"""Tests for the @scheduled marker."""

import pytest

from caltimer.core.errors import ConfigError, ValidationError
from caltimer.scheduling import schedule_markers, scheduled
from caltimer.spec import ScheduleSpec


class TestScheduled:
    """Test marker attachment."""

    def test_keywords_build_spec(self):
        @scheduled(minute="0", dayOfWeek="mon")
        def job():
            pass

        (marker,) = schedule_markers(job)
        assert marker.spec == ScheduleSpec(minute="0", day_of_week="mon")
        assert marker.name is None

    def test_explicit_spec_and_name(self):
        spec = ScheduleSpec(hour="6")

        @scheduled(spec, name="morning")
        def job():
            pass

        (marker,) = schedule_markers(job)
        assert marker.spec is spec
        assert marker.name == "morning"

    def test_stacked_keep_source_order(self):
        @scheduled(day_of_month="1")
        @scheduled(day_of_month="15")
        def job():
            pass

        assert [m.spec.day_of_month for m in schedule_markers(job)] == ["1", "15"]

    def test_function_is_returned_unchanged(self):
        def job():
            return 42

        assert scheduled(second="0")(job) is job
        assert job() == 42

    def test_spec_and_keywords_conflict(self):
        with pytest.raises(ConfigError):
            scheduled(ScheduleSpec(), hour="1")

    def test_unknown_keyword(self):
        with pytest.raises(ValidationError):
            scheduled(weekday="mon")

    def test_undecorated_has_no_markers(self):
        assert schedule_markers(lambda: None) == ()

    def test_bound_method_markers(self):
        class Jobs:
            @scheduled(second="0")
            def tick(self):
                pass

        assert len(schedule_markers(Jobs().tick)) == 1
