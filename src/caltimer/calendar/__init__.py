"""Calendar units and the mutable per-resolution calendar context."""

from caltimer.calendar.context import CalendarContext
from caltimer.calendar.units import CalendarUnit

__all__ = ["CalendarContext", "CalendarUnit"]
