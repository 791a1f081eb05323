"""UK bank holiday lookups used for the peak-time surcharge.

Two calendars are available and either can be handed to the calculator:

* ``RuleBasedHolidayCalendar`` derives England & Wales bank holidays from the
  statutory rules, with Easter from ``dateutil.easter`` and weekend
  substitute days. It is approximate: one-off proclaimed holidays (jubilees,
  coronations, state funerals) and moved holidays such as VE Day 2020 are not
  known to it.
* ``FixedHolidayCalendar`` wraps an explicit list of dates, e.g. the table
  published on gov.uk, supplied through the pricing config.
"""
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import Dict, Iterable, Protocol, Union

from dateutil.easter import easter
from dateutil.relativedelta import relativedelta, MO

from easymove.core.pricing_config import PricingConfig

DateLike = Union[date, datetime]


class HolidayCalendar(Protocol):
    def is_holiday(self, day: DateLike) -> bool:
        ...


def _as_date(day: DateLike) -> date:
    return day.date() if isinstance(day, datetime) else day


def _next_weekday(day: date) -> date:
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


@lru_cache(maxsize=64)
def england_and_wales_holidays(year: int) -> Dict[date, str]:
    easter_sunday = easter(year)
    holidays = {
        date(year, 1, 1): "New Year's Day",
        easter_sunday - timedelta(days=2): "Good Friday",
        easter_sunday + timedelta(days=1): "Easter Monday",
        date(year, 5, 1) + relativedelta(weekday=MO(+1)): "Early May Bank Holiday",
        date(year, 5, 31) + relativedelta(weekday=MO(-1)): "Spring Bank Holiday",
        date(year, 8, 31) + relativedelta(weekday=MO(-1)): "Summer Bank Holiday",
        date(year, 12, 25): "Christmas Day",
        date(year, 12, 26): "Boxing Day",
    }

    new_year = date(year, 1, 1)
    if new_year.weekday() >= 5:
        holidays[_next_weekday(new_year)] = "New Year's Day (substitute)"

    christmas = date(year, 12, 25)
    if christmas.weekday() == 5:
        holidays[date(year, 12, 27)] = "Christmas Day (substitute)"
        holidays[date(year, 12, 28)] = "Boxing Day (substitute)"
    elif christmas.weekday() == 6:
        holidays[date(year, 12, 27)] = "Christmas Day (substitute)"
    elif christmas.weekday() == 4:
        holidays[date(year, 12, 28)] = "Boxing Day (substitute)"

    return holidays


class RuleBasedHolidayCalendar:
    def holidays_for_year(self, year: int) -> Dict[date, str]:
        return dict(england_and_wales_holidays(year))

    def is_holiday(self, day: DateLike) -> bool:
        day = _as_date(day)
        return day in england_and_wales_holidays(day.year)


class FixedHolidayCalendar:
    def __init__(self, dates: Iterable[DateLike]):
        self._dates = frozenset(_as_date(d) for d in dates)

    def __len__(self) -> int:
        return len(self._dates)

    def is_holiday(self, day: DateLike) -> bool:
        return _as_date(day) in self._dates


def holiday_calendar_for(config: PricingConfig) -> HolidayCalendar:
    if config.bank_holidays:
        return FixedHolidayCalendar(config.bank_holidays)
    return RuleBasedHolidayCalendar()
