import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Union


class Frequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(str, Enum):
    MO = "MO"
    TU = "TU"
    WE = "WE"
    TH = "TH"
    FR = "FR"
    SA = "SA"
    SU = "SU"


class MonthlyMode(str, Enum):
    DAY_OF_MONTH = "dayOfMonth"
    DAY_OF_WEEK = "dayOfWeek"


class EndMode(str, Enum):
    NEVER = "never"
    COUNT = "count"
    UNTIL = "until"


class Locale(str, Enum):
    EN = "en"
    JA = "ja"


BYDAY_PATTERN = re.compile(r"^([+-]?\d{1,2})?(MO|TU|WE|TH|FR|SA|SU)$")


@dataclass(frozen=True)
class ByDay:
    """A BYDAY entry: a weekday, optionally the Nth (or -Nth) of the period."""

    weekday: Weekday
    ordinal: Optional[int] = None

    @classmethod
    def parse(cls, token: str) -> "ByDay":
        """Parse tokens like "MO", "2TU" or "-1FR".

        Raises
        ------
        ValueError
            If `token` is not a weekday token.

        """
        match = BYDAY_PATTERN.match(token.strip().upper())
        if not match:
            raise ValueError(f"Invalid BYDAY token: {token!r}")
        ordinal = int(match.group(1)) if match.group(1) else None
        return cls(Weekday(match.group(2)), ordinal)

    def __str__(self) -> str:
        if self.ordinal is None:
            return self.weekday.value
        return f"{self.ordinal}{self.weekday.value}"


@dataclass
class RecurrenceRule:
    frequency: Frequency
    interval: int = 1
    count: Optional[int] = None
    until: Optional[Union[date, datetime]] = None  # inclusive
    by_day: List[ByDay] = field(default_factory=list)
    by_month_day: List[int] = field(default_factory=list)  # 1..31, -1 = last day
    by_month: List[int] = field(default_factory=list)  # 1..12
    by_set_pos: List[int] = field(default_factory=list)
    week_start: Optional[Weekday] = None


@dataclass
class RecurrenceUIState:
    """Flat form state of the recurrence editor.

    Only the fields relevant to `frequency` and `end_mode` are read when the
    state is turned back into a rule.
    """

    enabled: bool = False
    frequency: Frequency = Frequency.WEEKLY
    interval: int = 1
    weekly_days: List[Weekday] = field(default_factory=list)
    monthly_mode: MonthlyMode = MonthlyMode.DAY_OF_MONTH
    monthly_day_of_month: int = 1
    monthly_week_ordinal: int = 1  # 1..5, -1 = last
    monthly_week_day: Weekday = Weekday.MO
    end_mode: EndMode = EndMode.NEVER
    end_count: int = 10
    end_until: Optional[date] = None


@dataclass
class RecurrenceDescription:
    short_label: str
    full_description: str
