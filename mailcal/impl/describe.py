"""Human-readable recurrence labels in English and Japanese."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Optional, Union

from mailcal.impl.recurrence import parse_recurrence_rule
from mailcal.schemas.recurrence import (
    ByDay,
    Frequency,
    Locale,
    RecurrenceDescription,
    RecurrenceRule,
    Weekday,
)


class Phrasebook(ABC):
    """Locale-specific wording for recurrence descriptions."""

    list_separator: str
    short_day_separator: str

    @abstractmethod
    def every(self, frequency: Frequency, interval: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def weekday(self, day: Weekday, short: bool = False) -> str:
        raise NotImplementedError

    @abstractmethod
    def ordinal(self, n: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def month_day(self, day: int, short: bool = False) -> str:
        raise NotImplementedError

    @abstractmethod
    def month(self, month: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def count(self, count: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def until(self, until: date) -> str:
        raise NotImplementedError

    @abstractmethod
    def weekly_days(self, interval: int, days: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def monthly_on(self, every: str, what: str) -> str:
        raise NotImplementedError

    def by_day(self, entry: ByDay, short: bool = False) -> str:
        name = self.weekday(entry.weekday, short)
        if entry.ordinal is None:
            return name
        return self.ordinal_weekday(self.ordinal(entry.ordinal), name)

    @abstractmethod
    def ordinal_weekday(self, ordinal: str, weekday: str) -> str:
        raise NotImplementedError

    def group(self, items) -> str:
        return "(" + self.list_separator.join(items) + ")"


class EnglishPhrasebook(Phrasebook):
    list_separator = ", "
    short_day_separator = ", "

    WEEKDAYS: Dict[Weekday, str] = {
        Weekday.MO: "Monday",
        Weekday.TU: "Tuesday",
        Weekday.WE: "Wednesday",
        Weekday.TH: "Thursday",
        Weekday.FR: "Friday",
        Weekday.SA: "Saturday",
        Weekday.SU: "Sunday",
    }

    UNITS: Dict[Frequency, str] = {
        Frequency.DAILY: "day",
        Frequency.WEEKLY: "week",
        Frequency.MONTHLY: "month",
        Frequency.YEARLY: "year",
    }

    ORDINALS: Dict[int, str] = {
        1: "first",
        2: "second",
        3: "third",
        4: "fourth",
        5: "fifth",
        -1: "last",
    }

    MONTHS = (
        "January", "February", "March", "April", "May", "June", "July",
        "August", "September", "October", "November", "December",
    )

    @staticmethod
    def _numeric_ordinal(n: int) -> str:
        if 10 <= n % 100 <= 20:
            suffix = "th"
        else:
            suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
        return f"{n}{suffix}"

    def every(self, frequency: Frequency, interval: int) -> str:
        unit = self.UNITS[frequency]
        if interval > 1:
            return f"Every {interval} {unit}s"
        return f"Every {unit}"

    def weekday(self, day: Weekday, short: bool = False) -> str:
        name = self.WEEKDAYS[day]
        return name[:3] if short else name

    def ordinal(self, n: int) -> str:
        if n in self.ORDINALS:
            return self.ORDINALS[n]
        if n < 0:
            return f"{self._numeric_ordinal(-n)} to last"
        return self._numeric_ordinal(n)

    def ordinal_weekday(self, ordinal: str, weekday: str) -> str:
        return f"{ordinal} {weekday}"

    def month_day(self, day: int, short: bool = False) -> str:
        if day == -1:
            return "last day"
        if day < 0:
            return f"{self._numeric_ordinal(-day)} to last day"
        return self._numeric_ordinal(day) if short else f"day {day}"

    def month(self, month: int) -> str:
        if 1 <= month <= 12:
            return self.MONTHS[month - 1]
        return str(month)

    def count(self, count: int) -> str:
        return f"up to {count} time" if count == 1 else f"up to {count} times"

    def until(self, until: date) -> str:
        return f"until {until.isoformat()}"

    def weekly_days(self, interval: int, days: str) -> str:
        return f"{self.every(Frequency.WEEKLY, interval)} ({days})"

    def monthly_on(self, every: str, what: str) -> str:
        return f"{every} on the {what}"


class JapanesePhrasebook(Phrasebook):
    list_separator = "、"
    short_day_separator = "・"

    WEEKDAYS: Dict[Weekday, str] = {
        Weekday.MO: "月",
        Weekday.TU: "火",
        Weekday.WE: "水",
        Weekday.TH: "木",
        Weekday.FR: "金",
        Weekday.SA: "土",
        Weekday.SU: "日",
    }

    EVERY: Dict[Frequency, str] = {
        Frequency.DAILY: "毎日",
        Frequency.WEEKLY: "毎週",
        Frequency.MONTHLY: "毎月",
        Frequency.YEARLY: "毎年",
    }

    EVERY_N: Dict[Frequency, str] = {
        Frequency.DAILY: "{n}日ごと",
        Frequency.WEEKLY: "{n}週間ごと",
        Frequency.MONTHLY: "{n}か月ごと",
        Frequency.YEARLY: "{n}年ごと",
    }

    def every(self, frequency: Frequency, interval: int) -> str:
        if interval > 1:
            return self.EVERY_N[frequency].format(n=interval)
        return self.EVERY[frequency]

    def weekday(self, day: Weekday, short: bool = False) -> str:
        name = self.WEEKDAYS[day]
        return name if short else f"{name}曜日"

    def ordinal(self, n: int) -> str:
        return "最終" if n == -1 else f"第{n}"

    def ordinal_weekday(self, ordinal: str, weekday: str) -> str:
        return f"{ordinal}{weekday}"

    def month_day(self, day: int, short: bool = False) -> str:
        return "最終日" if day == -1 else f"{day}日"

    def month(self, month: int) -> str:
        return f"{month}月"

    def count(self, count: int) -> str:
        return f"{count}回まで"

    def until(self, until: date) -> str:
        return f"{until.year}年{until.month}月{until.day}日まで"

    def weekly_days(self, interval: int, days: str) -> str:
        # the days form counts weeks as 週, not 週間
        every = self.EVERY[Frequency.WEEKLY] if interval <= 1 else f"{interval}週ごと"
        return f"{every} {days}"

    def monthly_on(self, every: str, what: str) -> str:
        return f"{every}{what}"


PHRASEBOOKS: Dict[Locale, Phrasebook] = {
    Locale.EN: EnglishPhrasebook(),
    Locale.JA: JapanesePhrasebook(),
}


def _until_date(until: Union[date, datetime]) -> date:
    return until.date() if isinstance(until, datetime) else until


def describe_rule(rule: RecurrenceRule, locale: Locale = Locale.EN) -> str:
    """Full description: frequency, BY lists, then the end condition."""
    book = PHRASEBOOKS[Locale(locale)]
    parts = [book.every(rule.frequency, rule.interval or 1)]

    if rule.by_day:
        parts.append(book.group(book.by_day(d) for d in rule.by_day))
    if rule.by_month_day:
        parts.append(book.group(book.month_day(d) for d in rule.by_month_day))
    if rule.by_month:
        parts.append(book.group(book.month(m) for m in rule.by_month))

    if rule.count:
        parts.append(book.count(rule.count))
    if rule.until:
        parts.append(book.until(_until_date(rule.until)))

    return " ".join(parts)


def rule_label(rule: RecurrenceRule, locale: Locale = Locale.EN) -> str:
    """Short label for compact display.

    Monthly rules check an ordinal weekday before a day of month. Shapes
    without a short form get the full description.
    """
    book = PHRASEBOOKS[Locale(locale)]
    every = book.every(rule.frequency, rule.interval or 1)

    if rule.frequency == Frequency.DAILY:
        return every

    if rule.frequency == Frequency.WEEKLY:
        if rule.by_day:
            days = book.short_day_separator.join(book.by_day(d, short=True) for d in rule.by_day)
            return book.weekly_days(rule.interval or 1, days)
        return every

    if rule.frequency == Frequency.MONTHLY:
        if rule.by_day and rule.by_day[0].ordinal is not None:
            return book.monthly_on(every, book.by_day(rule.by_day[0]))
        if rule.by_month_day:
            return book.monthly_on(every, book.month_day(rule.by_month_day[0], short=True))
        return every

    if rule.frequency == Frequency.YEARLY and not (rule.by_month or rule.by_month_day or rule.by_day):
        return every

    return describe_rule(rule, locale)


def describe_recurrence(text: Optional[str], locale: Locale = Locale.EN) -> RecurrenceDescription:
    """Short label and full description of an RRULE string.

    An empty or unparseable rule describes as two empty strings.
    """
    rule = parse_recurrence_rule(text)
    if rule is None:
        return RecurrenceDescription(short_label="", full_description="")
    return RecurrenceDescription(
        short_label=rule_label(rule, locale),
        full_description=describe_rule(rule, locale),
    )
