"""RRULE (RFC 5545) parsing, building and recurrence editor state.

Only the subset used by the calendar editor is understood: FREQ, INTERVAL,
COUNT, UNTIL, BYDAY, BYMONTHDAY, BYMONTH, BYSETPOS and WKST. Other rule
parts are ignored.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Union

from mailcal.schemas.recurrence import (
    ByDay,
    EndMode,
    Frequency,
    MonthlyMode,
    RecurrenceRule,
    RecurrenceUIState,
    Weekday,
)

logger = logging.getLogger(__name__)

RRULE_PREFIX = re.compile(r"^RRULE:", flags=re.IGNORECASE)
DATE_FORMAT = "%Y%m%d"
DATETIME_FORMAT = "%Y%m%dT%H%M%S"


def _parse_int_list(value: str) -> List[int]:
    return [int(v, 10) for v in value.split(",") if v.strip()]


def parse_until(value: str) -> Union[date, datetime]:
    """Parse an UNTIL token: YYYYMMDD or YYYYMMDDTHHMMSS[Z].

    Raises
    ------
    ValueError
        If `value` is neither form.

    """
    value = value.strip().upper()
    if "T" not in value:
        return datetime.strptime(value, DATE_FORMAT).date()
    if value.endswith("Z"):
        return datetime.strptime(value[:-1], DATETIME_FORMAT).replace(tzinfo=timezone.utc)
    return datetime.strptime(value, DATETIME_FORMAT)


def format_until(value: Union[date, datetime]) -> str:
    if not isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    if value.tzinfo is None:
        return value.strftime(DATETIME_FORMAT)
    return value.astimezone(timezone.utc).strftime(DATETIME_FORMAT) + "Z"


def _set_frequency(fields: Dict, value: str) -> None:
    fields["frequency"] = Frequency(value.upper())


def _set_interval(fields: Dict, value: str) -> None:
    fields["interval"] = int(value, 10)


def _set_count(fields: Dict, value: str) -> None:
    fields["count"] = int(value, 10)


def _set_until(fields: Dict, value: str) -> None:
    fields["until"] = parse_until(value)


def _set_by_day(fields: Dict, value: str) -> None:
    fields["by_day"] = [ByDay.parse(v) for v in value.split(",") if v.strip()]


def _set_by_month_day(fields: Dict, value: str) -> None:
    fields["by_month_day"] = _parse_int_list(value)


def _set_by_month(fields: Dict, value: str) -> None:
    fields["by_month"] = _parse_int_list(value)


def _set_by_set_pos(fields: Dict, value: str) -> None:
    fields["by_set_pos"] = _parse_int_list(value)


def _set_week_start(fields: Dict, value: str) -> None:
    fields["week_start"] = Weekday(value.upper())


CLAUSE_PARSERS: Dict[str, Callable[[Dict, str], None]] = {
    "FREQ": _set_frequency,
    "INTERVAL": _set_interval,
    "COUNT": _set_count,
    "UNTIL": _set_until,
    "BYDAY": _set_by_day,
    "BYMONTHDAY": _set_by_month_day,
    "BYMONTH": _set_by_month,
    "BYSETPOS": _set_by_set_pos,
    "WKST": _set_week_start,
}


def parse_recurrence_rule(text: Optional[str]) -> Optional[RecurrenceRule]:
    """Parse an RRULE string.

    Unknown keys and clauses with unreadable values are skipped. Returns
    None when `text` is empty or has no usable FREQ clause.
    """
    if not text:
        return None

    fields: Dict = {}
    for clause in RRULE_PREFIX.sub("", text.strip()).split(";"):
        key, _, value = clause.partition("=")
        key = key.strip().upper()
        value = value.strip()
        if not key or not value:
            continue

        parser = CLAUSE_PARSERS.get(key)
        if parser is None:
            logger.debug(f"Ignoring unsupported RRULE part {key!r}")
            continue
        try:
            parser(fields, value)
        except ValueError as e:
            logger.debug(f"Ignoring unreadable RRULE part {clause!r}: {e}")

    if "frequency" not in fields:
        return None

    return RecurrenceRule(**fields)


def _join(values: Sequence) -> str:
    return ",".join(str(v) for v in values)


def build_recurrence_rule(rule: RecurrenceRule) -> str:
    """Serialize `rule` in canonical part order.

    COUNT and UNTIL are both written if both are set.
    """
    parts = [f"FREQ={rule.frequency.value}"]

    if rule.interval and rule.interval > 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.count:
        parts.append(f"COUNT={rule.count}")
    if rule.until:
        parts.append(f"UNTIL={format_until(rule.until)}")
    if rule.by_day:
        parts.append(f"BYDAY={_join(rule.by_day)}")
    if rule.by_month_day:
        parts.append(f"BYMONTHDAY={_join(rule.by_month_day)}")
    if rule.by_month:
        parts.append(f"BYMONTH={_join(rule.by_month)}")
    if rule.by_set_pos:
        parts.append(f"BYSETPOS={_join(rule.by_set_pos)}")
    if rule.week_start:
        parts.append(f"WKST={rule.week_start.value}")

    return "RRULE:" + ";".join(parts)


def default_ui_state() -> RecurrenceUIState:
    return RecurrenceUIState()


def recurrence_to_ui_state(text: Optional[str]) -> RecurrenceUIState:
    """Convert an RRULE string into editor state.

    Empty or unparseable input yields the disabled default state.
    """
    state = default_ui_state()
    rule = parse_recurrence_rule(text)
    if rule is None:
        return state

    state.enabled = True
    state.frequency = rule.frequency
    state.interval = rule.interval or 1

    simple_days = [d.weekday for d in rule.by_day if d.ordinal is None]
    if simple_days:
        state.weekly_days = simple_days

    ordinal_day = next((d for d in rule.by_day if d.ordinal is not None), None)
    if ordinal_day is not None:
        state.monthly_mode = MonthlyMode.DAY_OF_WEEK
        state.monthly_week_ordinal = ordinal_day.ordinal
        state.monthly_week_day = ordinal_day.weekday

    if rule.by_month_day:
        state.monthly_day_of_month = rule.by_month_day[0]
        if ordinal_day is None:
            state.monthly_mode = MonthlyMode.DAY_OF_MONTH

    if rule.count:
        state.end_mode = EndMode.COUNT
        state.end_count = rule.count
    elif rule.until:
        state.end_mode = EndMode.UNTIL
        until = rule.until
        state.end_until = until.date() if isinstance(until, datetime) else until

    return state


def ui_state_to_rule(state: RecurrenceUIState) -> Optional[RecurrenceRule]:
    if not state.enabled:
        return None

    rule = RecurrenceRule(
        frequency=Frequency(state.frequency),
        interval=state.interval if state.interval > 1 else 1,
    )

    if rule.frequency == Frequency.WEEKLY:
        if state.weekly_days:
            rule.by_day = [ByDay(Weekday(day)) for day in state.weekly_days]
    elif rule.frequency == Frequency.MONTHLY:
        if state.monthly_mode == MonthlyMode.DAY_OF_MONTH:
            rule.by_month_day = [state.monthly_day_of_month]
        else:
            rule.by_day = [ByDay(Weekday(state.monthly_week_day), state.monthly_week_ordinal)]

    if state.end_mode == EndMode.COUNT:
        rule.count = state.end_count
    elif state.end_mode == EndMode.UNTIL and state.end_until:
        rule.until = state.end_until

    return rule


def ui_state_to_recurrence(state: RecurrenceUIState) -> str:
    """Convert editor state into an RRULE string ("" when disabled)."""
    rule = ui_state_to_rule(state)
    if rule is None:
        return ""
    return build_recurrence_rule(rule)


def recurrence_rule_from_event(recurrence: Optional[Sequence[str]]) -> str:
    """First RRULE line of a calendar event's recurrence list, or ""."""
    for line in recurrence or []:
        if RRULE_PREFIX.match(line.strip()):
            return line.strip()
    return ""


def ui_state_to_event_recurrence(state: RecurrenceUIState) -> List[str]:
    """Recurrence list to store on a calendar event."""
    rule = ui_state_to_recurrence(state)
    return [rule] if rule else []
