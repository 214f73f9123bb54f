from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Optional, Union

from dateutil import parser as date_parser

from appreg.constants import COLOUR_ERROR, COLOUR_FOREGROUND, COLOUR_WARNING, CREDENTIAL_EXPIRY_WARNING_DAYS, DATE_DISPLAY_FMT


class ExpiryState(IntEnum):
    HEALTHY = 1
    EXPIRING = 2
    EXPIRED = 3


_COLOUR_BY_STATE = {
    ExpiryState.HEALTHY: COLOUR_FOREGROUND,
    ExpiryState.EXPIRING: COLOUR_WARNING,
    ExpiryState.EXPIRED: COLOUR_ERROR,
}


def parse_date_time(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parses a remote timestamp (ISO 8601). Naive results are taken to be UTC"""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = date_parser.parse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def get_expiry_state(end_date_time: Union[str, datetime, None], now: Optional[datetime] = None) -> ExpiryState:
    """A credential with no end date never expires"""
    end = parse_date_time(end_date_time)
    if end is None:
        return ExpiryState.HEALTHY
    if now is None:
        now = datetime.now(tz=timezone.utc)
    else:
        now = parse_date_time(now)

    if end < now:
        return ExpiryState.EXPIRED
    if end < now + timedelta(days=CREDENTIAL_EXPIRY_WARNING_DAYS):
        return ExpiryState.EXPIRING
    return ExpiryState.HEALTHY


def get_colour(state: ExpiryState) -> str:
    return _COLOUR_BY_STATE[state]


def get_tooltip(state: ExpiryState, end_date_time: Union[str, datetime, None]) -> str:
    end_str = format_date(end_date_time)
    if not end_str:
        return 'This credential does not expire.'
    if state == ExpiryState.EXPIRED:
        return f'This credential expired on {end_str}.'
    if state == ExpiryState.EXPIRING:
        return f'This credential expires within {CREDENTIAL_EXPIRY_WARNING_DAYS} days, on {end_str}.'
    return f'This credential expires on {end_str}.'


def format_date(value: Union[str, datetime, None]) -> str:
    dt = parse_date_time(value)
    if dt is None:
        return ''
    return dt.strftime(DATE_DISPLAY_FMT)
