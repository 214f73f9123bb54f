import logging

logger = logging.getLogger(__name__)


def ensure_int(val):
    try:
        if type(val) == str:
            return int(val)
    except ValueError:
        logger.error(f'Bad value: {val}')
    return val


def ensure_bool(val):
    """Config values may come back as strings when they were written from the UI; treat "false"/"0" as False"""
    if type(val) == str:
        return val.strip().lower() not in ('', 'false', '0', 'no', 'off')
    try:
        return bool(val)
    except ValueError:
        pass
    return val


def ensure_list(val):
    """Config sequences are not lists; anything iterable other than a string is expanded"""
    if not val:
        return []
    if isinstance(val, str):
        return [val]
    try:
        return list(val)
    except TypeError:
        return [val]
