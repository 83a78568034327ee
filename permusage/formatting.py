"""Locale-aware label helpers used by the engine and the dialogs."""
import datetime
import locale
from typing import Iterable


def format_access_time(last_access_millis: int, now_millis: int) -> str:
    """
    Absolute label for an access: clock time if it happened today,
    otherwise the date.
    """
    accessed = datetime.datetime.fromtimestamp(last_access_millis / 1000)
    today = datetime.datetime.fromtimestamp(now_millis / 1000).date()
    if accessed.date() == today:
        return accessed.strftime("%H:%M")
    return accessed.date().isoformat()


def join_labels(labels: Iterable[str], separator: str = ", ") -> str:
    return separator.join(labels)


def collation_key(text: str) -> str:
    return locale.strxfrm(text.casefold())
