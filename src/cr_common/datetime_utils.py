"""UTC datetime utilities and round window alignment."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def align_to_window(moment: datetime, window: timedelta) -> datetime:
    """Floor `moment` to a multiple of `window` since the Unix epoch.

    12:03:45 with a 5 minute window -> 12:00:00.
    """
    epoch = datetime(1970, 1, 1, tzinfo=timezone.utc)
    elapsed = moment - epoch
    return epoch + (elapsed // window) * window


def next_window_start(moment: datetime, window: timedelta) -> datetime:
    """First window boundary strictly after `moment`.

    12:03:45 -> 12:05:00, and 12:05:00 -> 12:10:00 (a window that starts now
    has already stopped accepting wagers).
    """
    return align_to_window(moment, window) + window
