from datetime import datetime, timedelta


def event_start(event):
    """Combine the event's date and time columns; None without a date."""
    if not event.date:
        return None
    if event.time is None:
        return datetime.combine(event.date, datetime.min.time())
    return datetime.combine(event.date, event.time)


def event_status(event, now=None):
    """
    upcoming -> before the start
    ongoing  -> between start and start + duration (inclusive)
    past     -> after the end
    """
    start = event_start(event)
    if start is None:
        return "upcoming"

    now = now or datetime.now()
    end = start + timedelta(minutes=event.duration_minutes or 0)
    if start <= now <= end:
        return "ongoing"
    if now > end:
        return "past"
    return "upcoming"
