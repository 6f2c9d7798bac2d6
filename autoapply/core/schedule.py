"""Next-run computation for campaign schedules.

Pure functions, no clock access: callers pass ``now``.
"""

from datetime import datetime, timedelta

from autoapply.core.schemas import ScheduleDescriptor


def compute_next_run(schedule: ScheduleDescriptor, now: datetime) -> datetime:
    """Return the next instant the campaign should run, strictly after ``now``.

    Args:
        schedule: Recurrence descriptor.
        now: Reference instant. Naive or aware; the result keeps its tzinfo.

    Returns:
        hourly: ``now + hourly_interval`` hours.
        daily: today at ``time`` if still ahead, else tomorrow at ``time``.
        weekly/custom: earliest configured weekday at ``time`` after ``now``,
        wrapping into next week. An empty day set behaves like daily.
    """
    if schedule.frequency == "hourly":
        return now + timedelta(hours=schedule.hourly_interval)

    hour, minute = schedule.hour_minute
    today_at = now.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if schedule.frequency == "daily" or not schedule.days:
        if today_at > now:
            return today_at
        return today_at + timedelta(days=1)

    today = weekday_of(now)
    for offset in range(8):
        if (today + offset) % 7 not in schedule.days:
            continue
        candidate = today_at + timedelta(days=offset)
        if candidate > now:
            return candidate

    # unreachable: offset 7 lands on today's weekday one week later
    msg = f"could not resolve next run for {schedule!r}"
    raise RuntimeError(msg)


def weekday_of(moment: datetime) -> int:
    """Weekday index in schedule convention (Sunday=0, unlike datetime.weekday)."""
    return (moment.weekday() + 1) % 7
