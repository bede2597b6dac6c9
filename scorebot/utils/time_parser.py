"""
Time parsing utilities for score submission.

Challenge times are scored in minutes; organisers type them as clock strings.
"""

import math


def parse_time_to_minutes(time_str: str) -> float:
    """
    Parse a time string into total minutes.

    Supported formats:
    - H:MM:SS (e.g., 1:05:30 -> 65.5)
    - MM:SS (e.g., 14:30 -> 14.5)
    - plain minutes (e.g., 14.5)

    Args:
        time_str: Time string to parse

    Returns:
        Total minutes as float

    Raises:
        ValueError: If the format is invalid or the time is negative
    """
    time_str = time_str.strip()

    if time_str.startswith('-'):
        raise ValueError("Negative time values are not allowed")

    # Plain minutes
    if ':' not in time_str:
        try:
            minutes = float(time_str)
        except ValueError:
            raise ValueError(f"Invalid time format: {time_str}")
        if math.isnan(minutes) or math.isinf(minutes):
            raise ValueError(f"Invalid time value: {time_str}")
        return minutes

    parts = time_str.split(':')
    if len(parts) > 3:
        raise ValueError("Invalid time format. Use H:MM:SS, MM:SS, or minutes")

    try:
        if len(parts) == 2:  # MM:SS
            hours = 0
            minutes = int(parts[0])
            seconds = float(parts[1])
        else:  # H:MM:SS
            hours = int(parts[0])
            minutes = int(parts[1])
            seconds = float(parts[2])
            if minutes >= 60:
                raise ValueError(f"Invalid minutes component: {minutes}")
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid time format: {time_str}") from e

    if minutes < 0 or seconds < 0 or seconds >= 60 or math.isnan(seconds):
        raise ValueError(f"Invalid time components: {time_str}")

    # Round to avoid floating point noise (e.g., 14.499999)
    return round(hours * 60 + minutes + seconds / 60, 4)


def format_minutes(minutes: float) -> str:
    """
    Format minutes as a clock string.

    Args:
        minutes: Total minutes

    Returns:
        "MM:SS" or "H:MM:SS" when an hour or more
    """
    if minutes < 0:
        raise ValueError("Negative minutes not allowed")

    total_seconds = int(round(minutes * 60))
    hours, remainder = divmod(total_seconds, 3600)
    mins, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"
