"""Elapsed time formatting for progress output and logs."""


def format_elapsed(elapsed_ns: int) -> str:
    """Format nanoseconds as hh:mm:ss.fff / mm:ss.fff / ss.fffs, plus total ms.

    Under one second only the millisecond count is shown.
    """
    total_ms = elapsed_ns / 1_000_000
    whole_ms = int(total_ms)
    hours, rem = divmod(whole_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    seconds, millis = divmod(rem, 1000)

    if hours >= 1:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d} ({total_ms:.0f} ms)"
    if minutes >= 1:
        return f"{minutes:02d}:{seconds:02d}.{millis:03d} ({total_ms:.0f} ms)"
    if seconds >= 1:
        return f"{seconds:02d}.{millis:03d}s ({total_ms:.0f} ms)"
    return f"{total_ms:.0f} ms"
