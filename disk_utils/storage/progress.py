"""Progress formatting for long-running copy and erase operations."""

from disk_utils.domain.models import human_size


def format_eta(seconds):
    """Format ETA in HH:MM:SS or MM:SS format."""
    if seconds is None:
        return None
    seconds = int(seconds)
    if seconds < 0:
        return None
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours:d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_progress_line(title, bytes_done, total_bytes, rate=None, eta=None):
    """Format progress information into a single status line."""
    parts = []
    if title:
        parts.append(title)
    if bytes_done is not None:
        written = f"{human_size(bytes_done)}"
        if total_bytes:
            written = f"{written} / {human_size(total_bytes)}"
            written = f"{written} ({(bytes_done / total_bytes) * 100:.1f}%)"
        parts.append(written)
    else:
        parts.append("Working...")
    if rate:
        rate_part = f"{human_size(rate)}/s"
        if eta:
            rate_part = f"{rate_part} ETA {eta}"
        parts.append(rate_part)
    return " | ".join(parts)


class RateTracker:
    """Tracks throughput between progress samples."""

    def __init__(self, total_bytes=None):
        self.total_bytes = total_bytes
        self.last_bytes = None
        self.last_time = None
        self.rate = None

    def sample(self, bytes_done, now):
        """Record a sample and return (rate, eta) as best known."""
        if self.last_bytes is not None and self.last_time is not None:
            delta_bytes = bytes_done - self.last_bytes
            delta_time = now - self.last_time
            if delta_bytes >= 0 and delta_time > 0:
                self.rate = delta_bytes / delta_time
        self.last_bytes = bytes_done
        self.last_time = now
        eta = None
        if self.rate and self.total_bytes and bytes_done <= self.total_bytes:
            eta = format_eta((self.total_bytes - bytes_done) / self.rate)
        return self.rate, eta
