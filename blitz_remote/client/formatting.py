# Display helpers for the dashboard and CLI output.
from typing import Optional

from blitz_remote.shared.models import MediaInfo


def format_time(micros: Optional[float]) -> str:
    if micros is None or micros <= 0:
        return "0:00"
    seconds = int(micros / 1_000_000)
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_speed(mbps: Optional[float]) -> str:
    if mbps is None:
        return "0 Kbps"
    if mbps >= 1000:
        return f"{mbps / 1000:.1f} Gbps"
    if mbps >= 1:
        return f"{mbps:.1f} Mbps"
    return f"{int(mbps * 1024)} Kbps"


def progress(media: Optional[MediaInfo]) -> float:
    """Playback position as a fraction of the track, clamped to [0, 1]."""
    if media is None or not media.duration_micros or media.duration_micros <= 0:
        return 0.0
    position = media.position_micros or 0.0
    return max(0.0, min(1.0, position / media.duration_micros))
