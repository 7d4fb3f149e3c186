from __future__ import annotations

import re
from typing import Iterable, List

_PTS_TIME_PATTERN = re.compile(r"showinfo.*pts_time:([0-9]+\.?[0-9]*)")

FRAME_ID_WIDTH = 6
MAX_FRAME_COUNT = 10**FRAME_ID_WIDTH - 1


class FrameLimitExceededError(ValueError):
    """Raised when a video yields more frames than a 6-digit id can address."""


def parse_pts_times(diagnostics: str) -> List[float]:
    """Collect showinfo ``pts_time`` values in the order ffmpeg emitted them."""
    times: List[float] = []
    for line in diagnostics.splitlines():
        match = _PTS_TIME_PATTERN.search(line)
        if match is None:
            continue
        try:
            times.append(float(match.group(1)))
        except ValueError:
            continue
    return times


def frame_id_for(index: int) -> str:
    """Return the 6-digit ordinal for the 0-based output frame ``index``."""
    ordinal = index + 1
    if ordinal > MAX_FRAME_COUNT:
        raise FrameLimitExceededError(
            f"frame {ordinal} exceeds the {FRAME_ID_WIDTH}-digit frame id range"
        )
    return str(ordinal).zfill(FRAME_ID_WIDTH)


def resolve_frame_times(
    frame_count: int, pts_times: Iterable[float], fps: float
) -> List[float]:
    """Return exactly one timestamp per output frame.

    Recovered presentation times are used as given; frames past the end of
    the recovered list fall back to ``index / fps``. Values are rounded to
    six decimals.
    """
    if fps <= 0:
        raise ValueError("fps must be positive")
    recovered = list(pts_times)
    times: List[float] = []
    for index in range(frame_count):
        value = recovered[index] if index < len(recovered) else index / fps
        times.append(round(value, 6))
    return times
