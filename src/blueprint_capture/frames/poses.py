"""ARKit pose log indexing and per-frame pose alignment."""

from __future__ import annotations

import bisect
import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

PoseMatchType = Literal["frame_id", "time"]


def _numeric_time(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


@dataclass(frozen=True)
class PoseLogEntry:
    frame_id: Optional[str] = None
    t_device_sec: Optional[float] = None
    transform: Optional[list] = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PoseLogEntry":
        frame_id = record.get("frame_id")
        transform = record.get("T_world_camera")
        return cls(
            frame_id=frame_id if isinstance(frame_id, str) else None,
            t_device_sec=_numeric_time(record.get("t_device_sec")),
            transform=transform if isinstance(transform, list) else None,
            extra={
                key: value
                for key, value in record.items()
                if key not in ("frame_id", "t_device_sec", "T_world_camera")
            },
        )


@dataclass(frozen=True)
class PoseIndex:
    by_frame_id: Mapping[str, PoseLogEntry] = field(default_factory=dict)
    by_time: Tuple[PoseLogEntry, ...] = ()
    _times: Tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "by_time", tuple(self.by_time))
        object.__setattr__(
            self, "_times", tuple(entry.t_device_sec for entry in self.by_time)
        )

    @classmethod
    def empty(cls) -> "PoseIndex":
        return cls()

    @classmethod
    def from_entries(cls, entries: List[PoseLogEntry]) -> "PoseIndex":
        by_frame_id: Dict[str, PoseLogEntry] = {}
        timed: List[PoseLogEntry] = []
        for entry in entries:
            if entry.frame_id is not None:
                by_frame_id[entry.frame_id] = entry
            if entry.t_device_sec is not None:
                timed.append(entry)
        # sorted() is stable, so equal timestamps keep file order
        timed = sorted(timed, key=lambda entry: entry.t_device_sec)
        return cls(by_frame_id=by_frame_id, by_time=tuple(timed))

    def closest_by_time(self, target: float) -> Optional[PoseLogEntry]:
        """Nearest timed entry to ``target``; exact ties go to the earlier one."""
        if not self.by_time:
            return None
        position = bisect.bisect_left(self._times, target)
        if position >= len(self.by_time):
            position = len(self.by_time) - 1
        best = self.by_time[position]
        if position > 0:
            previous = self.by_time[position - 1]
            if abs(previous.t_device_sec - target) <= abs(best.t_device_sec - target):
                best = previous
        return best


def parse_pose_log(content: str) -> List[PoseLogEntry]:
    """Parse a JSONL pose log, skipping blank and malformed lines."""
    entries: List[PoseLogEntry] = []
    for line_number, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning(
                "Failed to parse ARKit pose row at line %d: %s", line_number, exc
            )
            continue
        if not isinstance(record, dict):
            logger.warning(
                "Skipping ARKit pose row at line %d: expected an object, got %s",
                line_number,
                type(record).__name__,
            )
            continue
        entries.append(PoseLogEntry.from_record(record))
    return entries


def build_pose_index(content: str) -> PoseIndex:
    return PoseIndex.from_entries(parse_pose_log(content))


def match_pose(
    index: PoseIndex, frame_id: str, t_video_sec: float
) -> Optional[Dict[str, Any]]:
    """Build the ``arkit_pose`` payload for one frame, or None without a match.

    An exact ``frame_id`` hit wins; otherwise the nearest entry in time is
    used. The two match kinds never mix fields.
    """
    pose = index.by_frame_id.get(frame_id)
    if pose is not None:
        payload: Dict[str, Any] = {"pose_frame_id": pose.frame_id}
        if pose.frame_id != frame_id:
            payload["frame_id_mismatch"] = True
        if pose.transform is not None:
            payload["T_world_camera"] = pose.transform
        payload["match_type"] = "frame_id"
        return payload

    pose = index.closest_by_time(t_video_sec)
    if pose is None:
        return None
    t_device = round(pose.t_device_sec, 6)
    payload = {}
    if pose.transform is not None:
        payload["T_world_camera"] = pose.transform
    payload["t_device_sec"] = t_device
    payload["delta_sec"] = round(abs(t_device - t_video_sec), 6)
    payload["match_type"] = "time"
    return payload
