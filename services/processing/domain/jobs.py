from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Sequence

WALKTHROUGH_SUFFIX = "/raw/walkthrough.mov"
ROOMPLAN_SUFFIX = "/raw/roomplan.zip"
POSE_LOG_RELATIVE_KEY = "arkit/poses.jsonl"
PROCESSED_ROOMPLAN_NAME = "roomplan.zip"


def is_walkthrough_key(object_key: str, root_prefix: str) -> bool:
    return object_key.startswith(root_prefix) and object_key.endswith(WALKTHROUGH_SUFFIX)


def is_roomplan_key(object_key: str, root_prefix: str) -> bool:
    return object_key.startswith(root_prefix) and object_key.endswith(ROOMPLAN_SUFFIX)


def raw_prefix(object_key: str) -> str:
    """``targets/<scene>/raw/walkthrough.mov`` -> ``targets/<scene>/raw``."""
    return posixpath.dirname(object_key)


def scene_prefix(object_key: str) -> str:
    """Parent of the ``raw/`` folder; outputs are written as its siblings."""
    return posixpath.dirname(raw_prefix(object_key))


@dataclass(frozen=True)
class FrameExtractionJob:
    bucket: str
    object_key: str

    @property
    def pose_log_key(self) -> str:
        return f"{raw_prefix(self.object_key)}/{POSE_LOG_RELATIVE_KEY}"

    @property
    def frames_prefix(self) -> str:
        return f"{scene_prefix(self.object_key)}/frames"


@dataclass(frozen=True)
class FrameExtractionResult:
    bucket: str
    frames_prefix: str
    frame_count: int
    matched_pose_count: int
    uploaded_keys: Sequence[str]


@dataclass(frozen=True)
class RoomplanCleanupJob:
    bucket: str
    object_key: str

    @property
    def processed_key(self) -> str:
        return f"{scene_prefix(self.object_key)}/processed/{PROCESSED_ROOMPLAN_NAME}"


@dataclass(frozen=True)
class RoomplanCleanupResult:
    bucket: str
    processed_key: str
    model_path: str
    sanitized_members: Sequence[str]
    removed_lines: int
