from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from blueprint_capture.frames.poses import PoseIndex, match_pose
from blueprint_capture.frames.timestamps import frame_id_for

INDEX_FILE_NAME = "index.jsonl"


def build_frame_index(
    frame_times: Sequence[float], pose_index: PoseIndex
) -> List[Dict[str, Any]]:
    """One manifest record per output frame, in output order."""
    records: List[Dict[str, Any]] = []
    for index, t_video_sec in enumerate(frame_times):
        frame_id = frame_id_for(index)
        record: Dict[str, Any] = {"frame_id": frame_id, "t_video_sec": t_video_sec}
        arkit_pose = match_pose(pose_index, frame_id, t_video_sec)
        if arkit_pose:
            record["arkit_pose"] = arkit_pose
        records.append(record)
    return records


def write_frame_index(records: Sequence[Dict[str, Any]], destination: Path) -> Path:
    with destination.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record))
            handle.write("\n")
    return destination
