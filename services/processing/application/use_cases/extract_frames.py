from __future__ import annotations

import logging
from pathlib import Path
from tempfile import TemporaryDirectory

from blueprint_capture.frames.manifest import (
    INDEX_FILE_NAME,
    build_frame_index,
    write_frame_index,
)
from blueprint_capture.frames.poses import PoseIndex, build_pose_index
from blueprint_capture.frames.timestamps import parse_pts_times, resolve_frame_times
from services.processing.application.interfaces import StorageGateway, Transcoder
from services.processing.application.uploads import upload_batch
from services.processing.domain.errors import TranscodeError
from services.processing.domain.jobs import FrameExtractionJob, FrameExtractionResult

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 4000


class ExtractFramesUseCase:
    """Walkthrough video -> sampled JPEG frames + ``index.jsonl`` manifest."""

    def __init__(
        self,
        *,
        storage: StorageGateway,
        transcoder: Transcoder,
        video_filter: str,
        fps: float,
        upload_concurrency: int = 8,
    ) -> None:
        self._storage = storage
        self._transcoder = transcoder
        self._video_filter = video_filter
        self._fps = fps
        self._upload_concurrency = upload_concurrency

    def execute(self, job: FrameExtractionJob) -> FrameExtractionResult:
        with TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            frames_dir = tmpdir_path / "frames"
            frames_dir.mkdir()

            pose_index = self._load_pose_index(job, tmpdir_path)

            video_path = tmpdir_path / (Path(job.object_key).name or "walkthrough.mov")
            self._storage.download(job.bucket, job.object_key, video_path.as_posix())
            logger.info("Downloaded video %s/%s", job.bucket, job.object_key)

            result = self._transcoder.transcode(
                source=video_path, output_dir=frames_dir, video_filter=self._video_filter
            )
            if result.exit_code != 0:
                logger.error(
                    "ffmpeg failed with code %s: %s",
                    result.exit_code,
                    result.diagnostics[-_STDERR_TAIL_CHARS:],
                )
                raise TranscodeError(result.exit_code, result.diagnostics)

            frame_files = sorted(result.output_files, key=lambda path: path.name)
            frame_times = resolve_frame_times(
                len(frame_files), parse_pts_times(result.diagnostics), self._fps
            )
            records = build_frame_index(frame_times, pose_index)
            index_path = write_frame_index(records, frames_dir / INDEX_FILE_NAME)

            uploads = [
                (f"{job.frames_prefix}/{path.name}", path)
                for path in [*frame_files, index_path]
            ]
            uploaded_keys = upload_batch(
                self._storage,
                job.bucket,
                uploads,
                max_workers=self._upload_concurrency,
            )

        matched = sum(1 for record in records if "arkit_pose" in record)
        logger.info(
            "Uploaded %d frames and index to %s (%d with ARKit pose)",
            len(frame_files),
            job.frames_prefix,
            matched,
        )
        return FrameExtractionResult(
            bucket=job.bucket,
            frames_prefix=job.frames_prefix,
            frame_count=len(frame_files),
            matched_pose_count=matched,
            uploaded_keys=uploaded_keys,
        )

    def _load_pose_index(self, job: FrameExtractionJob, workdir: Path) -> PoseIndex:
        pose_key = job.pose_log_key
        try:
            exists = self._storage.exists(job.bucket, pose_key)
        except Exception as exc:
            logger.error("Failed to check existence of ARKit poses %s: %s", pose_key, exc)
            return PoseIndex.empty()
        if not exists:
            logger.info("No ARKit pose log found at %s", pose_key)
            return PoseIndex.empty()

        local_path = workdir / "arkit-poses.jsonl"
        try:
            self._storage.download(job.bucket, pose_key, local_path.as_posix())
            content = local_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read ARKit pose log %s: %s", pose_key, exc)
            return PoseIndex.empty()
        except Exception as exc:
            logger.error("Failed to download ARKit pose log %s: %s", pose_key, exc)
            return PoseIndex.empty()

        index = build_pose_index(content)
        logger.info(
            "Loaded ARKit pose entries from %s (%d by frame id, %d timed)",
            pose_key,
            len(index.by_frame_id),
            len(index.by_time),
        )
        return index
