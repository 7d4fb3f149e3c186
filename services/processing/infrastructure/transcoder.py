from __future__ import annotations

import subprocess
from pathlib import Path

from services.processing.application.interfaces import TranscodeResult, Transcoder
from services.processing.config import ProcessingConfig

FRAME_PATTERN = "%06d.jpg"
FRAME_EXTENSION = ".jpg"


def build_frame_filter(fps: float, max_dimension: int) -> str:
    """fps sampling, longest side scaled to ``max_dimension`` (Lanczos), showinfo.

    showinfo runs after fps so every ``pts_time`` it logs belongs to an
    output frame.
    """
    rate = int(fps) if float(fps).is_integer() else fps
    scale = (
        f"scale=w='if(gt(iw,ih),{max_dimension},-2)'"
        f":h='if(gt(iw,ih),-2,{max_dimension})'"
        ":flags=lanczos"
    )
    return f"fps={rate},{scale},showinfo"


class FFmpegFrameTranscoder(Transcoder):
    def __init__(
        self,
        *,
        ffmpeg_path: str = "ffmpeg",
        jpeg_qscale: int = 2,
        log_level: str = "info",
    ) -> None:
        self._ffmpeg_path = ffmpeg_path
        self._jpeg_qscale = jpeg_qscale
        self._log_level = log_level

    def transcode(
        self, *, source: Path, output_dir: Path, video_filter: str
    ) -> TranscodeResult:
        output_dir.mkdir(parents=True, exist_ok=True)
        cmd = [
            self._ffmpeg_path,
            "-hide_banner",
            "-loglevel",
            self._log_level,
            "-y",
            "-i",
            source.as_posix(),
            "-vf",
            video_filter,
            "-qscale:v",
            str(self._jpeg_qscale),
            "-start_number",
            "1",
            (output_dir / FRAME_PATTERN).as_posix(),
        ]
        result = subprocess.run(cmd, capture_output=True)
        diagnostics = result.stderr.decode("utf-8", errors="ignore")
        output_files = sorted(
            path
            for path in output_dir.iterdir()
            if path.is_file() and path.suffix.lower() == FRAME_EXTENSION
        )
        return TranscodeResult(
            exit_code=result.returncode,
            diagnostics=diagnostics,
            output_files=output_files,
        )


def create_frame_transcoder(config: ProcessingConfig) -> Transcoder:
    return FFmpegFrameTranscoder(
        ffmpeg_path=config.ffmpeg_path, jpeg_qscale=config.frame_jpeg_qscale
    )
