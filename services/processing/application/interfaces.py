from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Protocol


class StorageGateway(Protocol):
    def download(self, bucket: str, object_key: str, destination_path: str) -> None: ...

    def upload(
        self,
        bucket: str,
        object_key: str,
        source_path: str,
        content_type: str | None = None,
    ) -> None: ...

    def exists(self, bucket: str, object_key: str) -> bool: ...


@dataclass(frozen=True)
class TranscodeResult:
    exit_code: int
    diagnostics: str
    output_files: List[Path] = field(default_factory=list)


class Transcoder(Protocol):
    """Runs one synchronous transcode and reports what it produced."""

    def transcode(
        self, *, source: Path, output_dir: Path, video_filter: str
    ) -> TranscodeResult: ...
