from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import List, Tuple

from blueprint_capture.roomplan.archive import (
    ArchiveExtractionError,
    extract_archive,
    find_file_recursive,
    iter_files,
    zip_directory,
)
from blueprint_capture.roomplan.sanitize import remove_prim
from blueprint_capture.roomplan.usdz import (
    first_member_name,
    is_binary_layer,
    is_text_layer,
    write_usdz,
)
from services.processing.application.interfaces import StorageGateway
from services.processing.application.uploads import upload_batch
from services.processing.domain.errors import (
    ParametricModelNotFoundError,
    RoomplanArchiveError,
)
from services.processing.domain.jobs import RoomplanCleanupJob, RoomplanCleanupResult

logger = logging.getLogger(__name__)


class CleanRoomplanUseCase:
    """RoomPlan archive -> archive with an extra architecture-only USDZ.

    The parametric model is left untouched; the sanitized copy is written
    next to it and the whole tree is re-zipped under ``processed/``.
    """

    def __init__(
        self,
        *,
        storage: StorageGateway,
        model_file_name: str,
        architecture_file_name: str,
        target_prim_name: str,
        upload_concurrency: int = 8,
    ) -> None:
        self._storage = storage
        self._model_file_name = model_file_name
        self._architecture_file_name = architecture_file_name
        self._target_prim_name = target_prim_name
        self._upload_concurrency = upload_concurrency

    def execute(self, job: RoomplanCleanupJob) -> RoomplanCleanupResult:
        with TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            archive_path = tmpdir_path / "roomplan.zip"
            extract_dir = tmpdir_path / "roomplan"
            model_dir = tmpdir_path / "usdz"

            self._storage.download(job.bucket, job.object_key, archive_path.as_posix())
            try:
                extract_archive(archive_path, extract_dir)
            except ArchiveExtractionError as exc:
                raise RoomplanArchiveError(str(exc)) from exc

            model_path = find_file_recursive(extract_dir, self._model_file_name)
            if model_path is None:
                logger.error(
                    "%s not found after unzip of %s/%s",
                    self._model_file_name,
                    job.bucket,
                    job.object_key,
                )
                raise ParametricModelNotFoundError(
                    f"{self._model_file_name} not found in {job.object_key}"
                )
            model_relative = model_path.relative_to(extract_dir).as_posix()
            logger.info("Found %s at %s", self._model_file_name, model_relative)

            try:
                preferred = first_member_name(model_path)
                extract_archive(model_path, model_dir)
            except (ArchiveExtractionError, zipfile.BadZipFile) as exc:
                raise RoomplanArchiveError(
                    f"could not open {model_relative}: {exc}"
                ) from exc

            sanitized, removed_lines = self._sanitize_layers(model_dir)

            architecture_path = model_path.parent / self._architecture_file_name
            write_usdz(model_dir, architecture_path, preferred_primary=preferred)
            logger.info("Created architecture-only USDZ %s", architecture_path.name)

            processed_path = zip_directory(
                extract_dir, tmpdir_path / "roomplan-processed.zip"
            )
            upload_batch(
                self._storage,
                job.bucket,
                [(job.processed_key, processed_path)],
                max_workers=self._upload_concurrency,
            )

        logger.info(
            "Uploaded processed RoomPlan zip with architecture-only USDZ to %s",
            job.processed_key,
        )
        return RoomplanCleanupResult(
            bucket=job.bucket,
            processed_key=job.processed_key,
            model_path=model_relative,
            sanitized_members=sanitized,
            removed_lines=removed_lines,
        )

    def _sanitize_layers(self, model_dir: Path) -> Tuple[List[str], int]:
        sanitized: List[str] = []
        removed_lines = 0
        for path in iter_files(model_dir):
            name = path.relative_to(model_dir).as_posix()
            if not is_text_layer(name):
                continue
            if is_binary_layer(path):
                logger.warning("Skipping binary USD layer %s", name)
                continue
            try:
                content = path.read_bytes().decode("utf-8")
            except UnicodeDecodeError as exc:
                logger.warning("Could not read %s as text, skipping: %s", name, exc)
                continue
            result = remove_prim(content, self._target_prim_name)
            if result.changed:
                path.write_bytes(result.content.encode("utf-8"))
                removed_lines += result.removed_lines
            sanitized.append(name)
            logger.info(
                "Sanitized USD layer %s (%d blocks, %d lines removed)",
                name,
                result.removed_blocks,
                result.removed_lines,
            )
        return sanitized, removed_lines
