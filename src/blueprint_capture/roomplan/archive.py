from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Iterator, Optional

DEFAULT_MODEL_FILE_NAME = "RoomPlanParametric.usdz"
DEFAULT_ARCHITECTURE_FILE_NAME = "RoomPlanArchitectureOnly.usdz"


class ArchiveExtractionError(RuntimeError):
    """Raised when a zip archive cannot be opened or extracted."""


def extract_archive(archive_path: Path, destination: Path) -> Path:
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(destination)
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ArchiveExtractionError(
            f"could not extract {archive_path.name}: {exc}"
        ) from exc
    return destination


def find_file_recursive(root: Path, file_name: str) -> Optional[Path]:
    """Depth-first search for an exact file name, visiting entries in sorted order."""
    for entry in sorted(root.iterdir()):
        if entry.is_dir():
            found = find_file_recursive(entry, file_name)
            if found is not None:
                return found
        elif entry.name == file_name:
            return entry
    return None


def iter_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if path.is_file():
            yield path


def zip_directory(source_dir: Path, destination: Path) -> Path:
    """Zip every file under ``source_dir`` with paths relative to it."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(
        destination, "w", compression=zipfile.ZIP_DEFLATED
    ) as archive:
        for path in iter_files(source_dir):
            archive.write(path, path.relative_to(source_dir).as_posix())
    return destination
