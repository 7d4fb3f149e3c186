"""USDZ container packaging.

A USDZ reader only inspects the first member to find the root layer, so the
container must lead with a scene file. Members are stored uncompressed with
their data aligned to 64 bytes.
"""

from __future__ import annotations

import shutil
import struct
import zipfile
from pathlib import Path
from typing import BinaryIO, List, Optional

PRIMARY_EXTENSIONS = (".usdc", ".usda")
TEXT_LAYER_EXTENSIONS = (".usda", ".usd")
USDC_MAGIC = b"PXR-USDC"

DATA_ALIGNMENT = 64
_LOCAL_HEADER_SIZE = 30
_EXTRA_HEADER_SIZE = 4
_ZIP64_EXTRA_SIZE = 20
_PADDING_EXTRA_ID = 0x1986
_FIXED_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def is_primary(name: str) -> bool:
    return name.lower().endswith(PRIMARY_EXTENSIONS)


def is_text_layer(name: str) -> bool:
    return name.lower().endswith(TEXT_LAYER_EXTENSIONS)


def is_binary_layer(path: Path) -> bool:
    with path.open("rb") as handle:
        return handle.read(len(USDC_MAGIC)) == USDC_MAGIC


def first_member_name(container_path: Path) -> Optional[str]:
    with zipfile.ZipFile(container_path) as archive:
        names = [info.filename for info in archive.infolist() if not info.is_dir()]
    return names[0] if names else None


def member_order(relative_paths: List[str], preferred: Optional[str] = None) -> List[str]:
    """Order members: one primary first, then the other primaries, then the rest.

    ``preferred`` names the primary that should lead when it is present;
    otherwise the lexicographically first primary leads.
    """
    ordered = sorted(relative_paths)
    primaries = [name for name in ordered if is_primary(name)]
    others = [name for name in ordered if not is_primary(name)]
    if not primaries:
        return others
    lead = preferred if preferred in primaries else primaries[0]
    return [lead] + [name for name in primaries if name != lead] + others


def _padding_extra(offset: int, name: str, file_size: int) -> bytes:
    header_size = _LOCAL_HEADER_SIZE + len(name.encode("utf-8")) + _EXTRA_HEADER_SIZE
    if file_size * 1.05 > zipfile.ZIP64_LIMIT:
        header_size += _ZIP64_EXTRA_SIZE
    padding = -(offset + header_size) % DATA_ALIGNMENT
    return struct.pack("<HH", _PADDING_EXTRA_ID, padding) + b"\0" * padding


def _write_member(
    archive: zipfile.ZipFile, handle: BinaryIO, source: Path, name: str
) -> None:
    file_size = source.stat().st_size
    info = zipfile.ZipInfo(name, date_time=_FIXED_TIMESTAMP)
    info.compress_type = zipfile.ZIP_STORED
    info.external_attr = 0o644 << 16
    info.file_size = file_size
    info.extra = _padding_extra(handle.tell(), name, file_size)
    with source.open("rb") as src, archive.open(info, "w") as dest:
        shutil.copyfileobj(src, dest)


def write_usdz(
    source_dir: Path, destination: Path, *, preferred_primary: Optional[str] = None
) -> List[str]:
    """Package ``source_dir`` into a USDZ at ``destination``.

    Returns the member names in the order they were written.
    """
    relative_paths = [
        path.relative_to(source_dir).as_posix()
        for path in source_dir.rglob("*")
        if path.is_file()
    ]
    order = member_order(relative_paths, preferred_primary)
    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("wb") as handle:
        with zipfile.ZipFile(handle, "w", compression=zipfile.ZIP_STORED) as archive:
            for name in order:
                _write_member(archive, handle, source_dir / name, name)
    return order
