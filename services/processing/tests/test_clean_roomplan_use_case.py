import io
import logging
import zipfile
from pathlib import Path

import pytest

from services.processing.application.use_cases.clean_roomplan import (
    CleanRoomplanUseCase,
)
from services.processing.domain.errors import (
    ParametricModelNotFoundError,
    RoomplanArchiveError,
)
from services.processing.domain.jobs import RoomplanCleanupJob

ARCHIVE_KEY = "targets/scene-1/raw/roomplan.zip"
PROCESSED_KEY = "targets/scene-1/processed/roomplan.zip"

ROOM_LAYER = """\
#usda 1.0
def Xform "Room"
{
    def Xform "Arch_grp"
    {
    }
    def Xform "Object_grp"
    {
        def Xform "Chair_0"
        {
        }
    }
}
"""


class FakeStorage:
    def __init__(self, objects: dict[str, bytes]) -> None:
        self.objects = objects
        self.uploaded: dict[str, dict[str, object]] = {}

    def exists(self, bucket: str, object_key: str) -> bool:
        return object_key in self.objects

    def download(self, bucket: str, object_key: str, destination_path: str) -> None:
        Path(destination_path).write_bytes(self.objects[object_key])

    def upload(self, bucket, object_key, source_path, content_type=None) -> None:
        self.uploaded[object_key] = {
            "content": Path(source_path).read_bytes(),
            "content_type": content_type,
        }


def _zip_bytes(members: dict[str, bytes], compression=zipfile.ZIP_DEFLATED) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=compression) as archive:
        for name, data in members.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def _parametric_usdz() -> bytes:
    return _zip_bytes(
        {
            "Room.usda": ROOM_LAYER.encode("utf-8"),
            "0/textures/floor.png": b"png",
        },
        compression=zipfile.ZIP_STORED,
    )


def _use_case(storage):
    return CleanRoomplanUseCase(
        storage=storage,
        model_file_name="RoomPlanParametric.usdz",
        architecture_file_name="RoomPlanArchitectureOnly.usdz",
        target_prim_name="Object_grp",
    )


def test_processed_archive_contains_original_and_sanitized_model():
    original_model = _parametric_usdz()
    storage = FakeStorage(
        {
            ARCHIVE_KEY: _zip_bytes(
                {
                    "Room/RoomPlanParametric.usdz": original_model,
                    "Room/CapturedRoom.json": b"{}",
                }
            )
        }
    )

    result = _use_case(storage).execute(
        RoomplanCleanupJob(bucket="captures", object_key=ARCHIVE_KEY)
    )

    assert list(storage.uploaded) == [PROCESSED_KEY]
    assert storage.uploaded[PROCESSED_KEY]["content_type"] == "application/zip"
    assert result.processed_key == PROCESSED_KEY
    assert result.model_path == "Room/RoomPlanParametric.usdz"
    assert result.sanitized_members == ["Room.usda"]
    assert result.removed_lines == 6

    processed = zipfile.ZipFile(io.BytesIO(storage.uploaded[PROCESSED_KEY]["content"]))
    assert sorted(processed.namelist()) == [
        "Room/CapturedRoom.json",
        "Room/RoomPlanArchitectureOnly.usdz",
        "Room/RoomPlanParametric.usdz",
    ]
    assert processed.read("Room/RoomPlanParametric.usdz") == original_model

    sanitized = zipfile.ZipFile(io.BytesIO(processed.read("Room/RoomPlanArchitectureOnly.usdz")))
    infos = sanitized.infolist()
    assert infos[0].filename == "Room.usda"
    assert all(info.compress_type == zipfile.ZIP_STORED for info in infos)
    layer = sanitized.read("Room.usda").decode("utf-8")
    assert "Object_grp" not in layer
    assert "Chair_0" not in layer
    assert 'def Xform "Arch_grp"' in layer
    assert sanitized.read("0/textures/floor.png") == b"png"


def test_missing_model_uploads_nothing(caplog):
    storage = FakeStorage({ARCHIVE_KEY: _zip_bytes({"Room/CapturedRoom.json": b"{}"})})

    with caplog.at_level(logging.ERROR):
        with pytest.raises(ParametricModelNotFoundError):
            _use_case(storage).execute(
                RoomplanCleanupJob(bucket="captures", object_key=ARCHIVE_KEY)
            )

    assert storage.uploaded == {}
    assert "RoomPlanParametric.usdz not found" in caplog.text


def test_corrupt_archive_is_fatal():
    storage = FakeStorage({ARCHIVE_KEY: b"definitely not a zip"})

    with pytest.raises(RoomplanArchiveError):
        _use_case(storage).execute(
            RoomplanCleanupJob(bucket="captures", object_key=ARCHIVE_KEY)
        )

    assert storage.uploaded == {}


def test_binary_layers_are_left_alone():
    model = _zip_bytes(
        {"Room.usdc": b"PXR-USDC" + b"\0" * 24, "extra.usd": b"PXR-USDC\0\0"},
        compression=zipfile.ZIP_STORED,
    )
    storage = FakeStorage({ARCHIVE_KEY: _zip_bytes({"RoomPlanParametric.usdz": model})})

    result = _use_case(storage).execute(
        RoomplanCleanupJob(bucket="captures", object_key=ARCHIVE_KEY)
    )

    processed = zipfile.ZipFile(io.BytesIO(storage.uploaded[PROCESSED_KEY]["content"]))
    sanitized = zipfile.ZipFile(io.BytesIO(processed.read("RoomPlanArchitectureOnly.usdz")))
    assert result.sanitized_members == []
    assert sanitized.namelist() == ["Room.usdc", "extra.usd"]
    assert sanitized.read("extra.usd") == b"PXR-USDC\0\0"
