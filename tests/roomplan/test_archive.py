import zipfile

import pytest

from blueprint_capture.roomplan.archive import (
    ArchiveExtractionError,
    extract_archive,
    find_file_recursive,
    zip_directory,
)


def test_find_file_recursive_finds_nested_exact_match(tmp_path):
    nested = tmp_path / "export" / "Room 1"
    nested.mkdir(parents=True)
    (tmp_path / "export" / "RoomPlanParametric.usdz.bak").write_bytes(b"")
    target = nested / "RoomPlanParametric.usdz"
    target.write_bytes(b"")

    assert find_file_recursive(tmp_path, "RoomPlanParametric.usdz") == target


def test_find_file_recursive_returns_none_when_absent(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "other.usdz").write_bytes(b"")

    assert find_file_recursive(tmp_path, "RoomPlanParametric.usdz") is None


def test_extract_and_rezip_preserve_relative_paths(tmp_path):
    source = tmp_path / "source.zip"
    with zipfile.ZipFile(source, "w") as archive:
        archive.writestr("scan/RoomPlanParametric.usdz", b"usdz")
        archive.writestr("scan/meta.json", b"{}")
    extracted = extract_archive(source, tmp_path / "out")

    rezipped = zip_directory(extracted, tmp_path / "again.zip")

    with zipfile.ZipFile(rezipped) as archive:
        assert sorted(archive.namelist()) == [
            "scan/RoomPlanParametric.usdz",
            "scan/meta.json",
        ]
        assert archive.read("scan/meta.json") == b"{}"


def test_extract_archive_rejects_non_zip(tmp_path):
    bogus = tmp_path / "roomplan.zip"
    bogus.write_bytes(b"not a zip")

    with pytest.raises(ArchiveExtractionError):
        extract_archive(bogus, tmp_path / "out")
