"""Use cases for the processing service."""

from .clean_roomplan import CleanRoomplanUseCase
from .extract_frames import ExtractFramesUseCase

__all__ = [
    "CleanRoomplanUseCase",
    "ExtractFramesUseCase",
]
