"""Matrix adapter package."""

from __future__ import annotations

from .client import MatrixRoomProvider

__all__ = ["MatrixRoomProvider"]
