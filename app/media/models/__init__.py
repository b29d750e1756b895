"""
Media models package.

Exports:
    MediaFile: User-uploaded file targeted by share links
"""

from media.models.media_file import MediaFile

__all__ = [
    "MediaFile",
]
