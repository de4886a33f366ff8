"""Response schemas."""

from .videos import VideoResponse

__all__ = ["VideoResponse"]
