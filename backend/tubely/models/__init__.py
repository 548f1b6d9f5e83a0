"""
Pydantic data models for Tubely.

- Video: video metadata record owned by a single user
- VideoCreate: request body for draft records
- Orientation: landscape / portrait / other storage partition
"""

from tubely.models.video import Orientation, Video, VideoCreate


__all__ = ["Orientation", "Video", "VideoCreate"]
