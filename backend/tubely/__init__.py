"""
Tubely Backend Application Package

This package contains the Tubely FastAPI application: authenticated creators
upload video and thumbnail assets for their video records, and the server
validates, classifies, remuxes and stores them before handing back
time-limited access URLs.

- Bounded-size streaming uploads spooled to scratch files
- Orientation classification via ffprobe (landscape, portrait, other)
- Fast-start container remux via ffmpeg (stream copy, no re-encode)
- S3-compatible object storage with presigned download URLs
- Video metadata records in MongoDB

Package Structure:
- api/: REST API endpoints organized by version (v1)
- core/: Core infrastructure (database, storage, auth, exceptions)
- models/: Pydantic data models
- services/: Upload pipeline, media tooling and record store
- utils/: Logging, spooling and validation helpers
"""

__version__ = "1.0.0"
__app_name__ = "Tubely"
