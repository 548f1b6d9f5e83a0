"""
Services module for the Tubely backend application.

- upload_service: Video and thumbnail upload pipelines
- media_service: ffprobe orientation classification and ffmpeg fast-start remux
- video_store: MongoDB repository for video records
- video_urls: Storage reference encoding and signed URL resolution

Services are wired together through FastAPI's dependency system.
"""
