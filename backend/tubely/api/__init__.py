"""
Tubely API Package.

HTTP endpoints, organized by version:
    - v1/: Version 1 API endpoints
        - videos.py: Video record endpoints (create, list, get, delete)
        - upload.py: Video and thumbnail upload endpoints
        - dependencies.py: Service providers used through Depends()

All endpoints are served under the /api/v1 URL prefix.
"""
