"""
Core infrastructure for the Tubely backend application.

- auth: Bearer token (JWT) validation and the current-user dependency
- database: MongoDB async client with Motor driver and connection pooling
- exceptions: TubelyError hierarchy shared by services and the HTTP layer
- storage: S3-compatible storage client for MinIO/AWS S3 operations

Clients in this package are async and shared process-wide.
"""
