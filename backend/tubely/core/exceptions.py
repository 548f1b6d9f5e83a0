"""
Tubely exception hierarchy.

Every failure the upload pipeline can report derives from TubelyError and
falls into one of five families:

- UploadValidationError: bad id, unsupported media type, oversized upload.
  Raised before any external resource is touched.
- AuthorizationError: missing/invalid credential or caller is not the owner.
- VideoNotFoundError: the video record does not exist.
- ProcessingError: spooling I/O, external media tool or key generation
  failures. Temporary files are still cleaned up.
- StoreError: object store or metadata store failures.

Each class carries a stable ``error_code`` used in JSON error responses.
"""


class TubelyError(Exception):
    """Base exception for all Tubely errors."""

    error_code = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or self.error_code


# =============================================================================
# Validation
# =============================================================================


class UploadValidationError(TubelyError):
    """The upload request is invalid."""

    error_code = "validation_error"


class InvalidVideoIDError(UploadValidationError):
    """The video id is not a valid UUID."""

    error_code = "invalid_video_id"


class UnsupportedMediaTypeError(UploadValidationError):
    """The declared media type is not accepted for this upload."""

    error_code = "unsupported_media_type"


class UploadTooLargeError(UploadValidationError):
    """The upload exceeds its size ceiling."""

    error_code = "upload_too_large"

    def __init__(self, message: str = "", max_bytes: int | None = None) -> None:
        super().__init__(message)
        self.max_bytes = max_bytes


# =============================================================================
# Authorization
# =============================================================================


class AuthorizationError(TubelyError):
    """The caller is not allowed to perform this operation."""

    error_code = "unauthorized"


class InvalidCredentialsError(AuthorizationError):
    """The bearer token is missing, expired or invalid."""

    error_code = "invalid_credentials"


class NotVideoOwnerError(AuthorizationError):
    """The caller does not own the video record."""

    error_code = "not_video_owner"


# =============================================================================
# Lookup
# =============================================================================


class VideoNotFoundError(TubelyError):
    """The video record does not exist."""

    error_code = "video_not_found"


# =============================================================================
# Processing
# =============================================================================


class ProcessingError(TubelyError):
    """Server-side processing of the upload failed."""

    error_code = "processing_failed"


class SpoolingError(ProcessingError):
    """The upload could not be written to scratch storage."""

    error_code = "spooling_failed"


class MediaToolError(ProcessingError):
    """An external media tool could not be run."""

    error_code = "media_tool_failed"


class ToolNotFoundError(MediaToolError):
    """The external media tool executable is missing."""

    error_code = "media_tool_missing"


class ToolTimeoutError(MediaToolError):
    """The external media tool did not finish before its deadline."""

    error_code = "media_tool_timeout"


class TranscodeError(MediaToolError):
    """The transcoder exited with a non-zero status."""

    error_code = "transcode_failed"


class KeyGenerationError(ProcessingError):
    """No random bytes were available for a storage key."""

    error_code = "key_generation_failed"


# =============================================================================
# Stores
# =============================================================================


class StoreError(TubelyError):
    """A backing store call failed."""

    error_code = "store_error"


class StorageOperationError(StoreError):
    """An object store operation failed."""

    error_code = "storage_error"


class RecordStoreError(StoreError):
    """A metadata store operation failed."""

    error_code = "record_store_error"
