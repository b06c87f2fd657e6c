"""Upload module for sending canonical archives to Emerge.

Public API:
    upload(archive_path, metadata, api_token) -> UploadOutcome
    UploadCoordinator(api_token, endpoint, client).submit(archive_path, request)
"""

from emerge_upload.upload.coordinator import UPLOAD_ENDPOINT, UploadCoordinator, upload
from emerge_upload.upload.types import OutcomeKind, UploadOutcome, UploadRequest

__all__ = [
    "UPLOAD_ENDPOINT",
    "OutcomeKind",
    "UploadCoordinator",
    "UploadOutcome",
    "UploadRequest",
    "upload",
]
