"""Upload coordinator: drives the two-phase upload to Emerge.

The upload flow:
1. POST the request metadata to the upload endpoint with the API token
2. On 200, the endpoint answers with an upload id and a one-time URL
3. PUT the archive bytes to that URL (a pre-signed storage target)

403 and 400 responses end the attempt before any bytes are sent.
Both calls block; no timeout or retry is applied.
"""

import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx

from emerge_upload.upload.types import (
    UploadOutcome,
    UploadRequest,
    UploadSession,
    UploadStatus,
)

logger = logging.getLogger(__name__)

UPLOAD_ENDPOINT = "https://api.emergetools.com/upload"

# Uploads block until the service answers
UPLOAD_TIMEOUT = None


class UploadCoordinator:
    """Runs upload attempts against a single endpoint with one API token.

    An injected ``client`` is used as-is and left open. Otherwise each
    attempt opens its own ``httpx.Client`` and closes it afterwards.
    """

    def __init__(
        self,
        api_token: str,
        endpoint: str = UPLOAD_ENDPOINT,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_token = api_token
        self.endpoint = endpoint
        self._client = client

    def upload(
        self,
        archive_path: Path,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> UploadOutcome:
        """Build the request for ``archive_path`` and submit it."""
        archive_path = Path(archive_path)
        request = UploadRequest.from_metadata(archive_path.name, metadata)
        return self.submit(archive_path, request)

    def submit(self, archive_path: Path, request: UploadRequest) -> UploadOutcome:
        if self._client is not None:
            return self._run(self._client, Path(archive_path), request)

        with httpx.Client(timeout=UPLOAD_TIMEOUT) as client:
            return self._run(client, Path(archive_path), request)

    def _run(
        self,
        client: httpx.Client,
        archive_path: Path,
        request: UploadRequest,
    ) -> UploadOutcome:
        try:
            response = client.post(
                self.endpoint,
                content=json.dumps(request.to_payload()),
                headers={
                    "Content-Type": "application/json",
                    "X-API-Token": self.api_token,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Upload request for %s failed: %s", request.filename, exc)
            return UploadOutcome.upload_failed(str(exc))

        logger.info(
            "Upload request for %s returned %d", request.filename, response.status_code
        )

        if response.status_code == 200:
            session = _open_session(response)
            if session is None:
                return UploadOutcome.upload_failed("Malformed upload response")
            return self._transfer(client, session, archive_path)

        if response.status_code == 403:
            logger.error("Invalid API token")
            return UploadOutcome.invalid_token()

        if response.status_code == 400:
            # Non-JSON body propagates as a decode error
            message = response.json().get("errorMessage")
            logger.error("Invalid parameters: %s", message)
            return UploadOutcome.invalid_parameters(message)

        logger.error("Upload failed with status %d", response.status_code)
        return UploadOutcome.upload_failed(
            f"Unexpected status {response.status_code} from upload endpoint"
        )

    def _transfer(
        self,
        client: httpx.Client,
        session: UploadSession,
        archive_path: Path,
    ) -> UploadOutcome:
        session.mark_uploading()
        size = archive_path.stat().st_size
        logger.info("Uploading %s (%d bytes) as %s", archive_path.name, size, session.upload_id)

        try:
            with archive_path.open("rb") as fh:
                response = client.put(
                    session.upload_url,
                    content=_iter_file(fh),
                    headers={
                        "Content-Type": "application/zip",
                        "Content-Length": str(size),
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            session.mark_failed(str(exc))
        else:
            if response.is_success:
                session.mark_completed()
            else:
                session.mark_failed(f"Storage upload returned {response.status_code}")

        if session.status is UploadStatus.FAILED:
            logger.error("Upload %s failed: %s", session.upload_id, session.failure_reason)
            return UploadOutcome.upload_failed(session.failure_reason, session.upload_id)

        logger.info("Upload %s completed", session.upload_id)
        return UploadOutcome.success(session.upload_id)


def upload(
    archive_path: Path,
    metadata: Optional[Mapping[str, Any]],
    api_token: str,
    *,
    endpoint: str = UPLOAD_ENDPOINT,
    client: Optional[httpx.Client] = None,
) -> UploadOutcome:
    """Upload ``archive_path`` with ``metadata`` in a single attempt."""
    coordinator = UploadCoordinator(api_token, endpoint=endpoint, client=client)
    return coordinator.upload(archive_path, metadata)


def _open_session(response: httpx.Response) -> Optional[UploadSession]:
    try:
        body = response.json()
        upload_id = body["upload_id"]
        upload_url = body["uploadURL"]
    except (ValueError, KeyError, TypeError) as exc:
        logger.error("Could not read upload target from response: %s", exc)
        return None

    for key, value in (("upload_id", upload_id), ("uploadURL", upload_url)):
        if not isinstance(value, str) or not value:
            logger.error("Upload response has invalid %s: %r", key, value)
            return None
    return UploadSession(upload_id=upload_id, upload_url=upload_url)


def _iter_file(fh, chunk_size: int = 1024 * 1024):
    while chunk := fh.read(chunk_size):
        yield chunk
