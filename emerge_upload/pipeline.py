"""End-to-end upload: normalize the artifact, then run the upload protocol.

Each step runs only if the previous one succeeded:
1. normalize() produces the canonical zip (InvalidInputError propagates)
2. the request summary is printed
3. the coordinator requests an upload target and sends the bytes
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import httpx
from rich.console import Console

from emerge_upload.packaging import normalize
from emerge_upload.summary import print_summary
from emerge_upload.upload import UPLOAD_ENDPOINT, UploadCoordinator, UploadOutcome, UploadRequest

logger = logging.getLogger(__name__)


def run_upload(
    api_token: str,
    file_path: Optional[str | Path],
    metadata: Optional[Mapping[str, Any]] = None,
    linkmaps: Optional[Sequence[str | Path]] = None,
    *,
    endpoint: str = UPLOAD_ENDPOINT,
    client: Optional[httpx.Client] = None,
    console: Optional[Console] = None,
) -> UploadOutcome:
    """Package ``file_path`` and upload it with ``metadata``.

    Raises:
        InvalidInputError: If the artifact cannot be packaged.
        ValueError: If ``metadata`` contains unknown keys.
    """
    archive_path = normalize(file_path, linkmaps)
    request = UploadRequest.from_metadata(archive_path.name, metadata)

    print_summary(request.to_payload(), console=console)

    coordinator = UploadCoordinator(api_token, endpoint=endpoint, client=client)
    outcome = coordinator.submit(archive_path, request)
    logger.info("Upload of %s finished: %s", archive_path.name, outcome.kind)
    return outcome
