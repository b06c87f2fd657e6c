"""Types for the packaging module."""

from enum import StrEnum
from pathlib import Path
from typing import Optional

# Name of the archive root folder assembled for .app inputs
ARCHIVE_DIRNAME = "archive.xcarchive"
ARCHIVE_MANIFEST_NAME = "Emerge Upload"


class InvalidInputError(Exception):
    """Raised when the artifact (or a linkmap) path cannot be packaged."""


class ArtifactKind(StrEnum):
    """Shape of the artifact handed to the normalizer.

    Decided solely by the path suffix:
      .app        raw application bundle, wrapped into a fresh xcarchive
      .xcarchive  unzipped archive, zipped as-is (plus linkmaps)
      .zip        already-packed archive, uploaded unchanged
    """

    RAW_APP_BUNDLE = ".app"
    UNPACKED_ARCHIVE = ".xcarchive"
    PACKED_ARCHIVE = ".zip"

    @classmethod
    def from_path(cls, path: Path) -> "ArtifactKind":
        try:
            return cls(path.suffix)
        except ValueError:
            raise InvalidInputError(
                f"Unsupported artifact type '{path.suffix or path.name}': {path}"
            ) from None


def detect_artifact_kind(path: Optional[str | Path]) -> ArtifactKind:
    """Validate an artifact path and classify it.

    Raises:
        InvalidInputError: If the path is empty, missing, or has a suffix
            other than .app, .xcarchive or .zip.
    """
    if path is None or str(path) == "":
        raise InvalidInputError("No artifact path was provided")

    artifact = Path(path)
    if not artifact.exists():
        raise InvalidInputError(f"Artifact does not exist: {artifact}")

    return ArtifactKind.from_path(artifact)
