"""Packaging module for turning build artifacts into an upload archive.

Public API:
    normalize(input_path, linkmaps) -> Path
    find_default_artifact(derived_data_path) -> Path | None
"""

from emerge_upload.packaging.normalizer import find_default_artifact, normalize
from emerge_upload.packaging.types import ArtifactKind, InvalidInputError

__all__ = ["ArtifactKind", "InvalidInputError", "find_default_artifact", "normalize"]
