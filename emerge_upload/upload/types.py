"""Types for the upload coordinator.

UploadRequest is the metadata sent in the first phase.
UploadSession tracks one accepted upload through the second phase.
UploadOutcome is the terminal result reported to the caller.
"""

import logging
from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUILD_TYPE = "development"

# Legacy metadata keys and the field that replaced them
DEPRECATED_ALIASES = {
    "build_id": "sha",
    "base_build_id": "base_sha",
}

# Field name -> JSON key expected by the upload endpoint
_PAYLOAD_KEYS = {
    "filename": "filename",
    "pr_number": "prNumber",
    "branch": "branch",
    "sha": "sha",
    "base_sha": "baseSha",
    "repo_name": "repoName",
    "gitlab_project_id": "gitlabProjectId",
    "order_file_version": "orderFileVersion",
    "build_type": "buildType",
}


@dataclass(frozen=True)
class UploadRequest:
    """Metadata for a single upload, sent as the phase-one JSON body.

    Only ``filename`` is required. Optional fields left unset are dropped
    from the payload rather than sent as null.
    """

    filename: str
    pr_number: Optional[str] = None
    branch: Optional[str] = None
    sha: Optional[str] = None
    base_sha: Optional[str] = None
    repo_name: Optional[str] = None
    gitlab_project_id: Optional[int] = None
    order_file_version: Optional[str] = None
    build_type: str = DEFAULT_BUILD_TYPE

    def __post_init__(self) -> None:
        if not self.filename:
            raise ValueError("UploadRequest.filename must not be empty")
        if not self.build_type:
            object.__setattr__(self, "build_type", DEFAULT_BUILD_TYPE)

    @classmethod
    def from_metadata(
        cls,
        filename: str,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> "UploadRequest":
        """Build a request from loosely-typed metadata.

        Deprecated aliases (``build_id``, ``base_build_id``) fill their
        replacement field only when the replacement is unset.

        Raises:
            ValueError: If metadata contains keys this request does not know.
        """
        values = {k: v for k, v in (metadata or {}).items() if not _is_unset(v)}

        for alias, target in DEPRECATED_ALIASES.items():
            legacy = values.pop(alias, None)
            if legacy is None:
                continue
            logger.warning("'%s' is deprecated, use '%s' instead", alias, target)
            values.setdefault(target, legacy)

        known = {f.name for f in fields(cls)} - {"filename"}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown upload metadata: {', '.join(unknown)}")

        if "gitlab_project_id" in values:
            values["gitlab_project_id"] = int(values["gitlab_project_id"])

        return cls(filename=filename, **values)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for name, key in _PAYLOAD_KEYS.items():
            value = getattr(self, name)
            if not _is_unset(value):
                payload[key] = value
        return payload


class UploadStatus(StrEnum):
    REQUESTED = "requested"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.REQUESTED: frozenset({UploadStatus.UPLOADING, UploadStatus.FAILED}),
    UploadStatus.UPLOADING: frozenset({UploadStatus.COMPLETED, UploadStatus.FAILED}),
    UploadStatus.COMPLETED: frozenset(),
    UploadStatus.FAILED: frozenset(),
}


class SessionStateError(Exception):
    """Raised on an illegal UploadSession status transition."""


@dataclass
class UploadSession:
    """One accepted upload: created on a 200 from the upload endpoint.

    Lives only for the duration of a single attempt.
    """

    upload_id: str
    upload_url: str
    status: UploadStatus = UploadStatus.REQUESTED
    failure_reason: Optional[str] = None

    def mark_uploading(self) -> None:
        self._transition(UploadStatus.UPLOADING)

    def mark_completed(self) -> None:
        self._transition(UploadStatus.COMPLETED)

    def mark_failed(self, reason: str) -> None:
        self._transition(UploadStatus.FAILED)
        self.failure_reason = reason

    def _transition(self, target: UploadStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise SessionStateError(
                f"Upload {self.upload_id}: cannot move from {self.status} to {target}"
            )
        self.status = target


class OutcomeKind(StrEnum):
    SUCCESS = "success"
    INVALID_TOKEN = "invalid_token"
    INVALID_PARAMETERS = "invalid_parameters"
    UPLOAD_FAILED = "upload_failed"


@dataclass(frozen=True)
class UploadOutcome:
    """Terminal result of one upload attempt."""

    kind: OutcomeKind
    message: Optional[str] = None
    upload_id: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @classmethod
    def success(cls, upload_id: str) -> "UploadOutcome":
        return cls(OutcomeKind.SUCCESS, upload_id=upload_id)

    @classmethod
    def invalid_token(cls) -> "UploadOutcome":
        return cls(OutcomeKind.INVALID_TOKEN, message="Invalid API token")

    @classmethod
    def invalid_parameters(cls, message: Optional[str]) -> "UploadOutcome":
        return cls(OutcomeKind.INVALID_PARAMETERS, message=message)

    @classmethod
    def upload_failed(
        cls,
        message: Optional[str] = None,
        upload_id: Optional[str] = None,
    ) -> "UploadOutcome":
        return cls(OutcomeKind.UPLOAD_FAILED, message=message, upload_id=upload_id)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "upload_id": self.upload_id,
        }


def _is_unset(value: Any) -> bool:
    return value is None or value == ""
