"""Tests for artifact classification."""

from pathlib import Path

import pytest

from emerge_upload.packaging.types import ArtifactKind, InvalidInputError, detect_artifact_kind


class TestArtifactKind:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("MyApp.app", ArtifactKind.RAW_APP_BUNDLE),
            ("MyApp.xcarchive", ArtifactKind.UNPACKED_ARCHIVE),
            ("MyApp.xcarchive.zip", ArtifactKind.PACKED_ARCHIVE),
        ],
    )
    def test_from_suffix(self, name, expected):
        assert ArtifactKind.from_path(Path(name)) is expected

    def test_unknown_suffix(self):
        with pytest.raises(InvalidInputError, match=".ipa"):
            ArtifactKind.from_path(Path("MyApp.ipa"))

    def test_no_suffix(self):
        with pytest.raises(InvalidInputError):
            ArtifactKind.from_path(Path("MyApp"))


class TestDetectArtifactKind:
    def test_existing_directory(self, tmp_path):
        app = tmp_path / "MyApp.app"
        app.mkdir()
        assert detect_artifact_kind(str(app)) is ArtifactKind.RAW_APP_BUNDLE

    def test_missing(self, tmp_path):
        with pytest.raises(InvalidInputError, match="does not exist"):
            detect_artifact_kind(tmp_path / "MyApp.xcarchive")

    def test_empty(self):
        with pytest.raises(InvalidInputError, match="No artifact path"):
            detect_artifact_kind("")
