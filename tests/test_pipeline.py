"""End-to-end tests: real normalization, faked Emerge endpoint."""

import io
import json
import zipfile

import httpx
import pytest
from rich.console import Console

from emerge_upload.packaging import InvalidInputError
from emerge_upload.pipeline import run_upload
from emerge_upload.upload import OutcomeKind


@pytest.fixture
def app_bundle(tmp_path):
    app = tmp_path / "build" / "MyApp.app"
    app.mkdir(parents=True)
    (app / "MyApp").write_bytes(b"binary")
    return app


def _recording_client(requests: list, status_code: int = 200) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append((request.method, str(request.url), request.read()))
        if request.method == "POST":
            return httpx.Response(
                status_code, json={"upload_id": "u1", "uploadURL": "https://x/put"}
            )
        return httpx.Response(200)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestRunUpload:
    def test_app_bundle_end_to_end(self, app_bundle):
        requests: list = []
        console = Console(file=io.StringIO(), width=200)

        outcome = run_upload(
            "tok",
            app_bundle,
            {"branch": "main", "sha": "abc"},
            client=_recording_client(requests),
            console=console,
        )

        assert outcome.kind == OutcomeKind.SUCCESS
        archive = app_bundle.parent.resolve() / "archive.xcarchive.zip"
        assert [r[0] for r in requests] == ["POST", "PUT"]
        assert json.loads(requests[0][2]) == {
            "filename": "archive.xcarchive.zip",
            "branch": "main",
            "sha": "abc",
            "buildType": "development",
        }
        assert requests[1][2] == archive.read_bytes()
        with zipfile.ZipFile(archive) as zf:
            assert "archive.xcarchive/Products/Applications/MyApp.app/MyApp" in zf.namelist()

    def test_prints_summary(self, app_bundle):
        buffer = io.StringIO()
        run_upload(
            "tok",
            app_bundle,
            {"repo_name": "EmergeTools/Emerge"},
            client=_recording_client([]),
            console=Console(file=buffer, width=200),
        )
        text = buffer.getvalue()
        assert "Summary for Emerge" in text
        assert "repoName" in text
        assert "EmergeTools/Emerge" in text

    def test_invalid_input_makes_no_requests(self, tmp_path):
        requests: list = []
        with pytest.raises(InvalidInputError):
            run_upload("tok", tmp_path / "nope.app", {}, client=_recording_client(requests))
        assert requests == []

    def test_rejection_stops_after_first_call(self, app_bundle):
        requests: list = []
        outcome = run_upload(
            "tok",
            app_bundle,
            {},
            client=_recording_client(requests, status_code=403),
            console=Console(file=io.StringIO()),
        )
        assert outcome.kind == OutcomeKind.INVALID_TOKEN
        assert len(requests) == 1
