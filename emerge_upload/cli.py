"""Command-line entry point: ``emerge-upload upload ...``."""

from __future__ import annotations

import json
from typing import List, Optional

import structlog
import typer
from rich.console import Console

from emerge_upload import __version__
from emerge_upload.core.config import get_settings
from emerge_upload.core.logging import configure_structlog
from emerge_upload.packaging import InvalidInputError, find_default_artifact
from emerge_upload.pipeline import run_upload
from emerge_upload.upload import OutcomeKind

app = typer.Typer(no_args_is_help=True, help="Upload iOS build artifacts to Emerge.")

_console = Console()


@app.command()
def upload(
    api_token: Optional[str] = typer.Option(None, help="An API token for Emerge (or EMERGE_API_TOKEN)."),
    file_path: Optional[str] = typer.Option(
        None, help="Path to the .app, .xcarchive or zipped xcarchive to upload."
    ),
    linkmap: List[str] = typer.Option([], "--linkmap", help="Path to a linkmap; repeat for several."),
    pr_number: Optional[str] = typer.Option(None, help="The PR number that triggered this upload."),
    branch: Optional[str] = typer.Option(None, help="The current git branch."),
    sha: Optional[str] = typer.Option(None, help="The git SHA that triggered this build."),
    base_sha: Optional[str] = typer.Option(None, help="The git SHA of the base build."),
    build_id: Optional[str] = typer.Option(None, hidden=True, help="Deprecated, use --sha."),
    base_build_id: Optional[str] = typer.Option(None, hidden=True, help="Deprecated, use --base-sha."),
    repo_name: Optional[str] = typer.Option(
        None, help="Full name of the repository, e.g. EmergeTools/Emerge."
    ),
    gitlab_project_id: Optional[int] = typer.Option(None, help="Id of the GitLab project."),
    build_type: Optional[str] = typer.Option(
        None, help="Type of build such as release/development. Defaults to development."
    ),
    order_file_version: Optional[str] = typer.Option(None, help="Version of the order file to download."),
    derived_data_path: Optional[str] = typer.Option(
        None, help="DerivedData folder to search for a simulator .app when no file path is set."
    ),
) -> None:
    """Package a build artifact and upload it to Emerge."""
    settings = get_settings()
    configure_structlog(debug=settings.debug)
    log = structlog.get_logger("emerge_upload")

    token = api_token or settings.api_token
    if not token:
        _console.print("[red]An Emerge API token is required (--api-token or EMERGE_API_TOKEN).[/red]")
        raise typer.Exit(code=2)

    artifact = file_path or settings.file_path
    if artifact is None:
        artifact = find_default_artifact(derived_data_path or settings.derived_data_path)

    metadata = {
        "pr_number": pr_number,
        "branch": branch,
        "sha": sha,
        "build_id": build_id,
        "base_sha": base_sha,
        "base_build_id": base_build_id,
        "repo_name": repo_name,
        "gitlab_project_id": gitlab_project_id,
        "build_type": build_type,
        "order_file_version": order_file_version,
    }

    try:
        outcome = run_upload(
            token,
            artifact,
            metadata,
            linkmap,
            endpoint=settings.upload_endpoint,
            console=_console,
        )
    except InvalidInputError as exc:
        _console.print(f"[red]Invalid input file[/red]: {exc}")
        raise typer.Exit(code=1)
    except json.JSONDecodeError as exc:
        # 400 response whose body is not JSON
        _console.print("[red]Invalid parameters[/red]")
        _console.print(f"Error: could not parse response: {exc}", markup=False)
        raise typer.Exit(code=1)

    log.info("upload_finished", **outcome.to_dict())

    if outcome.kind == OutcomeKind.SUCCESS:
        _console.print(f"[green]Upload complete[/green] (id {outcome.upload_id})")
        return
    if outcome.kind == OutcomeKind.INVALID_TOKEN:
        _console.print("[red]Invalid API token[/red]")
    elif outcome.kind == OutcomeKind.INVALID_PARAMETERS:
        _console.print("[red]Invalid parameters[/red]")
        _console.print(f"Error: {outcome.message}")
    else:
        _console.print("[red]Upload failed[/red]")
        if outcome.message:
            _console.print(outcome.message, style="dim")
    raise typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the tool version."""
    _console.print(__version__)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
