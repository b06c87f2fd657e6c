"""Archive normalizer: turns any supported artifact into one upload zip.

Three input shapes are accepted (see ArtifactKind):
- .app: wrapped into a fresh archive.xcarchive alongside nearby dSYMs,
  built in a temporary directory and zipped next to the app
- .xcarchive: linkmaps added in place, then zipped to <archive>.zip
- .zip: already canonical, returned unchanged

The returned path is what the upload coordinator transmits.
"""

import logging
import plistlib
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Sequence

from emerge_upload.packaging.types import (
    ARCHIVE_DIRNAME,
    ARCHIVE_MANIFEST_NAME,
    ArtifactKind,
    InvalidInputError,
    detect_artifact_kind,
)
from emerge_upload.packaging.zipper import zip_directory

logger = logging.getLogger(__name__)

DSYM_SUFFIX = ".dsym"

# Where xcodebuild places simulator builds inside a DerivedData folder
SIMULATOR_PRODUCTS_DIR = Path("Build") / "Products" / "Debug-iphonesimulator"


def normalize(
    input_path: Optional[str | Path],
    linkmaps: Optional[Sequence[str | Path]] = None,
) -> Path:
    """Produce the canonical upload archive for ``input_path``.

    Args:
        input_path: A .app bundle, .xcarchive directory, or .zip file.
        linkmaps: Optional linker map files to bundle under Linkmaps/.

    Returns:
        Path to the zip archive to upload.

    Raises:
        InvalidInputError: If the artifact is missing or unsupported, or a
            linkmap that would be copied does not exist. Nothing is written
            to disk in that case.
    """
    kind = detect_artifact_kind(input_path)
    artifact = Path(input_path)
    linkmap_paths = [Path(p) for p in linkmaps or []]

    if kind is ArtifactKind.RAW_APP_BUNDLE:
        _check_linkmaps(linkmap_paths)
        return package_app_bundle(artifact, linkmap_paths)
    if kind is ArtifactKind.UNPACKED_ARCHIVE:
        _check_linkmaps(linkmap_paths)
        return package_xcarchive(artifact, linkmap_paths)
    if kind is ArtifactKind.PACKED_ARCHIVE:
        return passthrough_zip(artifact, linkmap_paths)

    raise InvalidInputError(f"Unhandled artifact kind: {kind}")


def package_app_bundle(app_path: Path, linkmaps: Sequence[Path]) -> Path:
    """Wrap a .app in an xcarchive layout together with its dSYMs."""
    absolute_path = app_path.expanduser().resolve()
    search_dir = absolute_path.parent
    logger.info("A .app was provided, dSYMs will be looked for in %s", search_dir)

    output_path = search_dir / f"{ARCHIVE_DIRNAME}.zip"

    with tempfile.TemporaryDirectory(prefix="emerge-") as tmp:
        archive_dir = Path(tmp) / ARCHIVE_DIRNAME
        applications_dir = archive_dir / "Products" / "Applications"
        dsym_dir = archive_dir / "dSYMs"
        applications_dir.mkdir(parents=True)
        dsym_dir.mkdir(parents=True)

        if linkmaps:
            _copy_linkmaps(linkmaps, archive_dir / "Linkmaps")

        shutil.copytree(
            absolute_path,
            applications_dir / absolute_path.name,
            symlinks=True,
        )

        for dsym in find_dsyms(search_dir):
            logger.info("Found dSYM: %s", dsym.name)
            _copy_any(dsym, dsym_dir / dsym.name)

        with open(archive_dir / "Info.plist", "wb") as fh:
            plistlib.dump({"NAME": ARCHIVE_MANIFEST_NAME}, fh)

        zip_directory(archive_dir, output_path)

    logger.info("Archive generated at %s", output_path)
    return output_path


def package_xcarchive(archive_path: Path, linkmaps: Sequence[Path]) -> Path:
    """Zip an unpacked xcarchive, adding linkmaps to it in place first."""
    output_path = archive_path.with_name(archive_path.name + ".zip")

    if linkmaps:
        _copy_linkmaps(linkmaps, archive_path / "Linkmaps")

    zip_directory(archive_path, output_path)
    logger.info("Archive generated at %s", output_path)
    return output_path


def passthrough_zip(zip_path: Path, linkmaps: Sequence[Path]) -> Path:
    """Return an already-zipped archive unchanged; linkmaps are not injected."""
    if linkmaps:
        logger.warning(
            "Provided zipped archive and linkmaps, linkmaps will not be added to zip."
        )
    return zip_path


def find_dsyms(search_dir: Path) -> list[Path]:
    """Return dSYM bundles directly inside ``search_dir`` or one level below.

    The suffix is matched case-insensitively so Xcode's ``.dSYM`` bundles
    are picked up on case-sensitive filesystems too.
    """
    found: list[Path] = []
    for entry in _sorted_children(search_dir):
        if _is_dsym(entry):
            found.append(entry)
    for entry in _sorted_children(search_dir):
        if entry.is_dir() and not _is_dsym(entry):
            found.extend(c for c in _sorted_children(entry) if _is_dsym(c))
    return found


def find_default_artifact(derived_data_path: Optional[str | Path]) -> Optional[Path]:
    """Locate the simulator .app produced in a DerivedData directory.

    Returns the first match by name, or None when nothing was built.
    """
    if not derived_data_path:
        return None
    products = Path(derived_data_path) / SIMULATOR_PRODUCTS_DIR
    matches = sorted(products.glob("*.app"))
    return matches[0] if matches else None


def _check_linkmaps(linkmaps: Iterable[Path]) -> None:
    missing = [str(p) for p in linkmaps if not p.is_file()]
    if missing:
        raise InvalidInputError(f"Linkmap files not found: {', '.join(missing)}")


def _copy_linkmaps(linkmaps: Sequence[Path], destination: Path) -> None:
    destination.mkdir(parents=True, exist_ok=True)
    for linkmap in linkmaps:
        shutil.copy(linkmap, destination)


def _copy_any(source: Path, destination: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(source, destination)


def _is_dsym(path: Path) -> bool:
    return path.name.lower().endswith(DSYM_SUFFIX)


def _sorted_children(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(directory.iterdir())
