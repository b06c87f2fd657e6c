"""Zip helper used to produce the canonical upload archive.

Entries are stored relative to the source directory's parent, so the
source folder name (e.g. ``archive.xcarchive/``) is the archive root.
Directory entries are written explicitly so empty folders survive.
Symlinks are stored as links (like ``zip -r --symlinks``), not followed.
"""

import logging
import os
import stat
import tempfile
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


def zip_directory(source: Path, output_path: Path) -> Path:
    """Compress ``source`` recursively into ``output_path``.

    The archive is written to a temporary sibling and moved into place
    once complete, so a failed run leaves no partial output. An existing
    file at ``output_path`` is replaced.
    Returns the output path.
    """
    source = Path(source)
    output_path = Path(output_path)
    base = source.parent

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fd, partial = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".part", dir=output_path.parent
    )
    os.close(fd)

    try:
        with zipfile.ZipFile(partial, "w", zipfile.ZIP_DEFLATED) as archive:
            archive.write(source, source.relative_to(base).as_posix())
            for root, dirs, files in os.walk(source):
                dirs.sort()
                root_path = Path(root)
                for name in dirs:
                    _add_entry(archive, root_path / name, base)
                for name in sorted(files):
                    _add_entry(archive, root_path / name, base)
        os.replace(partial, output_path)
    except BaseException:
        Path(partial).unlink(missing_ok=True)
        raise

    logger.debug("Zipped %s into %s", source, output_path)
    return output_path


def _add_entry(archive: zipfile.ZipFile, entry: Path, base: Path) -> None:
    arcname = entry.relative_to(base).as_posix()
    if entry.is_symlink():
        info = zipfile.ZipInfo(arcname)
        info.create_system = 3  # unix, so external_attr carries the mode
        info.external_attr = (stat.S_IFLNK | 0o777) << 16
        archive.writestr(info, os.readlink(entry))
    else:
        archive.write(entry, arcname)
