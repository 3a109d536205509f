"""Extract artifact archives into the deployment directory.

Entry names are untrusted: any name that is absolute, carries a drive, uses a
``..`` segment, or resolves (through existing symlinks) outside the
destination is skipped. Extracted files are made executable by owner and
group (``0o775``) on POSIX hosts because deployments run them directly.

Installation is not atomic. A failure part way through leaves the files that
were already written.
"""

from __future__ import annotations

import dataclasses
import os
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath, PureWindowsPath

from deploy_agent.logging import get_logger, log_info, log_warning

from .errors import ArchiveInstallError

INSTALLED_FILE_MODE = 0o775

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class InstallReport:
    """Outcome of a successful installation."""

    destination: Path
    installed: tuple[Path, ...]
    skipped: tuple[str, ...] = ()


def safe_entry_path(destination: Path, name: str) -> Path | None:
    """Return where an archive entry should be written, or ``None`` if unsafe.

    Parameters
    ----------
    destination
        Directory the archive is extracted into.
    name
        Entry name as stored in the archive.

    Returns
    -------
    Path | None
        Target path inside ``destination``, or ``None`` when the entry would
        escape it or names nothing.

    """
    if "\x00" in name:
        return None
    windows = PureWindowsPath(name)
    if windows.drive or windows.root:
        return None
    pure = PurePosixPath(name.replace("\\", "/"))
    if pure.is_absolute() or ".." in pure.parts:
        return None
    parts = [part for part in pure.parts if part not in {"", "."}]
    if not parts:
        return None

    root = destination.resolve()
    target = root.joinpath(*parts)
    if not target.resolve().is_relative_to(root):
        return None
    return target


def _extract_entry(
    archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path
) -> None:
    if info.is_dir():
        target.mkdir(parents=True, exist_ok=True)
        return
    target.parent.mkdir(parents=True, exist_ok=True)
    with archive.open(info) as source, target.open("wb") as sink:
        shutil.copyfileobj(source, sink)
    if os.name == "posix":
        target.chmod(INSTALLED_FILE_MODE)


def _extract_all(archive: zipfile.ZipFile, destination: Path) -> InstallReport:
    installed: list[Path] = []
    skipped: list[str] = []
    for info in archive.infolist():
        target = safe_entry_path(destination, info.filename)
        if target is None:
            log_warning(logger, "Skipping unsafe archive entry %r", info.filename)
            skipped.append(info.filename)
            continue
        _extract_entry(archive, info, target)
        if not info.is_dir():
            installed.append(target)

    if not installed:
        raise ArchiveInstallError.nothing_installable(destination, skipped)
    return InstallReport(
        destination=destination,
        installed=tuple(installed),
        skipped=tuple(skipped),
    )


def install_archive(archive: bytes, destination: Path) -> InstallReport:
    """Install a zip archive into ``destination``.

    The archive is first written to a private temporary file (mode ``0600``)
    which is removed afterwards.

    Parameters
    ----------
    archive
        Zip archive bytes as downloaded.
    destination
        Directory to extract into; created if missing.

    Returns
    -------
    InstallReport
        Installed paths and skipped entry names.

    Raises
    ------
    ArchiveInstallError
        If the archive is unreadable, a file cannot be written, or no entry
        could be installed.

    """
    try:
        destination.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            prefix="deploy-agent-", suffix=".zip"
        ) as handle:
            handle.write(archive)
            handle.flush()
            handle.seek(0)
            with zipfile.ZipFile(handle) as zipped:
                report = _extract_all(zipped, destination)
    except (zipfile.BadZipFile, zipfile.LargeZipFile, NotImplementedError) as exc:
        raise ArchiveInstallError.corrupt_archive(destination, str(exc)) from exc
    except OSError as exc:
        raise ArchiveInstallError.io_failure(destination, exc) from exc

    log_info(
        logger,
        "Installed %d file(s) into %s (%d skipped)",
        len(report.installed),
        destination,
        len(report.skipped),
    )
    return report
