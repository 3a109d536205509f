"""In-memory zip archives for installer and worker tests."""

from __future__ import annotations

import io
import typing as typ
import zipfile


def build_zip(
    files: typ.Mapping[str, bytes],
    *,
    directories: typ.Sequence[str] = (),
) -> bytes:
    """Return zip bytes holding ``files`` and empty ``directories``.

    Entry names are written exactly as given, so tests can include names
    such as ``../escape`` that ``ZipFile.write`` would normalise away.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name in directories:
            archive.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()
