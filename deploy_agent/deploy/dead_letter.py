r"""Dead-letter sinks for jobs that exhausted their download attempts.

Writes one JSON object per line::

    {"artifacts_url": "...", "attempts": 9, "last_error": "...", ...}

Usage
-----
>>> import asyncio
>>> from pathlib import Path
>>> sink = FilesystemDeadLetterSink(Path("/var/lib/deploy-agent/dead-letter.jsonl"))
>>> # asyncio.run(sink.record(outcome))

"""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .retry import JobOutcome


class DeadLetterSink(typ.Protocol):
    """Destination for permanently failed jobs."""

    async def record(self, outcome: JobOutcome) -> None:
        """Persist an exhausted job for later inspection."""
        ...


class FilesystemDeadLetterSink:
    """Append exhausted jobs to a JSON-lines file.

    Parameters
    ----------
    path
        File to append to. Parent directories are created on first write.

    """

    def __init__(self, path: Path) -> None:
        """Initialise the sink with a file path."""
        self._path = path
        self._encoder = msgspec.json.Encoder()

    @property
    def path(self) -> Path:
        """Return the file receiving dead-lettered jobs."""
        return self._path

    def _append(self, line: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("ab") as handle:
            handle.write(line + b"\n")

    async def record(self, outcome: JobOutcome) -> None:
        """Append ``outcome`` as one JSON line."""
        await asyncio.to_thread(self._append, self._encoder.encode(outcome))
