"""Newline-delimited JSON streams.

Scraping collaborators checkpoint long crawls as one JSON value per line
(a header record followed by entries) so that an interrupted run can be
inspected or resumed.  Reading is a lazy generator: running out of lines,
or reaching the first blank line, simply ends the iteration.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any

from paper_maps.core.exceptions import ContractError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

logger = logging.getLogger("paper_maps.utils.ndjson")


class NDJSONStreamError(ContractError):
    """Raised when a line of an NDJSON stream is not valid JSON."""

    default_stage = "ndjson"
    default_code = "NDJSON_DECODE_FAILED"

    def __init__(self, path: str, line_number: int, detail: str) -> None:
        self.path = path
        self.line_number = line_number
        super().__init__(f"{path}:{line_number}: invalid JSON line: {detail}")


class NDJSONWriter:
    """Write one compact JSON value per line.

    Usage::

        with NDJSONWriter.open("results.ndjson") as out:
            out.write({"scrapeStartTimestamp": started})
            for entry in entries:
                out.write(entry)
    """

    def __init__(self, stream: IO[str]) -> None:
        self._stream: IO[str] | None = stream

    @classmethod
    def open(cls, path: str | Path) -> NDJSONWriter:
        """Create (or truncate) *path* for writing."""
        return cls(Path(path).open("w", encoding="utf-8"))

    def write(self, value: Any) -> None:
        if self._stream is None:
            msg = "NDJSONWriter is closed"
            raise ValueError(msg)
        self._stream.write(json.dumps(value, ensure_ascii=False, separators=(",", ":")))
        self._stream.write("\n")

    def flush(self) -> None:
        if self._stream is not None:
            self._stream.flush()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> NDJSONWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def iter_ndjson(path: str | Path) -> Iterator[Any]:
    """Lazily yield the JSON values of an NDJSON file.

    Iteration ends at end of file or at the first blank line.

    Raises:
        NDJSONStreamError: If a non-blank line is not valid JSON.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as stream:
        for line_number, line in enumerate(stream, start=1):
            if not line.strip():
                logger.debug("NDJSON stream ended at blank line | path=%s | line=%d", path, line_number)
                return
            try:
                yield json.loads(line)
            except json.JSONDecodeError as exc:
                raise NDJSONStreamError(str(path), line_number, exc.msg) from exc
