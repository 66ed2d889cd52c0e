"""
Delimited record streams for dic.

`RecordReader` decodes one CSV record at a time from a file or stdin and
`RecordWriter` encodes records to stdout, flushing after each one so partial
progress survives a crash of the rest of the run. Both translate I/O and
decoding failures into the fatal `StreamError` subclasses.
"""

from __future__ import annotations

import csv
import sys
from contextlib import contextmanager
from typing import Generator, Iterator, Optional, TextIO

from dic.domain.models import Record
from dic.errors import InputStreamError, OutputStreamError

STDIN_SENTINEL = "-"


@contextmanager
def open_input(path: str) -> Generator[TextIO, None, None]:
    """
    Open `path` for reading, or yield stdin when `path` is "-".

    Stdin is never closed; files are closed on exit.
    """
    if path == STDIN_SENTINEL:
        yield sys.stdin
        return
    try:
        stream = open(path, "r", newline="", encoding="utf-8")
    except OSError as exc:
        raise InputStreamError(f"unable to open csv input reader: {exc}") from exc
    try:
        yield stream
    finally:
        stream.close()


class RecordReader:
    """Sequential CSV decoder; `read()` returns None at end of stream."""

    def __init__(self, stream: TextIO, delimiter: str = ",") -> None:
        self._rows: Iterator[list[str]] = csv.reader(stream, delimiter=delimiter)
        self.records_read = 0

    def read(self) -> Optional[Record]:
        try:
            record = next(self._rows)
        except StopIteration:
            return None
        except (csv.Error, OSError, ValueError) as exc:
            raise InputStreamError(
                f"unable to read input after record {self.records_read}: {exc}"
            ) from exc
        self.records_read += 1
        return record


class RecordWriter:
    """CSV encoder that flushes after every record."""

    def __init__(self, stream: Optional[TextIO] = None, delimiter: str = ",") -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._writer = csv.writer(self._stream, delimiter=delimiter, lineterminator="\n")
        self.records_written = 0

    def write(self, record: Record) -> None:
        try:
            self._writer.writerow(record)
            self._stream.flush()
        except (csv.Error, OSError, ValueError) as exc:
            raise OutputStreamError(f"unable to write record to stdout: {exc}") from exc
        self.records_written += 1


__all__ = ["STDIN_SENTINEL", "open_input", "RecordReader", "RecordWriter"]
