"""Line-oriented incremental reads of a single append-only file."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from filesource.errors import SourceReadError
from filesource.utils.logging import debug_event, get_logger

logger = get_logger("filesource.tailer")


@dataclass(slots=True)
class TailCursor:
    path: str
    line_count: int
    byte_offset: int
    inode: int
    last_line_start: int = 0
    last_line_digest: str = ""


class FileTailer:
    """Return the complete lines appended after a given line position.

    The first call for a path scans from the start of the file and skips
    ``position`` lines. Later calls seek to the byte offset remembered from
    the previous read, as long as the file is the same inode, has not
    shrunk, and still holds the same last line just before that offset.
    The cursor lives only in memory; the line position handed in by the
    caller remains the checkpoint.
    """

    def __init__(self) -> None:
        self._cursor: TailCursor | None = None

    @property
    def cursor(self) -> TailCursor | None:
        return self._cursor

    def read_from(self, path: str | Path, position: int) -> list[str]:
        if position < 0:
            raise ValueError(f"position must be non-negative, got {position}")

        file_path = Path(path)
        try:
            with file_path.open("rb") as fh:
                stat = os.fstat(fh.fileno())
                inode = int(getattr(stat, "st_ino", 0))
                start = self._resume_point(fh, str(file_path), position, inode, int(stat.st_size))
                fh.seek(start.byte_offset)
                lines, cursor = _scan_lines(fh, start, position=position)
        except OSError as exc:
            raise SourceReadError(f"Failed to read {file_path}: {exc}") from exc

        self._cursor = cursor
        debug_event(
            logger,
            "file_read",
            path=str(file_path),
            position=position,
            resumed_at_line=start.line_count,
            lines_in_file=cursor.line_count,
            new_lines=len(lines),
        )
        return lines

    def _resume_point(
        self,
        fh: BinaryIO,
        path: str,
        position: int,
        inode: int,
        size: int,
    ) -> TailCursor:
        rescan = TailCursor(path=path, line_count=0, byte_offset=0, inode=inode)
        cp = self._cursor
        if (
            cp is None
            or cp.path != path
            or cp.inode != inode
            or cp.line_count > position
            or cp.byte_offset > size
        ):
            return rescan
        if cp.byte_offset == 0:
            return cp
        # A file rewritten in place keeps its inode; the line that ended at the
        # cursor must still be there byte for byte.
        fh.seek(cp.last_line_start)
        previous = fh.read(cp.byte_offset - cp.last_line_start)
        if not previous.endswith(b"\n") or _digest(previous) != cp.last_line_digest:
            return rescan
        return cp


def _scan_lines(
    fh: BinaryIO,
    start: TailCursor,
    *,
    position: int,
) -> tuple[list[str], TailCursor]:
    lines: list[str] = []
    line_count = start.line_count
    byte_offset = start.byte_offset
    last_line_start = start.last_line_start
    last_line_digest = start.last_line_digest
    while True:
        raw_line = fh.readline()
        # An unterminated tail is still being written; leave it for a later read.
        if not raw_line or not raw_line.endswith(b"\n"):
            break
        last_line_start = byte_offset
        last_line_digest = _digest(raw_line)
        byte_offset += len(raw_line)
        line_count += 1
        if line_count > position:
            lines.append(_decode_line(raw_line))
    cursor = TailCursor(
        path=start.path,
        line_count=line_count,
        byte_offset=byte_offset,
        inode=start.inode,
        last_line_start=last_line_start,
        last_line_digest=last_line_digest,
    )
    return lines, cursor


def _digest(raw_line: bytes) -> str:
    return hashlib.sha256(raw_line).hexdigest()


def _decode_line(raw_line: bytes) -> str:
    body = raw_line[:-1]
    if body.endswith(b"\r"):
        body = body[:-1]
    return body.decode("utf-8", errors="replace")
