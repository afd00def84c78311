# app/uploads.py
"""Scoped temp storage for uploaded feed files."""
import os
import tempfile
from contextlib import contextmanager
from typing import BinaryIO

CHUNK_SIZE = 1024 * 1024


class UploadTooLarge(Exception):
    def __init__(self, limit: int):
        super().__init__(f"upload exceeds {limit} bytes")
        self.limit = limit


@contextmanager
def stored_upload(source: BinaryIO, upload_dir: str, max_bytes: int):
    """Copy `source` into a temp file and yield its path.

    The file is removed when the block exits, whatever the outcome.
    Raises `UploadTooLarge` as soon as more than `max_bytes` are read.
    """
    os.makedirs(upload_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(suffix=".xml", dir=upload_dir)
    try:
        size = 0
        with os.fdopen(fd, "wb") as out:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_bytes:
                    raise UploadTooLarge(max_bytes)
                out.write(chunk)
        yield path
    finally:
        if os.path.exists(path):
            os.unlink(path)
