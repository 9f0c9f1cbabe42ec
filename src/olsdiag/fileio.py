"""
Atomic file-write utilities.

Report outputs are written to a temporary file in the destination
directory and moved into place with ``os.replace()``, so an interrupted
save never leaves a truncated table, figure or report behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from typing import Any

import pandas as pd


def _atomic_write(path: str | os.PathLike, write, binary: bool = False) -> None:
    path = str(path)
    dir_path = os.path.dirname(path) or "."
    tmp_path: str | None = None
    open_kwargs = {"mode": "wb"} if binary else {"mode": "w", "newline": ""}
    try:
        with tempfile.NamedTemporaryFile(
            dir=dir_path, suffix=".tmp", delete=False, **open_kwargs
        ) as tmp:
            tmp_path = tmp.name
            write(tmp)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def atomic_write_json(path: str | os.PathLike, data: Any, *, indent: int = 2) -> None:
    """Write *data* as JSON atomically via temp-file + rename.

    Parameters
    ----------
    path:
        Destination file path.
    data:
        JSON-serializable object.
    indent:
        JSON indentation (default 2).
    """
    _atomic_write(path, lambda fh: json.dump(data, fh, indent=indent))


def atomic_write_text(path: str | os.PathLike, content: str) -> None:
    """Write *content* as text atomically via temp-file + rename."""
    _atomic_write(path, lambda fh: fh.write(content))


def atomic_write_csv(path: str | os.PathLike, table: pd.DataFrame, *, index: bool = True) -> None:
    """Write a DataFrame as CSV atomically via temp-file + rename."""
    _atomic_write(path, lambda fh: table.to_csv(fh, index=index))


def atomic_write_bytes(path: str | os.PathLike, content: bytes) -> None:
    """Write raw *content* (e.g. a rendered image) atomically via temp-file + rename."""
    _atomic_write(path, lambda fh: fh.write(content), binary=True)
