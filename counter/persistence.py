"""JSON snapshot file for the window store.

Format: a JSON array, oldest arrival first, of

    {"requested_at": <int ns since epoch>, "remote_address": "<str>"}

Timestamps are integer nanoseconds so they survive the round trip without
float precision loss.  The file is written owner read/write only.
"""

import json
import os
import tempfile
from pathlib import Path

from counter.record import Record


class PersistenceError(Exception):
    """Snapshot could not be encoded or written."""


def encode_records(records: list[Record]) -> str:
    return json.dumps([
        {"requested_at": r.occurred_at, "remote_address": r.origin}
        for r in records
    ])


def decode_records(text: str) -> list[Record]:
    """Parse a snapshot document.  Raises ValueError on anything malformed.

    All or nothing: one bad entry rejects the whole document.
    """
    data = json.loads(text)  # JSONDecodeError is a ValueError
    if not isinstance(data, list):
        raise ValueError(f"snapshot must be a JSON array, got {type(data).__name__}")

    records = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"entry {i}: expected an object")
        requested_at = item.get("requested_at")
        remote_address = item.get("remote_address")
        # bool is an int subclass; true/false is not a timestamp
        if not isinstance(requested_at, int) or isinstance(requested_at, bool):
            raise ValueError(f"entry {i}: 'requested_at' must be an integer")
        if not isinstance(remote_address, str):
            raise ValueError(f"entry {i}: 'remote_address' must be a string")
        records.append(Record(occurred_at=requested_at, origin=remote_address))
    return records


def read_records(path: str | Path) -> list[Record]:
    """Load a snapshot file.

    Raises FileNotFoundError when there is no snapshot yet, OSError when it
    can't be read, ValueError when it can't be parsed.
    """
    with open(path, encoding="utf-8") as f:
        text = f.read()
    return decode_records(text)


def write_records(path: str | Path, records: list[Record]) -> None:
    """Write a snapshot, replacing any previous one.

    Goes through a temp file in the same directory and os.replace(), so a
    crash mid-write leaves the old snapshot intact.  mkstemp creates the
    temp file 0600, which the final file inherits.
    """
    path = Path(path)
    try:
        payload = encode_records(records)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Cannot encode snapshot: {e}") from e

    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise PersistenceError(f"Cannot write file {path}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
