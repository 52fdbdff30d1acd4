"""
Utility helpers: flush ids, JSON rendering for log lines, NDJSON input.
"""

import gzip
import io
import json
import sys
import uuid
from typing import Any, Dict, Iterator


def generate_flush_id() -> str:
    """Generate a UUID string identifying one receive/flush cycle."""
    return str(uuid.uuid4())


def to_json(obj: Any) -> str:
    """Compact JSON for log lines; non-JSON values fall back to str()."""
    return json.dumps(obj, default=str, separators=(",", ":"))


def iter_ndjson(path: str) -> Iterator[Dict[str, Any]]:
    """Yield JSON objects from an NDJSON file, '-' for stdin, .gz supported.

    Blank lines are skipped. Lines that are not JSON objects raise ValueError.
    """
    if path == "-":
        stream = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8")
        close = False
    elif path.endswith(".gz"):
        stream = gzip.open(path, "rt", encoding="utf-8")
        close = True
    else:
        stream = open(path, "r", encoding="utf-8")
        close = True

    try:
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line:
                continue
            obj = json.loads(line)
            if not isinstance(obj, dict):
                raise ValueError(f"line {lineno}: expected a JSON object")
            yield obj
    finally:
        if close:
            stream.close()
