"""Compact single-line JSON assembly.

Every key and value is written as a JSON string literal; no type is
inferred from the value. Pairs are joined in order, so a repeated key is
written as many times as it occurs.
"""

import json
from collections.abc import Iterable
from datetime import datetime, timezone


def encode_json_string(value) -> str:
    """Return ``str(value)`` as a quoted JSON string literal."""
    return json.dumps(str(value), ensure_ascii=False)


def format_timestamp(ts: datetime) -> str:
    """Format as ``YYYY-MM-DDThh:mm:ss.sssZ`` in UTC; naive input is taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def build_json_line(pairs: Iterable[tuple[str, str]]) -> str:
    body = ",".join(
        f"{encode_json_string(key)}:{encode_json_string(value)}"
        for key, value in pairs
    )
    return "{" + body + "}"
