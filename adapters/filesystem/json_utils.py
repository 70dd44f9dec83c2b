from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import orjson


def strip_line_comments(content: str) -> str:
    """Drop ``//`` comments that sit outside of JSON strings."""
    result_lines: list[str] = []
    for line in content.splitlines():
        in_string = False
        escaped = False
        cleaned: list[str] = []
        for idx, char in enumerate(line):
            if char == '"' and not escaped:
                in_string = not in_string
            if not in_string and char == "/" and line[idx + 1 : idx + 2] == "/":
                break
            cleaned.append(char)
            escaped = char == "\\" and not escaped
        result_lines.append("".join(cleaned))
    return "\n".join(result_lines)


def load_json(path: Path) -> dict[str, Any]:
    raw = path.read_bytes()
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError:
        data = orjson.loads(strip_line_comments(raw.decode("utf-8")))
    if not isinstance(data, dict):
        msg = f"Expected a JSON object in {path}"
        raise ValueError(msg)
    return data


def dump_json_bytes(payload: Any) -> bytes:
    try:
        return orjson.dumps(payload, option=orjson.OPT_INDENT_2)
    except TypeError:
        return json.dumps(payload, ensure_ascii=False, indent=2).encode("utf-8")


def write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_bytes(dump_json_bytes(payload))
    tmp_path.replace(path)
