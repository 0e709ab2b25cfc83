import json
import os
import tempfile
from typing import Any


def read_json(path: str) -> Any:
    """
    Read a JSON document. Raises FileNotFoundError or ValueError
    (json.JSONDecodeError) so callers can decide how to recover.
    """
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json_atomic(path: str, data: Any) -> None:
    """
    Write through a temporary file in the same directory and swap it in,
    so readers never observe a half-written document.
    """
    dir_name = os.path.dirname(path) or "."
    os.makedirs(dir_name, exist_ok=True)
    with tempfile.NamedTemporaryFile('w', dir=dir_name, delete=False, encoding='utf-8') as tmp_file:
        json.dump(data, tmp_file, indent=2, ensure_ascii=False)
        tmp_name = tmp_file.name

    os.replace(tmp_name, path)
