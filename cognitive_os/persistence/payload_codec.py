import json
from typing import Any


def encode_payload(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def decode_payload(value: str) -> Any:
    return json.loads(value)
