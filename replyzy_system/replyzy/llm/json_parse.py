import json
import re
from typing import Any

def _strip_code_fences(s: str) -> str:
    s = s.strip()
    # remove ```json ... ``` or ``` ... ```
    if s.startswith("```"):
        s = re.sub(r"^```[a-zA-Z0-9]*\s*", "", s)
        s = re.sub(r"\s*```$", "", s)
    return s.strip()


def _strip_think_tags(s: str) -> str:
    # reasoning models may prepend <think>...</think>
    return re.sub(r"<think>.*?</think>", "", s, flags=re.DOTALL).strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Extract the first JSON object from model text and parse it.
    Trailing text after the object (prose, stray braces) is ignored.
    Raises ValueError when no object can be recovered.
    """
    candidate = _strip_code_fences(_strip_think_tags(text or ""))
    if not candidate.startswith("{"):
        start = candidate.find("{")
        if start == -1:
            raise ValueError("No JSON object found in text")
        candidate = candidate[start:].strip()
    parsed, _ = json.JSONDecoder().raw_decode(candidate)
    if not isinstance(parsed, dict):
        raise ValueError(f"JSON is not an object (got {type(parsed).__name__})")
    return parsed
