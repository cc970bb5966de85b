import json
import re
from typing import Optional


def extract_json(text: str) -> Optional[dict]:
    """
    Parse a JSON object from model output.
    Handles cases where the model wraps JSON in markdown code blocks or adds
    prose around it. Returns None if no object can be recovered.
    """
    if not text:
        return None

    # Try direct parse first
    try:
        data = json.loads(text.strip())
        return data if isinstance(data, dict) else None
    except json.JSONDecodeError:
        pass

    # Try extracting JSON from markdown code block
    match = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, re.DOTALL)
    if match:
        try:
            data = json.loads(match.group(1))
            return data if isinstance(data, dict) else None
        except json.JSONDecodeError:
            pass

    # Try the outermost { ... } in the text
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        try:
            data = json.loads(text[start:end + 1])
            return data if isinstance(data, dict) else None
        except json.JSONDecodeError:
            pass

    return None
