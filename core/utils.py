import json
import logging
import os
import re

logger = logging.getLogger(__name__)


def int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    try:
        return int(value) if value else default
    except (TypeError, ValueError):
        return default


def float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    try:
        return float(value) if value else default
    except (TypeError, ValueError):
        return default


def extract_int(value):
    """
    Turn LLM values such as '120%' or '18 months' into an int.
    Anything without a number is returned untouched so validation can reject it.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return int(round(value))
    if isinstance(value, str):
        match = re.search(r"-?\d+(?:\.\d+)?", value.replace(",", ""))
        if match:
            return int(round(float(match.group(0))))
    return value


def extract_number(value):
    """
    Amounts like '$12,500' or '12.5k' become floats. Anything without a number
    is returned untouched so validation can reject it.
    """
    if isinstance(value, bool) or not isinstance(value, str):
        return value
    text = value.strip().replace(",", "").replace("$", "")
    match = re.fullmatch(r"(-?\d+(?:\.\d+)?)\s*([kKmM]?)", text)
    if not match:
        return value
    number = float(match.group(1))
    suffix = match.group(2).lower()
    if suffix == "k":
        number *= 1_000
    elif suffix == "m":
        number *= 1_000_000
    return number


def _repair(text: str) -> str:
    text = re.sub(r",\s*([\]}])", r"\1", text)  # trailing commas
    text = text.replace("\n", " ").replace("\t", " ")

    # objects or arrays glued together without a comma
    text = re.sub(r"\}\s*\{", "}, {", text)
    text = re.sub(r"\]\s*\[", "], [", text)

    # missing comma between consecutive key/value pairs: ..."foo":1 "bar":2
    text = re.sub(r'([}\]"0-9])\s+"([a-zA-Z0-9_]+)"\s*:', r'\1, "\2":', text)
    return text


def safe_json_loads(raw: str):
    """
    Parse JSON returned by an LLM.
    - Valid JSON is returned as-is
    - Otherwise the first {...} or [...] block is extracted
    - Common glitches (trailing commas, missing commas, code fences) are repaired
    Raises ValueError when nothing parseable is found.
    """
    if not raw or not raw.strip():
        raise ValueError("Empty response from model.")

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        pass

    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1:
        start = raw.find("[")
        end = raw.rfind("]")
    if start == -1 or end == -1 or end < start:
        raise ValueError("No JSON structure found in response.")

    text = raw[start:end + 1]
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    text = _repair(text)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # strip non printable characters and try one last time
        text = re.sub(r"[^\x20-\x7E]+", "", text)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("JSON parse failed, raw text snippet: %s", raw[:400])
        raise ValueError(f"Unable to parse JSON after cleanup attempts: {e}") from e
