"""Auto-detect the serialization format of an OpenAPI document."""

import json

import yaml

JSON_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yaml", ".yml")


def detect_format(text: str, name: str = "") -> str:
    """Detect whether a document is JSON or YAML.

    The file name (or URL) suffix wins when it is conclusive; otherwise the
    content is sniffed. Returns: 'json' or 'yaml'.
    """
    lowered = name.lower().split("?", 1)[0]
    if lowered.endswith(JSON_SUFFIXES):
        return "json"
    if lowered.endswith(YAML_SUFFIXES):
        return "yaml"

    stripped = text.lstrip()
    if stripped.startswith(("{", "[")):
        try:
            json.loads(stripped)
            return "json"
        except (json.JSONDecodeError, ValueError):
            pass
    return "yaml"


def parse_text(text: str, fmt: str):
    """Parse ``text`` in the given format into a generic JSON-like tree."""
    if fmt == "json":
        return json.loads(text)
    return yaml.safe_load(text)
