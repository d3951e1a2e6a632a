"""Read OpenAPI documents from disk or over HTTP, and write them back out."""

import json
from pathlib import Path
from typing import Any

import requests
import yaml

from oas_normalizer.errors import LoadError
from oas_normalizer.loader.detect import detect_format, parse_text

DEFAULT_TIMEOUT = 30.0


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_document(source: str | Path, timeout: float = DEFAULT_TIMEOUT) -> dict:
    """Load an OpenAPI document from a local path or an http(s) URL."""
    source = str(source)
    text = _fetch(source, timeout) if is_url(source) else _read(source)
    fmt = detect_format(text, source)
    try:
        data = parse_text(text, fmt)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError(f"cannot parse document as {fmt}: {e}", source) from e
    if not isinstance(data, dict):
        raise LoadError("document root is not a mapping", source)
    return data


def _fetch(url: str, timeout: float) -> str:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise LoadError(f"download failed: {e}", url) from e
    return response.text


def _read(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(f"cannot read file: {e}", path) from e


def dump_text(document: Any, fmt: str = "json") -> str:
    if fmt == "yaml":
        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False, default=str) + "\n"


def write_document(document: Any, path: Path, fmt: str = "json") -> Path:
    """Write ``document`` to ``path``, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_text(document, fmt), encoding="utf-8")
    return path
