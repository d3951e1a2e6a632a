"""Runtime configuration.

Defaults live on the model; environment variables prefixed with
``OAS_NORMALIZER_`` override them, and CLI options override both.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

ENV_PREFIX = "OAS_NORMALIZER_"

DEFAULT_ENUM_STRIPPED_KEYWORDS = ["minLength", "maxLength", "pattern", "format"]

DEFAULT_MAX_DEPTH = 128


class NormalizerConfig(BaseModel):
    """Settings for one normalization run."""

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    max_identifier_suffix: int = Field(default=100_000, ge=2)
    separator: str = "_"
    enum_stripped_keywords: list[str] = DEFAULT_ENUM_STRIPPED_KEYWORDS
    fetch_timeout: float = Field(default=30.0, gt=0)
    debug_dir: Path | None = None

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "NormalizerConfig":
        """Build a config from ``OAS_NORMALIZER_*`` variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            if name == "enum_stripped_keywords":
                values[name] = [k.strip() for k in raw.split(",") if k.strip()]
            else:
                values[name] = raw
        return cls(**values)
