"""Process configuration, read once from the environment at startup."""

import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from agent_site_builder.errors import ConfigError
from agent_site_builder.llm import DEFAULT_MODEL

ENV_VARS = {
    "neuralseek_api_url": "NEURALSEEK_API_URL",
    "neuralseek_api_key": "NEURALSEEK_API_KEY",
    "neuralseek_timeout": "NEURALSEEK_TIMEOUT",
    "llm_model": "SITE_BUILDER_MODEL",
    "llm_api_key": "OPENAI_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_KEY",
    "vercel_token": "VERCEL_TOKEN",
    "deploy_timeout": "VERCEL_TIMEOUT",
    "output_dir": "SITE_BUILDER_OUTPUT_DIR",
    "field_depth": "SITE_BUILDER_FIELD_DEPTH",
    "field_heuristics": "SITE_BUILDER_FIELD_HEURISTICS",
}

FULL_DEPTH = "full"


class Settings(BaseModel):
    """Immutable settings shared by every stage of the pipeline."""

    model_config = ConfigDict(frozen=True)

    neuralseek_api_url: str | None = None
    neuralseek_api_key: str | None = None
    neuralseek_timeout: float = 30.0
    llm_model: str = DEFAULT_MODEL
    llm_api_key: str | None = None
    supabase_url: str | None = None
    supabase_key: str | None = None
    vercel_token: str | None = None
    deploy_timeout: float = 300.0
    output_dir: Path = Path(tempfile.gettempdir())
    field_depth: int | None = 0  # None expands nested objects fully
    field_heuristics: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables; unset or blank ones keep their defaults."""
        environ = os.environ if environ is None else environ
        values: dict = {}
        for field_name, var in ENV_VARS.items():
            raw = environ.get(var, "").strip()
            if not raw:
                continue
            if field_name == "field_depth" and raw.lower() == FULL_DEPTH:
                values[field_name] = None
            else:
                values[field_name] = raw
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def require(self, name: str) -> str:
        """Return a setting that the calling stage cannot run without."""
        value = getattr(self, name)
        if not value:
            raise ConfigError(f"{ENV_VARS.get(name, name)} environment variable is required")
        return value
