"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSITE_"


class Settings(BaseModel):
    app_name:       str = "mdsite"
    content_dir:    str = Field(default="_posts",     description="Directory of markdown sources")
    output_dir:     str = Field(default="_site",      description="Directory for rendered HTML + JSON files")
    parser_config:  str = Field(default="commonmark", description="MarkdownIt preset name for inline rendering")
    default_layout: Optional[str] = Field(default=None, description="Layout used when front matter names none")
    layouts:        Optional[list[str]] = Field(default=None, description="Known layout registry; None disables validation")
    workers:        int = Field(default=1, ge=1, description="Documents rendered concurrently")
    verbose:        bool = Field(default=False, description="DEBUG-level logging")
    log_json:       bool = Field(default=False, description="JSON lines logging instead of console output")

    @field_validator("layouts", mode="before")
    @classmethod
    def _split_layouts(cls, value: Any) -> Any:
        """Accept a comma-separated string (env var or YAML scalar) as the registry."""
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSITE_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
