"""Project configuration loaded from ``mediafeed.yml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = "mediafeed.yml"


class SiteConfig(BaseModel):
    """Public-facing site metadata used by syndication feeds."""

    title: str = Field(default="stupid.hair")
    description: str = Field(default="Sora creations by @goatspeed")
    base_url: str = Field(
        default="https://stupid.hair",
        description="Canonical site URL used for absolute links.",
    )
    language: str = Field(default="en")
    default_username: str = Field(
        default="goatspeed",
        description="Sora username recorded when scaffolding items without one.",
    )

    @field_validator("base_url")
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


class FeedConfig(BaseModel):
    """Options controlling syndication feed generation."""

    enabled: bool = Field(default=True, description="Toggle syndication feed generation.")
    limit: int = Field(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of entries to include per feed.",
    )


class ServerConfig(BaseModel):
    """Bind address and behaviour of the HTTP API."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000, ge=0, le=65535)
    allow_invalidate: bool = Field(
        default=False,
        description="Expose POST /api/revalidate to drop the cached index.",
    )


class Config(BaseModel):
    project_name: str = Field(default="stupid.hair")
    content_dir: Path = Field(default=Path("content/media"))
    public_dir: Path = Field(default=Path("public"))
    generated_dir: Path = Field(default=Path(".generated"))
    output_dir: Path = Field(default=Path("site"))
    site: SiteConfig = Field(default_factory=SiteConfig)
    feeds: FeedConfig = Field(default_factory=FeedConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("content_dir", "public_dir", "generated_dir", "output_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    ``path`` may point to a file or to a directory. A directory without a
    ``mediafeed.yml`` yields the defaults anchored at that directory.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    cfg = Config(**data)

    def _abs(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.content_dir = _abs(cfg.content_dir)
    cfg.public_dir = _abs(cfg.public_dir)
    cfg.generated_dir = _abs(cfg.generated_dir)
    cfg.output_dir = _abs(cfg.output_dir)
    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping.")
    return data
