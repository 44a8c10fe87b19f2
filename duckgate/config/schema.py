"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Base(BaseModel):
    """Base model accepting both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchConfig(Base):
    """DuckDuckGo HTML endpoint settings."""

    endpoint: str = "https://html.duckduckgo.com/html/"
    max_pages: int = Field(default=5, ge=1)
    timeout: float = 15.0
    user_agent: str = ""  # empty keeps the built-in browser profile


class CaptchaConfig(Base):
    """Puzzle compositing and loopback image server settings."""

    tile_size: int = Field(default=160, ge=32, le=512)
    image_ttl_seconds: int = Field(default=300, ge=1)
    host: str = "127.0.0.1"
    port: int = Field(default=0, ge=0, le=65535)
    overlay_path: str = ""


class FetchConfig(Base):
    """Page fetch tool settings."""

    timeout: float = 20.0
    max_chars: int = Field(default=50000, ge=100)
    allow_private_network: bool = False


class Config(Base):
    """Root configuration for duckgate."""

    search: SearchConfig = Field(default_factory=SearchConfig)
    captcha: CaptchaConfig = Field(default_factory=CaptchaConfig)
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    log_level: str = "INFO"
