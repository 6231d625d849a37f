# ============================================
# file: src/siteinfo/model.py
# ============================================
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from siteinfo.managers.config_manager import config_manager


class LoaderSettings(BaseModel):
    timeout: float = Field(default=10.0, gt=0)
    max_redirects: int = Field(default=10, ge=0)
    max_body_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    user_agent: Optional[str] = None

    @classmethod
    def from_config(cls, **overrides) -> "LoaderSettings":
        """Builds settings from the 'session' section of settings.json; explicit overrides win."""
        values = {
            "timeout": config_manager.get_nested("session.time_out", 10.0),
            "max_redirects": config_manager.get_nested("session.max_redirects", 10),
            "max_body_bytes": config_manager.get_nested("session.max_body_bytes", 5 * 1024 * 1024),
            "user_agent": config_manager.get_nested("session.user_agent"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    final_url: Optional[str] = None
    status_code: Optional[int] = None
    content: bytes = b""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FieldQuery(BaseModel):
    """Find the first <tag> whose match_attr equals match_value and return its result_attr."""
    model_config = ConfigDict(frozen=True)

    tag: str
    match_attr: str
    match_value: str
    result_attr: str


class SiteMetadata(BaseModel):
    url: str
    title: str = ""
    description: str = ""
    keywords: str = ""
    icon: str = ""
    image: str = ""
    error: Optional[str] = None

    @field_validator("title", "description", "keywords", "icon", "image", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v
