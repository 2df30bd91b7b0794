"""Structured module content.

A module row carries two text columns. ``content_url`` holds
``{"url": ..., "links": [{"name", "url"}]}`` and ``content_path`` holds
``{"path": ..., "files": [{"name", "path"}]}``, both JSON encoded. Older
rows (and plain link modules) store a bare URL/path instead; a value that
is not a JSON object decodes to that single unnamed link.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class ResourceLink(BaseModel):
    name: Optional[str] = None
    url: str

    @field_validator("url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("url must not be blank")
        return v.strip()


class ResourceFile(BaseModel):
    name: str
    path: Optional[str] = None


class ModuleContent(BaseModel):
    primary_url: Optional[str] = None
    primary_path: Optional[str] = None
    resources: list[ResourceLink] = Field(default_factory=list)
    files: list[ResourceFile] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.primary_url or self.primary_path or self.resources or self.files)


def _load_object(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None or not raw.strip():
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def encode(content: ModuleContent) -> tuple[Optional[str], Optional[str]]:
    """Return ``(content_url, content_path)`` column values."""
    if content.is_empty:
        return None, None
    url_doc = {
        "url": content.primary_url or "",
        "links": [{"name": link.name or "", "url": link.url} for link in content.resources],
    }
    path_doc = {
        "path": content.primary_path or "",
        "files": [{"name": f.name, "path": f.path} for f in content.files],
    }
    return json.dumps(url_doc), json.dumps(path_doc)


def decode(content_url: Optional[str], content_path: Optional[str]) -> ModuleContent:
    primary_url: Optional[str] = None
    resources: list[ResourceLink] = []
    url_doc = _load_object(content_url)
    if url_doc is not None:
        primary_url = str(url_doc.get("url") or "").strip() or None
        for item in url_doc.get("links") or []:
            if isinstance(item, dict) and str(item.get("url") or "").strip():
                resources.append(ResourceLink(name=item.get("name") or None, url=str(item["url"]).strip()))
    elif content_url and content_url.strip():
        primary_url = content_url.strip()

    primary_path: Optional[str] = None
    files: list[ResourceFile] = []
    path_doc = _load_object(content_path)
    if path_doc is not None:
        primary_path = str(path_doc.get("path") or "").strip() or None
        for item in path_doc.get("files") or []:
            if isinstance(item, dict) and item.get("name"):
                files.append(ResourceFile(name=str(item["name"]), path=item.get("path")))
    elif content_path and content_path.strip():
        primary_path = content_path.strip()

    return ModuleContent(primary_url=primary_url, primary_path=primary_path, resources=resources, files=files)
