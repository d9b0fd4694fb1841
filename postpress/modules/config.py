"""Site configuration: loading and updating ``site_config.yaml``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from postpress.modules.errors import BuildError

CONFIG_FILE = "site_config.yaml"
DEFAULT_TARGET = "dist"
RESERVED_FOLDERS = {"tags"}


@dataclass
class SiteConfig:
    title: str
    description: str
    url: str
    content: list[str] = field(default_factory=list)
    target: str = DEFAULT_TARGET
    repo: str = ""
    discussion_url: Optional[str] = None
    logo: Optional[str] = None
    google_analytics_id: str = ""
    root: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path = Path("."), source: str = CONFIG_FILE) -> SiteConfig:
        for key in ("title", "description", "url"):
            if not data.get(key):
                raise BuildError(source, "missing mandatory setting", field=key)

        content = data.get("content")
        if content is None:
            raise BuildError(source, "missing mandatory setting", field="content")
        if not isinstance(content, list):
            raise BuildError(source, "content needs to be a list of folders", field="content")
        content = [str(c) for c in content]
        for folder in content:
            if folder in RESERVED_FOLDERS:
                raise BuildError(source, f"a content folder cannot be named '{folder}'", field="content")

        discussion_url = data.get("discussion_url")
        if discussion_url is not None and not isinstance(discussion_url, str):
            raise BuildError(source, "discussion url has to be a string", field="discussion_url")

        # A logo that does not exist on disk is ignored rather than fatal
        logo = data.get("logo")
        if logo and not (root / str(logo)).exists():
            print(f"[WARNING] Logo '{logo}' not found, building without one")
            logo = None

        return cls(
            title=str(data["title"]),
            description=str(data["description"]),
            url=str(data["url"]).rstrip("/"),
            content=content,
            target=str(data.get("target") or DEFAULT_TARGET),
            repo=str(data.get("repo") or ""),
            discussion_url=discussion_url,
            logo=str(logo) if logo else None,
            google_analytics_id=str(data.get("google_analytics_id") or ""),
            root=root,
        )


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise BuildError(str(path), "configuration file not found") from e
    except yaml.YAMLError as e:
        raise BuildError(str(path), f"invalid YAML: {e}") from e
    return data if isinstance(data, dict) else {}


def save_yaml(path: Path, data: dict[str, Any]) -> None:
    """Rewrite a YAML file, keeping key order so hand edits survive."""
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    Path(path).write_text(text, encoding="utf-8")


def load_site_config(path=CONFIG_FILE) -> SiteConfig:
    """Load the site configuration; relative paths resolve against its folder."""
    path = Path(path)
    return SiteConfig.from_dict(load_yaml(path), root=path.parent, source=str(path))
