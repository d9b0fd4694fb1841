"""Content scaffolding: create a new post folder and register it."""

from __future__ import annotations

import datetime
from pathlib import Path
from typing import Any

import yaml

from postpress.modules.config import CONFIG_FILE, RESERVED_FOLDERS, load_yaml, save_yaml
from postpress.modules.errors import BuildError
from postpress.modules.text import slugify_tag

CONTENT_FILE = "content.md"


def post_skeleton(front_matter: dict[str, Any], body: str) -> str:
    """Text of a new content file: the YAML block between --- lines, then the body."""
    block = yaml.safe_dump(front_matter, sort_keys=False, allow_unicode=True)
    return f"---\n{block}---\n\n{body}"


def new_post(title: str, config_path=CONFIG_FILE, today=None) -> Path:
    """Create ``<slug>/content.md`` and append the folder to the config.

    Returns the path of the new content file. An existing folder is refused
    so earlier work is never overwritten.
    """
    config_path = Path(config_path)
    if not title.strip():
        raise BuildError(str(config_path), "post title cannot be empty", field="title")

    folder = slugify_tag(title, separator="_")
    post_dir = config_path.parent / folder
    if folder in RESERVED_FOLDERS:
        raise BuildError(folder, "reserved folder name", field="title")
    if post_dir.exists():
        raise BuildError(folder, "folder already exists")

    today = today or datetime.date.today()
    front_matter = {
        "title": title,
        "date": today.strftime("%Y-%m-%d"),
        "description": "",
        "tags": [],
    }
    content_path = post_dir / CONTENT_FILE
    post_dir.mkdir(parents=True)
    content_path.write_text(post_skeleton(front_matter, "content here\n"), encoding="utf-8")

    config = load_yaml(config_path)
    config["content"] = list(config.get("content") or []) + [folder]
    save_yaml(config_path, config)

    print(f"[INFO] Created {content_path}")
    return content_path
