"""Image probing, thumbnail sizing and the file effects declared while rendering.

Rendering a document never touches the output tree directly. Image nodes
append ``CopyFile`` and ``WriteThumbnail`` effects to the render context and
the build applies them with ``apply_effects`` once the document is rendered.
"""

from __future__ import annotations

import posixpath
import shutil
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from postpress.modules.errors import BuildError

MAX_WIDTH = 768
MAX_HEIGHT = 400


@dataclass(frozen=True)
class CopyFile:
    source: str
    destination: str


@dataclass(frozen=True)
class WriteThumbnail:
    source: str
    destination: str
    size: tuple[int, int]


class PillowImages:
    """Reads image dimensions from files under a content root."""

    def __init__(self, root="."):
        self.root = Path(root)

    def size(self, path: str) -> tuple[int, int]:
        # Decode fully so truncated or corrupt files fail here, not later
        with Image.open(self.root / path) as img:
            img.load()
            return img.size


def fit_within(width: int, height: int, max_width: int = MAX_WIDTH, max_height: int = MAX_HEIGHT):
    """Scale (width, height) down to fit the box, keeping the aspect ratio.

    Returns None when the image already fits. Integer arithmetic keeps the
    result exact: 1000x300 becomes 768x230.
    """
    if width <= max_width and height <= max_height:
        return None
    if max_width * height <= max_height * width:
        return max_width, max(1, height * max_width // width)
    return max(1, width * max_height // height), max_height


def squareness(width: int, height: int) -> float:
    return abs(width / height - 1.0)


def thumbnail_name(url: str) -> str:
    """Return the thumbnail path for an image, next to the original."""
    head, tail = posixpath.split(url)
    return posixpath.join(head, f"thumb_{tail}") if head else f"thumb_{tail}"


def apply_effects(effects, content_root, target_root, document=""):
    """Carry out the declared copies and thumbnail writes."""
    content_root = Path(content_root)
    target_root = Path(target_root)
    for effect in effects:
        source = content_root / effect.source
        destination = target_root / effect.destination
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(effect, WriteThumbnail):
                with Image.open(source) as img:
                    thumb = img.resize(effect.size, Image.Resampling.LANCZOS)
                    thumb.save(destination)
            elif isinstance(effect, CopyFile):
                shutil.copyfile(source, destination)
            else:
                raise TypeError(f"Unknown file effect: {effect!r}")
        except OSError as e:
            raise BuildError(document, f"cannot write {effect.destination}: {e}") from e
