"""Frontmatter model: the YAML block at the top of each content document."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

import yaml
from dateutil import parser as date_parser

from postpress.modules.errors import BuildError

# Fills in missing date parts so parsing never depends on today
DEFAULT_DATE = datetime.datetime(1970, 1, 1)


@dataclass
class Frontmatter:
    title: str = ""
    date: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    is_draft: bool = False

    @classmethod
    def from_yaml(cls, text: str, document: str = "") -> Frontmatter:
        """Parse a YAML block, raising ``BuildError`` for malformed content."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise BuildError(document, f"invalid YAML: {e}", field="frontmatter") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise BuildError(document, "expected a mapping", field="frontmatter")

        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise BuildError(document, "expected a list of strings", field="tags")

        is_draft = data.get("isDraft", data.get("is_draft"))
        if is_draft is None:
            is_draft = False
        if not isinstance(is_draft, bool):
            raise BuildError(document, "expected true or false", field="isDraft")

        return cls(
            title=_as_text(data.get("title")),
            date=_as_text(data.get("date")),
            description=_as_text(data.get("description")),
            tags=[str(t) for t in tags],
            is_draft=is_draft,
        )

    def require(self, document: str) -> None:
        """Check the mandatory fields are present."""
        if not self.title.strip():
            raise BuildError(document, "missing mandatory field", field="title")
        if not self.date.strip():
            raise BuildError(document, "missing mandatory field", field="date")


def _as_text(value) -> str:
    if value is None:
        return ""
    # YAML turns unquoted 2021-01-01 into a date object
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def parse_post_date(value: str, document: str = "") -> datetime.datetime:
    """Parse a frontmatter date into a naive UTC datetime.

    Any format python-dateutil understands is accepted ("2021-06-01",
    "June 1, 2021", "2021-06-01T10:00:00+02:00"). A date without a year falls
    in 1970, never the current year. Aware datetimes are converted to UTC and
    made naive so every post sorts on the same scale.
    """
    try:
        parsed = date_parser.parse(value, default=DEFAULT_DATE)
    except (ValueError, OverflowError) as e:
        raise BuildError(document, f"cannot parse date {value!r}", field="date") from e
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed
