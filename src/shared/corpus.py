"""Read published markdown documents from one or more content roots."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")
_SKIP_MARKERS = ("TEMPLATE", "README")


@dataclass(frozen=True)
class CorpusDocument:
    """A raw document as found on disk."""

    filename: str
    text: str
    source: str = ""
    path: Path | None = None

    @property
    def key(self) -> str:
        return document_key(self.filename)


def document_key(filename: str) -> str:
    """Logical key for a file: name without ``.md`` and without a date prefix.

    ``2025-01-14-astoria-guide.md`` → ``astoria-guide``
    """
    stem = filename[:-3] if filename.endswith(".md") else filename
    return _DATE_PREFIX_RE.sub("", stem)


def read_directory(directory: Path, source: str = "") -> list[CorpusDocument]:
    """Read every ``.md`` file in a directory (non-recursive), sorted by name.

    Template and README files are skipped. A missing directory yields an
    empty list.
    """
    if not directory.is_dir():
        logger.debug("Content root %s does not exist, skipping", directory)
        return []

    documents: list[CorpusDocument] = []
    for path in sorted(directory.glob("*.md")):
        if any(marker in path.name for marker in _SKIP_MARKERS):
            continue
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read %s, skipping", path, exc_info=True)
            continue
        documents.append(CorpusDocument(filename=path.name, text=text, source=source, path=path))
    return documents


def read_corpus(roots: list[tuple[str, Path]]) -> list[CorpusDocument]:
    """Read all roots in order. Root order is preserved; files sort by name within a root."""
    documents: list[CorpusDocument] = []
    for name, directory in roots:
        documents.extend(read_directory(directory, source=name))
    return documents


def parse_frontmatter(text: str) -> dict[str, str | list[str]]:
    """Extract YAML-style frontmatter from markdown text.

    Simple key-value parser -- handles scalar values and indented lists
    without requiring a YAML dependency. Surrounding quotes are stripped
    from scalar values.
    """
    if not text.startswith("---"):
        return {}

    parts = text.split("---", 2)
    if len(parts) < 3:
        return {}

    result: dict[str, str | list[str]] = {}
    current_key: str | None = None
    current_list: list[str] | None = None

    for line in parts[1].strip().splitlines():
        if line.startswith("  - ") and current_key is not None:
            if current_list is None:
                current_list = []
            current_list.append(_unquote(line.strip().removeprefix("- ")))
            continue

        if line.startswith(" "):
            # Continuation lines of nested list entries
            continue

        if current_list is not None and current_key is not None:
            result[current_key] = current_list
            current_list = None
            current_key = None

        if ":" in line:
            key, _, value = line.partition(":")
            key = key.strip()
            value = value.strip()
            if value:
                result[key] = _unquote(value)
                current_key = None
            else:
                current_key = key
                current_list = None

    if current_list is not None and current_key is not None:
        result[current_key] = current_list

    return result


def split_body(text: str) -> str:
    """Markdown body with any leading frontmatter removed."""
    if not text.startswith("---"):
        return text
    parts = text.split("---", 2)
    return parts[2].lstrip("\n") if len(parts) >= 3 else ""


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value
