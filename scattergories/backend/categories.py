"""Category pool loading and the reference answer guide."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_CATEGORY_FILE = Path(__file__).with_name("categories.json")


@dataclass(frozen=True)
class CategoryEntry:
    name: str
    group: str
    examples: tuple[str, ...]


@dataclass(frozen=True)
class CategoryPool:
    entries: tuple[CategoryEntry, ...]

    @property
    def names(self) -> list[str]:
        return [entry.name for entry in self.entries]

    def example_answers(self, category: str, letter: str | None = None) -> list[str]:
        """Return the reference answers for ``category``.

        With ``letter`` set, only answers starting with it (case-insensitive)
        are returned. Unknown categories yield an empty list.
        """
        for entry in self.entries:
            if entry.name != category:
                continue
            if not letter:
                return list(entry.examples)
            prefix = letter.casefold()
            return [answer for answer in entry.examples if answer.casefold().startswith(prefix)]
        return []


def load_category_pool(path: str | Path | None = None) -> CategoryPool:
    source = Path(path) if path is not None else DEFAULT_CATEGORY_FILE
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"cannot read category pool from {source}: {exc}") from exc

    entries: list[CategoryEntry] = []
    seen: set[str] = set()
    for raw in payload.get("categories", []):
        name = str(raw.get("name", "")).strip()
        if name == "" or name in seen:
            continue
        seen.add(name)
        entries.append(
            CategoryEntry(
                name=name,
                group=str(raw.get("group", "")),
                examples=tuple(str(example) for example in raw.get("examples", [])),
            )
        )
    return CategoryPool(entries=tuple(entries))
