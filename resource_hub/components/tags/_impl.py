"""
TagAggregator - Incremental facet index.

Collects every tag seen on fetched pages into one sorted list for the
tag filter. Pure data structure, no I/O, never errors.

Key behaviors:
- absorb() only ever grows the set
- snapshot() sorts case-insensitively, raw value as tie-break
- reset() starts a new filter lineage
"""

from __future__ import annotations

from collections.abc import Iterable

from resource_hub.domain.entities import Record


def tag_sort_key(tag: str) -> tuple[str, str]:
    return (tag.casefold(), tag)


class TagAggregator:
    def __init__(self) -> None:
        self._tags: set[str] = set()
        self._sorted: list[str] = []

    def absorb(self, records: Iterable[Record]) -> None:
        before = len(self._tags)
        for record in records:
            for tag in record.tags:
                if tag:
                    self._tags.add(tag)
        if len(self._tags) != before:
            self._sorted = sorted(self._tags, key=tag_sort_key)

    def snapshot(self) -> list[str]:
        return list(self._sorted)

    def reset(self) -> None:
        self._tags.clear()
        self._sorted = []

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags
