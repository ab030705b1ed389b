#!/usr/bin/env python3
"""
VBOXTREE FLAT MAP
-----------------
The single-level key/value record produced from one machine-readable dump.
It is the source of truth for every structure derived downstream (snapshot
tree, NICs, shares, state) and is read-only once built.

Author: VBoxTree Team
Date: 2026-10-19
"""

from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional


class FlatMap(Mapping):
    """
    Read-only str -> str mapping plus the lines the decoder could not parse.
    """

    def __init__(self, entries: Optional[Dict[str, str]] = None,
                 unparsed: Optional[List[str]] = None):
        self._entries: Dict[str, str] = dict(entries or {})
        self._unparsed: List[str] = list(unparsed or [])

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"FlatMap({len(self._entries)} keys, {len(self._unparsed)} unparsed)"

    @property
    def unparsed(self) -> List[str]:
        """Lines that matched no quoting convention, in input order."""
        return list(self._unparsed)

    @property
    def unparsed_count(self) -> int:
        return len(self._unparsed)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)
