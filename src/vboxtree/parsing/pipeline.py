#!/usr/bin/env python3
"""
VBOXTREE PIPELINE - Flat Map Builder
------------------------------------
Feeds every line from the lexer through the key/value decoder and collects
the pairs into a FlatMap. Undecodable lines are kept for diagnostics.

Duplicate keys overwrite silently (last write wins). VBoxManage re-emits a
key under rare conditions and the parse stays permissive about it.

Author: VBoxTree Team
Date: 2026-10-19
"""

import logging
from typing import Union

from vboxtree.parsing.context import FlatMap
from vboxtree.parsing.lexer import KeyValueLexer

logger = logging.getLogger("vboxtree.pipeline")


class FlatMapBuilder:
    """
    The Orchestrator for phase one: raw text in, FlatMap out.
    """

    def __init__(self, lexer: KeyValueLexer = None):
        self.lexer = lexer or KeyValueLexer()

    def build(self, text: Union[bytes, bytearray, str]) -> FlatMap:
        """
        Raises:
            EncodingError: text is bytes and not valid UTF-8.
        """
        entries = {}
        unparsed = []

        for line in self.lexer.split_lines(text):
            pair = self.lexer.decode_line(line)
            if pair is None:
                logger.debug(f"Ignored line: {line}")
                unparsed.append(line)
                continue

            key, value = pair
            entries[key] = value

        if unparsed:
            logger.debug(f"{len(unparsed)} line(s) did not match any key=value convention")

        return FlatMap(entries, unparsed)


def build_flat_map(text: Union[bytes, bytearray, str]) -> FlatMap:
    """Module-level convenience wrapper around FlatMapBuilder.build()."""
    return FlatMapBuilder().build(text)
