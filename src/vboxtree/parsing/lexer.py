#!/usr/bin/env python3
"""
VBOXTREE LEXER - Line Parser & Key/Value Decoder
------------------------------------------------
Turns the raw stdout of `VBoxManage ... --machinereadable` into lines and
decodes each line into a (key, value) pair.

VBoxManage is not consistent about quoting. Three conventions show up:

    name="Ubuntu Server"          unquoted key, quoted value (most frequent)
    "SATA-0-0"="/vms/disk.vdi"    both quoted
    memory=2048                   neither quoted

Inside quoted values VBoxManage escapes `"` and `\\` with a backslash;
decode_line undoes that.

Lines matching none of them (description continuations, stray notices) are
reported as unparsed rather than raised on. One bad line must not abort the
whole parse.

Author: VBoxTree Team
Date: 2026-10-19
"""

import re
from typing import List, Optional, Tuple, Union

from vboxtree.core.errors import EncodingError


class KeyValueLexer:
    """
    Splits machine-readable output into lines and decodes key=value pairs.
    Holds no per-call state, so one instance can be shared freely.
    """

    # Tried in this order; the first match wins.
    # 1. key="value"  (quotes inside the value arrive escaped as \")
    QUOTED_VALUE = re.compile(r'^(?P<key>[^"=]+)="(?P<val>(?:[^"\\]|\\.)*)"$')
    # 2. "key"="value"
    QUOTED_BOTH = re.compile(r'^"(?P<key>[^"=]+)"="(?P<val>(?:[^"\\]|\\.)*)"$')
    # 3. key=value
    BARE = re.compile(r'^(?P<key>[^"=]+)=(?P<val>[^"=]*)$')

    PATTERNS = (QUOTED_VALUE, QUOTED_BOTH, BARE)

    # VBoxManage escapes only these two inside quoted values
    ESCAPED = re.compile(r'\\(["\\])')

    def _clean_artifacts(self, text: str) -> str:
        """
        Removes invisible UTF-8 BOM markers and standardizes line endings.
        """
        # Remove Byte Order Mark if present
        text = text.lstrip('\ufeff')
        # Standardize CRLF / CR to LF
        return text.replace('\r\n', '\n').replace('\r', '\n')

    def _decode_buffer(self, buffer: Union[bytes, bytearray, str]) -> str:
        if isinstance(buffer, str):
            return buffer
        try:
            return bytes(buffer).decode('utf-8')
        except UnicodeDecodeError as e:
            raise EncodingError(f"Buffer is not valid UTF-8: {e}") from e

    def split_lines(self, buffer: Union[bytes, bytearray, str],
                    keep_empty: bool = False) -> List[str]:
        """
        Splits a raw buffer into lines with trailing whitespace removed.

        Args:
            buffer: Raw command output, bytes (decoded as UTF-8) or text.
            keep_empty: Keep blank lines as empty strings instead of dropping them.

        Raises:
            EncodingError: bytes input is not valid UTF-8.
        """
        text = self._clean_artifacts(self._decode_buffer(buffer))

        lines = []
        for line in text.split('\n'):
            line = line.rstrip()
            if not line and not keep_empty:
                continue
            lines.append(line)
        return lines

    def decode_line(self, line: str) -> Optional[Tuple[str, str]]:
        """
        Extracts (key, value) from one line, or None if no convention matches.
        Never raises.
        """
        for pattern in self.PATTERNS:
            match = pattern.match(line)
            if not match:
                continue
            value = match.group('val')
            if pattern is not self.BARE:
                value = self.ESCAPED.sub(r'\1', value)
            return match.group('key'), value
        return None
