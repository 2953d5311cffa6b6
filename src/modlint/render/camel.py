#!/usr/bin/env python3
"""
MODLINT CAMEL CASE - Values Keys
--------------------------------
Module-name to values-key conversion (`cert-manager` -> `certManager`).

Author: ModLint Team
Date: 2026-01-16
"""

import re

_NUMBER_SEQUENCE = re.compile(r"([a-zA-Z])(\d+)([a-zA-Z]?)")
_UPPERCASE_ACRONYMS = {"ID"}
_SEPARATORS = "_ -."


def _camel_init_case(s: str, init_case: bool) -> str:
    s = _NUMBER_SEQUENCE.sub(r"\1 \2 \3", s).strip(" ")
    out = []
    cap_next = init_case
    for ch in s:
        if "A" <= ch <= "Z" or "0" <= ch <= "9":
            out.append(ch)
        elif "a" <= ch <= "z":
            out.append(ch.upper() if cap_next else ch)
        cap_next = ch in _SEPARATORS
    return "".join(out)


def to_camel(s: str) -> str:
    if s in _UPPERCASE_ACRONYMS:
        s = s.lower()
    return _camel_init_case(s, True)


def to_lower_camel(s: str) -> str:
    if not s:
        return s
    if s in _UPPERCASE_ACRONYMS:
        s = s.lower()
    if "A" <= s[0] <= "Z":
        s = s[0].lower() + s[1:]
    return _camel_init_case(s, False)
