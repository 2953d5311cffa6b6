#!/usr/bin/env python3
"""
MODLINT IGNORE RULES
--------------------
Parses `.helmignore` files. Semantics follow helm's own rules:

  * one glob per line, `#` comments and blank lines skipped
  * a leading `!` negates, a trailing `/` matches directories only
  * a leading `/` anchors to the chart root, any other `/` makes the
    pattern match the full relative path, otherwise only the basename
  * `*` and `?` never cross a path separator; `**` is rejected

Author: ModLint Team
Date: 2026-01-16
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from modlint.core.errors import IgnoreRuleError

IGNORE_FILE = ".helmignore"
DEFAULT_RULES = ["templates/.?*"]


def _glob_to_regex(pattern: str) -> "re.Pattern[str]":
    out = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            i += 1
            if i >= n:
                raise IgnoreRuleError(f"syntax error in pattern {pattern!r}: trailing escape")
            out.append(re.escape(pattern[i]))
        elif c == "[":
            end = pattern.find("]", i + 2 if pattern[i + 1:i + 2] in ("^", "]") else i + 1)
            if end == -1:
                raise IgnoreRuleError(f"syntax error in pattern {pattern!r}: unterminated class")
            body = pattern[i + 1:end]
            if body.startswith("^"):
                body = "^" + body[1:].replace("\\", "\\\\")
            else:
                body = body.replace("\\", "\\\\")
            out.append(f"(?!/)[{body}]")
            i = end
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


@dataclass
class _Rule:
    raw: str
    negate: bool
    must_dir: bool
    match: Callable[[str], bool]


class IgnoreRules:
    def __init__(self):
        self._rules: List[_Rule] = []

    @classmethod
    def parse(cls, text: str) -> "IgnoreRules":
        rules = cls()
        for line in text.splitlines():
            rules.add(line)
        return rules

    @classmethod
    def from_directory(cls, directory: Path) -> "IgnoreRules":
        """Loads `.helmignore` when present, then appends the default rules."""
        ifile = directory / IGNORE_FILE
        try:
            rules = cls.parse(ifile.read_text(encoding="utf-8-sig")) if ifile.is_file() else cls()
        except UnicodeDecodeError as e:
            raise IgnoreRuleError(f"read {IGNORE_FILE}: {e}")
        rules.add_defaults()
        return rules

    def add_defaults(self):
        for rule in DEFAULT_RULES:
            self.add(rule)

    def add(self, line: str):
        rule = line.strip()
        if not rule or rule.startswith("#"):
            return
        if "**" in rule:
            raise IgnoreRuleError(f"double-star (**) syntax is not supported: {rule!r}")

        negate = rule.startswith("!")
        if negate:
            rule = rule[1:]
        must_dir = rule.endswith("/")
        if must_dir:
            rule = rule.rstrip("/")

        if rule.startswith("/"):
            regex = _glob_to_regex(rule.lstrip("/"))
            match = lambda n, r=regex: bool(r.match(n))
        elif "/" in rule:
            regex = _glob_to_regex(rule)
            match = lambda n, r=regex: bool(r.match(n))
        else:
            regex = _glob_to_regex(rule)
            match = lambda n, r=regex: bool(r.match(n.rsplit("/", 1)[-1]))

        self._rules.append(_Rule(raw=line, negate=negate, must_dir=must_dir, match=match))

    def ignore(self, path: str, is_dir: bool) -> bool:
        """`path` is chart-relative with forward slashes."""
        if path in ("", ".", "./"):
            return False

        for rule in self._rules:
            # Negative rules ignore whatever they do not match.
            if rule.negate:
                if rule.must_dir and not is_dir:
                    return True
                if not rule.match(path):
                    return True
                continue

            if rule.must_dir and not is_dir:
                continue
            if rule.match(path):
                return True
        return False

    def __len__(self) -> int:
        return len(self._rules)
