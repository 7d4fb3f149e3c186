"""Removal of a named prim and its subtree from ASCII USD layers.

This is a line-oriented brace counter rather than a USD parser. Braces
inside single-line double-quoted strings are ignored; braces inside
multi-line triple-quoted strings are not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_TARGET_PRIM = "Object_grp"
PRIM_KEYWORDS = ("def ", "over ")

_STRING_LITERAL = re.compile(r'"(?:[^"\\\n]|\\.)*"')


@dataclass(frozen=True)
class SanitizeResult:
    content: str
    removed_lines: int
    removed_blocks: int

    @property
    def changed(self) -> bool:
        return self.removed_lines > 0


def _scan(line: str, parens: int) -> tuple[int, bool, int]:
    """Brace delta of ``line`` outside any metadata ``( ... )`` block.

    Returns the delta, whether a body brace opened, and the paren depth
    carried into the next line.
    """
    delta = 0
    opened = False
    for char in _STRING_LITERAL.sub('""', line):
        if char == "(":
            parens += 1
        elif char == ")":
            parens = max(0, parens - 1)
        elif parens == 0 and char == "{":
            delta += 1
            opened = True
        elif parens == 0 and char == "}":
            delta -= 1
    return delta, opened, parens


def _declares_target(line: str, quoted_name: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(PRIM_KEYWORDS) and quoted_name in stripped


def remove_prim(content: str, prim_name: str = DEFAULT_TARGET_PRIM) -> SanitizeResult:
    quoted_name = f'"{prim_name}"'
    kept: list[str] = []
    inside = False
    opened = False
    depth = 0
    parens = 0
    removed_lines = 0
    removed_blocks = 0

    for line in content.split("\n"):
        if not inside:
            if not _declares_target(line, quoted_name):
                kept.append(line)
                continue
            inside = True
            removed_blocks += 1
            depth, opened, parens = _scan(line, 0)
        else:
            delta, has_open, parens = _scan(line, parens)
            depth += delta
            opened = opened or has_open
        removed_lines += 1
        # braces inside prim metadata "( ... )" never open the body
        if opened and depth <= 0:
            inside = False
            opened = False
            depth = 0
            parens = 0

    return SanitizeResult(
        content="\n".join(kept),
        removed_lines=removed_lines,
        removed_blocks=removed_blocks,
    )


def remove_prim_from_text(content: str, prim_name: str = DEFAULT_TARGET_PRIM) -> str:
    return remove_prim(content, prim_name).content
