"""Identifier casing helpers shared by the schema and generator layers."""

from __future__ import annotations

import re
from functools import lru_cache

_SEPARATOR_LOWER = re.compile(r"[_-]([a-z])")
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def upper_first(value: str) -> str:
    """Upper-case the first character only (``getTodo`` -> ``GetTodo``)."""
    return value[:1].upper() + value[1:]


@lru_cache(maxsize=1024)
def camel_case(value: str) -> str:
    """Fold ``-x``/``_x`` into ``X``.

    Only a separator followed by a lower-case letter is folded, so
    ``admin-users`` becomes ``adminUsers`` while ``v2-Items`` is untouched.
    """
    return _SEPARATOR_LOWER.sub(lambda match: match.group(1).upper(), value)


def upper_camel(value: str) -> str:
    """``camel_case`` followed by ``upper_first``."""
    return upper_first(camel_case(value))


def is_identifier(value: str) -> bool:
    """Whether *value* can be used as a bare TypeScript property name."""
    return bool(_IDENTIFIER.match(value))


def enum_member(value: str) -> str:
    """Derive an enum member name from a literal value.

    ``in-progress`` -> ``IN_PROGRESS``; characters that cannot appear in an
    identifier become ``_`` and a leading digit is prefixed with ``_``.
    """
    member = re.sub(r"[^A-Za-z0-9_$]", "_", value.upper())
    if not member or member[0].isdigit():
        member = "_" + member
    return member


def string_literal(value: str) -> str:
    """Render *value* as a single-quoted TypeScript string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def member_access(target: str, name: str, optional: bool = False) -> str:
    """``target.name``, falling back to bracket access for non-identifiers."""
    if is_identifier(name):
        return f"{target}{'?.' if optional else '.'}{name}"
    return f"{target}{'?.' if optional else ''}[{string_literal(name)}]"
