"""Column type descriptor parsing and composition.

MySQL reports column types as ``NAME[(LENGTH)][ unsigned][ zerofill]``
(``information_schema.COLUMNS.COLUMN_TYPE``).  ``parse_type`` splits that
string into its parts and ``compose_type`` puts them back together in the
same order the server uses, so a load -> edit -> save -> reload cycle
converges on the same string.

Usage:
    from mysql_designer.schema.types import compose_type, parse_type

    parse_type("decimal(10,2) unsigned zerofill")
    # TypeDescriptor(base_type='decimal', length='10,2', unsigned=True, zerofill=True)

    compose_type("int", "11", unsigned=True)
    # 'int(11) unsigned'
"""

import re
from typing import NamedTuple

_TYPE_PATTERN = re.compile(r"^(\w+)(?:\((.+)\))?(?: (.+))?$", re.DOTALL)

_SUFFIX_WORDS = {"unsigned", "zerofill"}


class TypeDescriptor(NamedTuple):
    """Structured form of a raw column type string."""

    base_type: str
    length: str = ""
    unsigned: bool = False
    zerofill: bool = False


def parse_type(raw_type: str) -> TypeDescriptor:
    """Parse a raw column type into a ``TypeDescriptor``.

    Suffix words ``unsigned`` and ``zerofill`` are accepted in either order
    and any case.  A type that does not match the grammar, or carries suffix
    words other than those two, is passed through unchanged as the base type.

    Args:
        raw_type: Type string as reported by the server or typed by a user.

    Returns:
        ``TypeDescriptor`` with base type, length/precision and flags.

    Examples:
        >>> parse_type("varchar(255)")
        TypeDescriptor(base_type='varchar', length='255', unsigned=False, zerofill=False)
        >>> parse_type("int(10) zerofill unsigned").unsigned
        True
        >>> parse_type("text").length
        ''
    """
    raw_type = raw_type.strip()
    match = _TYPE_PATTERN.match(raw_type)
    if not match:
        return TypeDescriptor(base_type=raw_type)

    base_type, length, suffix = match.groups()
    words = suffix.lower().split() if suffix else []
    if any(word not in _SUFFIX_WORDS for word in words):
        return TypeDescriptor(base_type=raw_type)

    return TypeDescriptor(
        base_type=base_type,
        length=length or "",
        unsigned="unsigned" in words,
        zerofill="zerofill" in words,
    )


def compose_type(
    base_type: str,
    length: str = "",
    unsigned: bool = False,
    zerofill: bool = False,
) -> str:
    """Compose a raw column type from its parts.

    ``(length)`` is appended only when non-empty, then `` unsigned``, then
    `` zerofill``.

    Examples:
        >>> compose_type("decimal", "10,2", unsigned=True, zerofill=True)
        'decimal(10,2) unsigned zerofill'
        >>> compose_type("json")
        'json'
    """
    raw_type = base_type
    if length:
        raw_type += f"({length})"
    if unsigned:
        raw_type += " unsigned"
    if zerofill:
        raw_type += " zerofill"
    return raw_type
