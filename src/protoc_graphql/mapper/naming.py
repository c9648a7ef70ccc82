"""Casing helpers and GraphQL type name construction.

The casing rules follow the protobuf code generators so that names agree
with independently generated client bindings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


def lower_case_first_rune(value: str) -> str:
    """Return value with its first character lower cased."""
    if not value:
        return value
    return value[0].lower() + value[1:]


def upper_case_first_rune(value: str) -> str:
    """Return value with its first character upper cased."""
    if not value:
        return value
    return value[0].upper() + value[1:]


def parse_lower_underscore(value: str) -> List[str]:
    """Split a lower_underscore name into lower case words."""
    words: List[str] = []
    running = ""
    for ch in value:
        if ch == "_":
            if running:
                words.append(running)
                running = ""
        else:
            running += ch.lower()
    if running:
        words.append(running)
    return words


def parse_upper_camel(value: str) -> List[str]:
    """Split an UpperCamel name into lower case words at each capital."""
    words: List[str] = []
    running = ""
    for ch in value:
        if "A" <= ch <= "Z" and running:
            words.append(running)
            running = ""
        running += ch.lower()
    if running:
        words.append(running)
    return words


def to_lower_camel(words: List[str]) -> str:
    result = ""
    for i, word in enumerate(words):
        if i == 0 and "A" <= word[0] <= "Z":
            word = lower_case_first_rune(word)
        elif i != 0 and "a" <= word[0] <= "z":
            word = upper_case_first_rune(word)
        result += word
    return result


def to_upper_camel(words: List[str]) -> str:
    result = ""
    for word in words:
        if "a" <= word[0] <= "z":
            word = upper_case_first_rune(word)
        result += word
    return result


def lower_underscore_to_lower_camel(name: str) -> str:
    """order_id -> orderId"""
    return to_lower_camel(parse_lower_underscore(name))


def upper_camel_to_lower_camel(name: str) -> str:
    """GetUser -> getUser"""
    return to_lower_camel(parse_upper_camel(name))


def _is_ascii_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_ascii_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def camel_case(name: str) -> str:
    """Return the CamelCased name.

    An interior underscore followed by a lower case letter is dropped and the
    letter upper cased. Words are delimited by underscores or capitals and
    digits are kept as they are, so `_my_field_name_2` becomes
    `XMyFieldName_2`.
    """
    if not name:
        return ""

    out: List[str] = []
    i = 0
    if name[0] == "_":
        # Need a capital letter; drop the '_'.
        out.append("X")
        i += 1

    while i < len(name):
        ch = name[i]
        if ch == "_" and i + 1 < len(name) and _is_ascii_lower(name[i + 1]):
            i += 1
            continue
        if _is_ascii_digit(ch):
            out.append(ch)
            i += 1
            continue
        if _is_ascii_lower(ch):
            ch = ch.upper()
        out.append(ch)
        # Accept the lower case run that follows.
        while i + 1 < len(name) and _is_ascii_lower(name[i + 1]):
            i += 1
            out.append(name[i])
        i += 1
    return "".join(out)


def camel_case_slice(parts: List[str]) -> str:
    """Like camel_case, but joins the parts with '_' first."""
    return camel_case("_".join(parts))


MAP_ENTRY_SUFFIX = "Entry"
MAP_NAME_SUFFIX = "_Map"
INPUT_NAME_SUFFIX = "_Input"


@dataclass
class TypeNameParts:
    package: str
    type_name: List[str] = field(default_factory=list)
    is_map: bool = False
    input: bool = False
    # Replaces the package derived prefix when set.
    namespace: str = ""


def build_type_name(parts: TypeNameParts, trim_prefix: str = "") -> str:
    """Build a GraphQL type name, e.g. ".acme.v1.User" -> "AcmeV1_User"."""
    if parts.namespace:
        name = parts.namespace
    else:
        name = camel_case_slice(parts.package.split(".")) if parts.package else ""

    for i, segment in enumerate(parts.type_name):
        if parts.is_map and i == len(parts.type_name) - 1 and segment.endswith(MAP_ENTRY_SUFFIX):
            segment = segment[: -len(MAP_ENTRY_SUFFIX)]
        name += "_" + camel_case(segment)

    if parts.is_map:
        name += MAP_NAME_SUFFIX
    if parts.input:
        name += INPUT_NAME_SUFFIX

    if trim_prefix and name.startswith(trim_prefix):
        name = name[len(trim_prefix):]
    return name
