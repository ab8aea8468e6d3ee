"""Namespace-tolerant element lookup for interchange documents.

Real-world exports declare the interchange namespace inconsistently: some
qualify every element, some declare nothing, some use a different default
namespace. Lookups therefore run an ordered chain of tag-matching strategies
and stop at the first one that matches anything:

1. namespace-qualified match against ``NAMESPACE_URI``
2. local-name match, ignoring whatever namespace the element carries
3. raw tag-name match, ignoring any ``prefix:`` left in the tag text
"""

from collections.abc import Callable
from xml.etree.ElementTree import Element

NAMESPACE_URI = "urn:iec62325.351:tc57wg16:451-10:myenergydatamessage:1:0"

TagMatcher = Callable[[str, str], bool]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def match_qualified(tag: str, name: str) -> bool:
    return tag == f"{{{NAMESPACE_URI}}}{name}"


def match_local_name(tag: str, name: str) -> bool:
    return _local_name(tag) == name


def match_raw_tag(tag: str, name: str) -> bool:
    return _local_name(tag).rsplit(":", 1)[-1] == name


LOOKUP_STRATEGIES: tuple[TagMatcher, ...] = (
    match_qualified,
    match_local_name,
    match_raw_tag,
)


def find_all(scope: Element, name: str, *, include_self: bool = False) -> list[Element]:
    """Return every descendant of *scope* named *name*, in document order.

    The result comes from the first strategy in ``LOOKUP_STRATEGIES`` that
    matches at least one element; an empty list means none did.
    """
    candidates = [
        el
        for el in scope.iter()
        if isinstance(el.tag, str) and (include_self or el is not scope)
    ]
    for matcher in LOOKUP_STRATEGIES:
        found = [el for el in candidates if matcher(el.tag, name)]
        if found:
            return found
    return []


def find_first(scope: Element, name: str, *, include_self: bool = False) -> Element | None:
    found = find_all(scope, name, include_self=include_self)
    return found[0] if found else None


def find_text(scope: Element, name: str) -> str | None:
    """Stripped text content of the first *name* descendant, or None if absent or blank."""
    element = find_first(scope, name)
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None
