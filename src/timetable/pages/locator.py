"""Positional lookups in a parsed ETIS page.

ETIS pages carry no ids or classes worth selecting on, so nodes are found by
their position in the tree, the way an XPath like
``html/body/div[2]/div/div[2]/div[3]`` would find them. All of that
coupling goes through this module.

A path is a ``/``-separated list of steps. Each step names an element tag and
optionally a 1-based position among the element children with that tag
(``div[2]``); a bare tag means the first one.
"""

import re

from bs4 import BeautifulSoup, Tag

_STEP = re.compile(r"^(?P<name>[a-z][a-z0-9]*)(?:\[(?P<position>[1-9]\d*)\])?$")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _steps(path: str) -> list[tuple[str, int]]:
    steps = []
    for raw in path.strip("/").split("/"):
        match = _STEP.match(raw)
        if match is None:
            raise ValueError(f"Invalid path step {raw!r} in {path!r}")
        steps.append((match["name"], int(match["position"] or 1)))
    return steps


def children(node: Tag, name: str) -> list[Tag]:
    """Element children of ``node`` with the given tag, in document order."""
    return node.find_all(name, recursive=False)


def locate(node: Tag, path: str) -> Tag | None:
    """Resolve ``path`` relative to ``node``.

    Returns None as soon as a step has no matching child.
    """
    current = node
    for name, position in _steps(path):
        matches = children(current, name)
        if len(matches) < position:
            return None
        current = matches[position - 1]
    return current


def text_of(node: Tag) -> str:
    return node.get_text().strip()
