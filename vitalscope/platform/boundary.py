"""Spatial scoping for layout-shift attribution.

Collectors never hold a DOM handle. A source node arrives as a `NodeRef`
(serialized by the in-page observer) and the scoping region is a capability
object answering `contains(node)` plus a bounding-rect query.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..models.layout_shift import Rect


@dataclass(frozen=True, slots=True)
class NodeRef:
    """Serialized node reference.

    `path` is the chain of per-level keys from the document root down to (and
    including) the node; containment is a path-prefix test.
    """

    tag_name: str | None = None
    element_id: str = ""
    class_name: str = ""
    path: tuple[str, ...] = ()

    @property
    def is_element(self) -> bool:
        return bool(self.tag_name)

    @classmethod
    def from_any(cls, raw: Any) -> NodeRef | None:
        if isinstance(raw, NodeRef):
            return raw
        if not isinstance(raw, dict):
            return None
        tag = raw.get("tag")
        path = raw.get("path")
        return cls(
            tag_name=tag if isinstance(tag, str) and tag else None,
            element_id=raw.get("id") if isinstance(raw.get("id"), str) else "",
            class_name=raw.get("className") if isinstance(raw.get("className"), str) else "",
            path=tuple(str(p) for p in path) if isinstance(path, list) else (),
        )


def node_label(node: NodeRef | None) -> str:
    """Short `tag#id.class` label for a shifted node."""
    if node is None or not node.is_element:
        return "unknown"
    tag = (node.tag_name or "element").lower()
    ident = f"#{node.element_id}" if node.element_id else ""
    cls = ""
    if node.class_name.strip():
        cls = "." + node.class_name.strip().split()[0][:20]
    return f"{tag}{ident}{cls}"[:60] or "element"


class ScopeBoundary(Protocol):
    @property
    def present(self) -> bool: ...

    def contains(self, node: NodeRef | None) -> bool: ...

    def bounding_rect(self) -> Rect | None: ...


class ElementBoundary:
    """Boundary backed by one element's node path; may be absent at any time."""

    def __init__(self, path: tuple[str, ...] | None = None, rect: Rect | None = None, *, selector: str = "") -> None:
        self.selector = selector
        self._path = tuple(path) if path else None
        self._rect = rect

    @property
    def present(self) -> bool:
        return self._path is not None

    def update(self, path: tuple[str, ...] | list[str] | None, rect: Rect | None = None) -> None:
        self._path = tuple(path) if path else None
        self._rect = rect if self._path is not None else None

    def contains(self, node: NodeRef | None) -> bool:
        if self._path is None or node is None or not node.path:
            return False
        return node.path[: len(self._path)] == self._path

    def bounding_rect(self) -> Rect | None:
        return self._rect
