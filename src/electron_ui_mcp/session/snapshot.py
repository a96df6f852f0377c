"""
Snapshot builder.

Captures the visible element tree of a window, assigns refs for a new
generation in the shared ``RefTable`` and renders the tree as an
indented outline. Bounding boxes are kept per ref so screenshots can be
annotated without walking the tree again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .refs import GENERIC_ROLE, REF_ATTRIBUTE, RefTable
from .snapshot_script import (
    ANNOTATION_CONTAINER_ID,
    _ADD_ANNOTATIONS_JS,
    _REMOVE_ANNOTATIONS_JS,
    _SNAPSHOT_JS,
    _STAMP_REFS_JS,
)

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 80


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_raw(cls, raw: Optional[Dict[str, Any]]) -> Optional["BoundingBox"]:
        if not raw:
            return None
        box = cls(
            x=int(round(raw.get("x", 0))),
            y=int(round(raw.get("y", 0))),
            width=int(round(raw.get("width", 0))),
            height=int(round(raw.get("height", 0))),
        )
        if box.width == 0 and box.height == 0:
            return None
        return box

    def to_dict(self) -> Dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass
class SnapshotNode:
    ref: str
    role: str
    name: str
    level: Optional[int] = None
    bounds: Optional[BoundingBox] = None
    children: List["SnapshotNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"ref": self.ref, "role": self.role, "name": self.name}
        if self.level is not None:
            out["level"] = self.level
        if self.bounds is not None:
            out["bounds"] = self.bounds.to_dict()
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@dataclass
class SnapshotResult:
    snapshot_id: str
    title: str
    url: str
    tree: List[SnapshotNode]
    text: str


@dataclass
class ScreenshotResult:
    data: bytes
    image_type: str
    annotated: bool
    snapshot_taken: bool = False
    snapshot_id: Optional[str] = None


def render_text(nodes: Sequence[SnapshotNode], indent: int = 0) -> str:
    """Render nodes as ``- [ref] role "name" [level N]`` lines."""
    lines: List[str] = []
    _render_lines(nodes, indent, lines)
    return "\n".join(lines)


def _render_lines(nodes: Sequence[SnapshotNode], indent: int, lines: List[str]) -> None:
    prefix = "  " * indent
    for node in nodes:
        name_part = f' "{node.name}"' if node.name else ""
        level_part = f" [level {node.level}]" if node.level is not None else ""
        lines.append(f"{prefix}- [{node.ref}] {node.role}{name_part}{level_part}")
        if node.children:
            _render_lines(node.children, indent + 1, lines)


class SnapshotBuilder:
    """Owns snapshot generations; the only writer of the ref table."""

    def __init__(self, refs: RefTable) -> None:
        self.refs = refs
        self._boxes: Dict[str, BoundingBox] = {}

    @property
    def bounding_boxes(self) -> Dict[str, BoundingBox]:
        return dict(self._boxes)

    def clear(self) -> None:
        self.refs.clear()
        self._boxes = {}

    async def capture(self, page: Any) -> SnapshotResult:
        snapshot_id = self.refs.start_new_generation()
        self._boxes = {}

        title = await page.title()
        url = page.url
        raw_tree = await page.evaluate(_SNAPSHOT_JS) or []

        assignments: List[Tuple[int, str]] = []
        tree = self.process_nodes(raw_tree, assignments)
        if assignments:
            try:
                await page.evaluate(
                    _STAMP_REFS_JS,
                    {"attribute": REF_ATTRIBUTE, "assignments": assignments},
                )
            except Exception as exc:
                # Role, name and test-id locators still work without the stamp.
                logger.warning("Failed to stamp ref attributes on page: %s", exc)

        text = render_text(tree)
        logger.debug("Captured snapshot %s with %d refs", snapshot_id, len(self.refs.all_refs()))
        return SnapshotResult(snapshot_id=snapshot_id, title=title, url=url, tree=tree, text=text)

    def process_nodes(
        self,
        raw_nodes: Sequence[Dict[str, Any]],
        assignments: Optional[List[Tuple[int, str]]] = None,
    ) -> List[SnapshotNode]:
        """Assign refs to nodes with a role or a name; promote the children of the rest."""
        results: List[SnapshotNode] = []
        for raw in raw_nodes:
            role = raw.get("role") or ""
            name = raw.get("name") or ""
            children = raw.get("children") or []
            if not role and not name:
                results.extend(self.process_nodes(children, assignments))
                continue

            ref = self.refs.register(role, name, raw.get("testId") or None)
            node = SnapshotNode(ref=ref, role=role or GENERIC_ROLE, name=name)
            level = raw.get("level")
            if level is not None:
                node.level = int(level)
            bounds = BoundingBox.from_raw(raw.get("bounds"))
            if bounds is not None:
                node.bounds = bounds
                self._boxes[ref] = bounds
            if assignments is not None and raw.get("index") is not None:
                assignments.append((int(raw["index"]), ref))
            node.children = self.process_nodes(children, assignments)
            results.append(node)
        return results

    async def inject_annotations(self, page: Any) -> int:
        annotations = [[ref, box.to_dict()] for ref, box in self._boxes.items()]
        if not annotations:
            return 0
        await page.evaluate(
            _ADD_ANNOTATIONS_JS,
            {"containerId": ANNOTATION_CONTAINER_ID, "annotations": annotations},
        )
        return len(annotations)

    async def remove_annotations(self, page: Any) -> None:
        await page.evaluate(_REMOVE_ANNOTATIONS_JS, ANNOTATION_CONTAINER_ID)

    async def screenshot(
        self,
        page: Any,
        *,
        full_page: bool = False,
        image_type: str = "png",
        quality: Optional[int] = None,
        annotate: bool = False,
    ) -> ScreenshotResult:
        """
        Capture the window, optionally with ref overlays.

        Annotating without a current generation captures one first, which
        invalidates every ref handed out before this call.
        """
        snapshot_taken = False
        if annotate and not self.refs.has_generation():
            await self.capture(page)
            snapshot_taken = True

        options: Dict[str, Any] = {"full_page": full_page, "type": image_type}
        if image_type == "jpeg":
            options["quality"] = DEFAULT_JPEG_QUALITY if quality is None else quality

        injected = False
        try:
            if annotate:
                injected = True
                await self.inject_annotations(page)
            data = await page.screenshot(**options)
        finally:
            if injected:
                try:
                    await self.remove_annotations(page)
                except Exception as exc:
                    logger.warning("Failed to remove annotation overlay: %s", exc)

        return ScreenshotResult(
            data=data,
            image_type=image_type,
            annotated=annotate,
            snapshot_taken=snapshot_taken,
            snapshot_id=self.refs.current_generation_id,
        )
