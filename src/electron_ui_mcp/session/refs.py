"""Snapshot-scoped element references."""

from __future__ import annotations

import json
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import RefNotFoundError, StaleRefError

REF_ATTRIBUTE = "data-electron-ref"
GENERIC_ROLE = "generic"


@dataclass(frozen=True)
class ElementRef:
    ref: str
    role: str
    name: str
    selector: str
    test_id: Optional[str] = None


@dataclass
class SnapshotGeneration:
    id: str
    created_at: float = field(default_factory=time.time)
    refs: Dict[str, ElementRef] = field(default_factory=dict)


def _new_generation_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"snap_{int(time.time() * 1000)}_{suffix}"


def build_selector(ref: str, role: str, name: str, test_id: Optional[str] = None) -> str:
    """Pick the most robust selector available for an element."""
    semantic_role = role if role and role != GENERIC_ROLE else ""
    if semantic_role and name:
        return f"role={semantic_role}[name={json.dumps(name)}]"
    if test_id:
        return f"[data-testid={json.dumps(test_id)}]"
    if semantic_role:
        return f"role={semantic_role}"
    return f'[{REF_ATTRIBUTE}="{ref}"]'


class RefTable:
    """
    Maps opaque refs (``e0``, ``e1``, ...) to element descriptors.

    Only one generation is current. Starting a new one discards every
    previously issued ref; they are never reassigned.
    """

    def __init__(self) -> None:
        self._generation: Optional[SnapshotGeneration] = None
        self._counter = 0

    @property
    def current_generation_id(self) -> Optional[str]:
        return self._generation.id if self._generation else None

    def has_generation(self) -> bool:
        return self._generation is not None

    def start_new_generation(self) -> str:
        generation_id = _new_generation_id()
        # Guard against two generations created inside the same millisecond.
        while self._generation is not None and generation_id == self._generation.id:
            generation_id = _new_generation_id()
        self._generation = SnapshotGeneration(id=generation_id)
        self._counter = 0
        return generation_id

    def register(self, role: str, name: str, test_id: Optional[str] = None) -> str:
        if self._generation is None:
            raise RuntimeError("No active snapshot generation. Call start_new_generation() first.")
        ref = f"e{self._counter}"
        self._counter += 1
        self._generation.refs[ref] = ElementRef(
            ref=ref,
            role=role,
            name=name,
            selector=build_selector(ref, role, name, test_id),
            test_id=test_id or None,
        )
        return ref

    def resolve(self, ref: str, expected_generation_id: Optional[str] = None) -> ElementRef:
        if self._generation is None:
            raise RefNotFoundError(ref)
        if expected_generation_id and expected_generation_id != self._generation.id:
            raise StaleRefError(ref, expected_generation_id, self._generation.id)
        element = self._generation.refs.get(ref)
        if element is None:
            raise RefNotFoundError(ref)
        return element

    def resolve_to_locator(
        self,
        page: Any,
        ref: str,
        expected_generation_id: Optional[str] = None,
    ) -> Any:
        element = self.resolve(ref, expected_generation_id)
        if element.role and element.role != GENERIC_ROLE and element.name:
            return page.get_by_role(element.role, name=element.name)
        if element.test_id:
            return page.get_by_test_id(element.test_id)
        return page.locator(element.selector)

    def all_refs(self) -> List[ElementRef]:
        if self._generation is None:
            return []
        return list(self._generation.refs.values())

    def clear(self) -> None:
        self._generation = None
        self._counter = 0
