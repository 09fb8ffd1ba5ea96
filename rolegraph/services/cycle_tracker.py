# -*- coding: utf-8 -*-
"""Location: ./rolegraph/services/cycle_tracker.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Cycle tracking for a single group hierarchy resolution.

A tracker owns the visited set, the ancestor graph and the cycle edges found
while one ``has_link`` call walks up the group hierarchy. Edges that would
close a cycle are recorded and never added to the graph, so the graph kept
here is always acyclic.

Examples:
    >>> from rolegraph.models import Ref
    >>> a, b = Ref.parse("group:default/team-a"), Ref.parse("group:default/team-b")
    >>> tracker = CycleTracker()
    >>> tracker.link(b, a) is None
    True
    >>> tracker.link(a, b).as_pair()
    ['group:default/team-a', 'group:default/team-b']
    >>> sorted(str(r) for r in tracker.cyclic_refs())
    ['group:default/team-a', 'group:default/team-b']
"""

# Standard
import json
from typing import Dict, Iterable, List, Optional, Set

# First-Party
from rolegraph.models import CycleEdge, Ref

REMEDIATION_TEXT = "Admin/(catalog owner) have to fix it to make RBAC permission evaluation correct"


class CycleTracker:
    """Visited set, ancestor graph and cycle edges for one resolution call.

    Trackers are never shared between calls.
    """

    def __init__(self) -> None:
        """Initialize an empty tracker."""
        self._visited: Set[Ref] = set()
        self._parents: Dict[Ref, List[Ref]] = {}
        self._cycle_edges: List[CycleEdge] = []

    def visit(self, refs: Iterable[Ref]) -> List[Ref]:
        """Mark refs as visited.

        Args:
            refs: Refs reached by the traversal

        Returns:
            List[Ref]: Refs that were not visited before, in input order

        Examples:
            >>> from rolegraph.models import Ref
            >>> tracker = CycleTracker()
            >>> a = Ref.parse("group:default/a")
            >>> [str(r) for r in tracker.visit([a, a])]
            ['group:default/a']
            >>> tracker.visit([a])
            []
        """
        fresh: List[Ref] = []
        for ref in refs:
            if ref not in self._visited:
                self._visited.add(ref)
                fresh.append(ref)
        return fresh

    def is_visited(self, ref: Ref) -> bool:
        """Check whether a ref was already visited.

        Args:
            ref: Ref to check

        Returns:
            bool: True if ``ref`` is in the visited set
        """
        return ref in self._visited

    def link(self, ref: Ref, parent: Ref) -> Optional[CycleEdge]:
        """Record that ``parent`` is an immediate parent of ``ref``.

        When ``ref`` is already an ancestor of ``parent`` the edge would close a
        cycle. It is then recorded as a cycle edge instead of being added to the
        graph.

        Args:
            ref: Group (or member) whose parent is being recorded
            parent: The parent group

        Returns:
            Optional[CycleEdge]: The newly recorded cycle edge, or None when the
            edge was added, was already known, or repeats a known cycle edge
        """
        parents = self._parents.setdefault(ref, [])
        if parent in parents:
            return None

        if ref == parent or self._reaches(parent, ref):
            edge = CycleEdge(ancestor=ref, descendant=parent)
            if edge in self._cycle_edges:
                return None
            self._cycle_edges.append(edge)
            return edge

        parents.append(parent)
        return None

    @property
    def cycle_edges(self) -> List[CycleEdge]:
        """Distinct cycle edges in discovery order.

        Returns:
            List[CycleEdge]: Copy of the recorded cycle edges
        """
        return list(self._cycle_edges)

    @property
    def has_cycles(self) -> bool:
        """Whether any cycle edge was recorded.

        Returns:
            bool: True if at least one cycle was found
        """
        return bool(self._cycle_edges)

    def cyclic_refs(self) -> Set[Ref]:
        """Collect every ref lying on a recorded cycle.

        A cycle edge ``(ancestor, descendant)`` closes the cycle formed by the
        graph paths leading from ``descendant`` up to ``ancestor``.

        Returns:
            Set[Ref]: Refs on at least one cycle
        """
        cyclic: Set[Ref] = set()
        for edge in self._cycle_edges:
            above = self._ancestors_of(edge.descendant)
            below = self._descendants_of(edge.ancestor)
            cyclic |= above & below
        return cyclic

    def reachable(self, sources: Iterable[Ref], target: Ref) -> bool:
        """Check whether ``target`` is an ancestor of a source with an acyclic ancestry.

        Sources count as reached themselves. A source with a cycle anywhere
        above it (or on it) reaches nothing, not even itself, so a check
        through a cyclic hierarchy fails closed. Other sources are unaffected.

        Args:
            sources: Starting refs (the principal's direct groups)
            target: Ref to look for

        Returns:
            bool: True if ``target`` is reachable

        Examples:
            >>> from rolegraph.models import Ref
            >>> c, b, a, d = (Ref.parse(f"group:default/{n}") for n in ("c", "b", "a", "d"))
            >>> tracker = CycleTracker()
            >>> _ = tracker.link(c, b), tracker.link(b, a)
            >>> tracker.reachable([c], a)
            True
            >>> _ = tracker.link(a, b)
            >>> tracker.reachable([c], a), tracker.reachable([c], c), tracker.reachable([c, d], d)
            (False, False, True)
        """
        blocked = self.cyclic_refs()
        for source in sources:
            ancestors = self._ancestors_of(source)
            if ancestors & blocked:
                continue
            if target in ancestors:
                return True
        return False

    def message(self, group: Ref) -> str:
        """Render the cycle warning for a checked group.

        Args:
            group: Group the link check was asked about

        Returns:
            str: Warning text listing every cycle edge found so far

        Examples:
            >>> from rolegraph.models import Ref
            >>> a, b = Ref.parse("group:default/team-a"), Ref.parse("group:default/team-b")
            >>> tracker = CycleTracker()
            >>> _ = tracker.link(b, a), tracker.link(a, b)
            >>> tracker.message(a)
            'Detected cycle dependencies in the Group graph: [["group:default/team-a","group:default/team-b"]]. Admin/(catalog owner) have to fix it to make RBAC permission evaluation correct for group: group:default/team-a'
        """
        pairs = json.dumps([edge.as_pair() for edge in self._cycle_edges], separators=(",", ":"))
        return f"Detected cycle dependencies in the Group graph: {pairs}. {REMEDIATION_TEXT} for group: {group}"

    def _reaches(self, start: Ref, goal: Ref) -> bool:
        """Check whether ``goal`` is an ancestor of ``start``.

        Args:
            start: Ref to walk up from
            goal: Ref to look for

        Returns:
            bool: True if a parent path leads from ``start`` to ``goal``
        """
        return goal in self._ancestors_of(start)

    def _ancestors_of(self, start: Ref) -> Set[Ref]:
        """Collect ``start`` and everything above it.

        Args:
            start: Ref to walk up from

        Returns:
            Set[Ref]: ``start`` plus all its ancestors
        """
        seen = {start}
        worklist = [start]
        while worklist:
            for parent in self._parents.get(worklist.pop(), []):
                if parent not in seen:
                    seen.add(parent)
                    worklist.append(parent)
        return seen

    def _descendants_of(self, start: Ref) -> Set[Ref]:
        """Collect ``start`` and everything below it.

        Args:
            start: Ref to walk down from

        Returns:
            Set[Ref]: ``start`` plus all its descendants
        """
        children: Dict[Ref, List[Ref]] = {}
        for ref, parents in self._parents.items():
            for parent in parents:
                children.setdefault(parent, []).append(ref)

        seen = {start}
        worklist = [start]
        while worklist:
            for child in children.get(worklist.pop(), []):
                if child not in seen:
                    seen.add(child)
                    worklist.append(child)
        return seen
