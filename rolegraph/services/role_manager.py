# -*- coding: utf-8 -*-
"""Location: ./rolegraph/services/role_manager.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Group Hierarchy Role Manager.

This module answers whether a principal inherits a role (a directory group),
directly or through ancestor groups fetched from the entity directory. The
hierarchy is walked breadth first, one directory round-trip per level. Cycles
in the group graph are detected and reported; a direct group whose ancestry
holds a cycle links to nothing, and cycles never abort a check. Each check
runs in a request ID scope so its warnings can be traced back to it.

The role manager is read-only and asynchronous-only: the mutation, enumeration
and synchronous methods of the generic role-manager contract always fail with
:class:`MethodNotImplementedError`.
"""

# Standard
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

# First-Party
from rolegraph.config import settings
from rolegraph.models import EntityKind, EntityQuery, GroupRecord, InvalidEntityRefError, Ref, Relation
from rolegraph.services.cycle_tracker import CycleTracker
from rolegraph.services.directory_client import DirectoryClient
from rolegraph.utils.correlation_id import correlation_scope, get_correlation_id

# A frontier entry is a group record plus the refs whose parent lookup returned it
FrontierEntry = Tuple[GroupRecord, Tuple[Ref, ...]]


class RoleManagerError(Exception):
    """Base class for role manager errors."""


class UnsupportedDomainError(RoleManagerError):
    """Raised when a domain argument is passed to ``has_link``."""


class MethodNotImplementedError(RoleManagerError, NotImplementedError):
    """Raised by role-manager methods this resolver does not provide.

    Examples:
        >>> error = MethodNotImplementedError("add_link")
        >>> str(error)
        'Method "add_link" not implemented.'
        >>> error.method
        'add_link'
        >>> isinstance(error, NotImplementedError)
        True
    """

    def __init__(self, method: str) -> None:
        """Initialize the error.

        Args:
            method: Name of the unsupported method
        """
        super().__init__(f'Method "{method}" not implemented.')
        self.method = method


class RoleManager:
    """Role manager resolving group inheritance from the entity directory.

    Every ``has_link`` call is evaluated from scratch: the visited set, the
    ancestor graph and the cycle edges all live in a per-call
    :class:`CycleTracker`, so concurrent calls never share state.

    Attributes:
        directory: Entity directory client
        logger: Diagnostics sink for cycle warnings and traversal tracing
        batch_size: Maximum number of refs per parent lookup

    Examples:
        >>> import asyncio
        >>> from unittest.mock import AsyncMock
        >>> manager = RoleManager(AsyncMock())
        >>> asyncio.iscoroutinefunction(manager.has_link)
        True
        >>> asyncio.run(manager.has_link("user:default/mike", "user:default/mike"))
        True
        >>> asyncio.run(manager.has_link("user:default/mike", "user:default/tom"))
        False
        >>> manager.directory.query.await_count
        0
    """

    def __init__(self, directory: DirectoryClient, logger: Optional[logging.Logger] = None, batch_size: Optional[int] = None):
        """Initialize the role manager.

        Args:
            directory: Entity directory client
            logger: Diagnostics sink, defaults to this module's logger
            batch_size: Maximum refs per parent lookup, defaults to
                ``settings.parent_query_batch_size``

        Raises:
            ValueError: If ``batch_size`` is not positive
        """
        self.directory = directory
        self.logger = logger or logging.getLogger(__name__)
        self.batch_size = batch_size or settings.parent_query_batch_size
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    async def has_link(self, name1: str, name2: str, *domain: str) -> bool:
        """Check whether ``name1`` inherits ``name2``.

        Refs of any other kind than user or group never take part in the group
        hierarchy: such a target (or principal) is answered with False unless
        both names denote the same entity.

        Args:
            name1: Principal ref, usually a user
            name2: Role ref, a group
            *domain: Unsupported; any non-empty value is rejected

        Returns:
            bool: True if ``name1`` equals ``name2`` or is a member of ``name2``
            directly or through ancestor groups, with no cycle above the
            principal's direct group

        Raises:
            UnsupportedDomainError: If a non-empty domain is given

        Examples:
            >>> import asyncio
            >>> from unittest.mock import AsyncMock
            >>> manager = RoleManager(AsyncMock())
            >>> try:
            ...     asyncio.run(manager.has_link("user:default/mike", "group:default/team-a", "tenant"))
            ... except UnsupportedDomainError as e:
            ...     print(e)
            domain argument is not supported.
            >>> asyncio.run(manager.has_link("role:default/admin", "role:default/admin"))
            True
            >>> asyncio.run(manager.has_link("user:default/mike", "role:default/admin"))
            False
        """
        if any(domain):
            raise UnsupportedDomainError("domain argument is not supported.")

        if name1.strip().lower() == name2.strip().lower():
            return True

        try:
            principal = Ref.parse(name1, default_kind=EntityKind.USER.value)
            target = Ref.parse(name2, default_kind=EntityKind.GROUP.value)
        except InvalidEntityRefError as e:
            self.logger.debug(f"No group link between {name1!r} and {name2!r}: {e}")
            return False

        if principal == target:
            return True

        # only groups serve as ancestors
        if target.kind is not EntityKind.GROUP:
            return False

        with correlation_scope(get_correlation_id()) as request_id:
            linked = await self._resolve(principal, target)
            self.logger.debug(f"[{request_id}] Resolved {principal} -> {target}: {linked}")
        return linked

    async def _resolve(self, principal: Ref, target: Ref) -> bool:
        """Walk the principal's ancestor groups and decide the link.

        Args:
            principal: Member whose groups are expanded
            target: Group looked for

        Returns:
            bool: True if ``target`` is reachable from a direct group whose
            ancestry holds no cycle
        """
        tracker = CycleTracker()
        records: Dict[Ref, GroupRecord] = {}

        frontier: List[FrontierEntry] = [(record, ()) for record in await self._query(Relation.MEMBER_OF, [principal])]
        roots = [record.ref for record, _ in frontier]
        depth = 0

        while frontier:
            fresh: List[GroupRecord] = []
            cycles_before = len(tracker.cycle_edges)

            for record, via in frontier:
                self._link_unattributed(tracker, record, via, records)
                if tracker.is_visited(record.ref):
                    continue
                tracker.visit([record.ref])
                records[record.ref] = record
                fresh.append(record)
                self._ingest(tracker, record)

            self.logger.debug(f"Expanding {len(fresh)} new group(s) at depth {depth} for {principal} -> {target}: {[str(r.ref) for r in fresh]}")

            if len(tracker.cycle_edges) > cycles_before:
                self.logger.warning(tracker.message(target))

            if not fresh:
                break

            frontier = await self._expand([record.ref for record in fresh])
            depth += 1

        return tracker.reachable(roots, target)

    async def _query(self, relation: Relation, refs: Sequence[Ref]) -> List[GroupRecord]:
        """Fetch Group records related to ``refs``.

        Entities that cannot be decoded into a group record are skipped.

        Args:
            relation: Relation predicate to filter by
            refs: Refs the relation must include

        Returns:
            List[GroupRecord]: Decoded group records
        """
        records: List[GroupRecord] = []
        for entity in await self.directory.query(EntityQuery(relation=relation, refs=list(refs))):
            try:
                records.append(GroupRecord.from_entity(entity))
            except InvalidEntityRefError as e:
                self.logger.debug(f"Skipping directory entity: {e}")
        return records

    async def _expand(self, refs: List[Ref]) -> List[FrontierEntry]:
        """Fetch the immediate parents of ``refs`` in batches.

        Args:
            refs: Groups to expand

        Returns:
            List[FrontierEntry]: Parent records, each paired with the batch
            that returned it
        """
        frontier: List[FrontierEntry] = []
        for start in range(0, len(refs), self.batch_size):
            batch = tuple(refs[start : start + self.batch_size])
            for record in await self._query(Relation.PARENT_OF, batch):
                frontier.append((record, batch))
        return frontier

    @staticmethod
    def _ingest(tracker: CycleTracker, record: GroupRecord) -> None:
        """Add the ancestry edges declared by a newly visited record.

        Args:
            tracker: Per-call tracker
            record: Newly visited group record
        """
        if record.parent is not None:
            tracker.link(record.ref, record.parent)
        for child in record.children:
            tracker.link(child, record.ref)

    @staticmethod
    def _link_unattributed(tracker: CycleTracker, record: GroupRecord, via: Iterable[Ref], records: Dict[Ref, GroupRecord]) -> None:
        """Link a parent record that does not say which queried group it belongs to.

        The directory returned ``record`` as a parent of at least one ref in
        ``via``. When neither the record's children nor the queried groups'
        parent fields name that relation, the record is linked to every other ref of
        the batch.

        Args:
            tracker: Per-call tracker
            record: Record returned by a parent lookup
            via: Refs covered by that lookup
            records: Records visited so far in this call
        """
        for ref in via:
            known = records.get(ref)
            if ref in record.children or (known is not None and known.parent == record.ref):
                return
        for ref in via:
            if ref != record.ref:
                tracker.link(ref, record.ref)

    async def add_link(self, name1: str, name2: str, *domain: str) -> None:
        """Not supported.

        Args:
            name1: Ignored
            name2: Ignored
            *domain: Ignored

        Raises:
            MethodNotImplementedError: Always
        """
        raise MethodNotImplementedError("add_link")

    async def delete_link(self, name1: str, name2: str, *domain: str) -> None:
        """Not supported.

        Args:
            name1: Ignored
            name2: Ignored
            *domain: Ignored

        Raises:
            MethodNotImplementedError: Always
        """
        raise MethodNotImplementedError("delete_link")

    def synced_has_link(self, name1: str, name2: str, *domain: str) -> bool:
        """Not supported; use :meth:`has_link`.

        Args:
            name1: Ignored
            name2: Ignored
            *domain: Ignored

        Raises:
            MethodNotImplementedError: Always
        """
        raise MethodNotImplementedError("synced_has_link")

    async def get_roles(self, name: str, *domain: str) -> List[str]:
        """Not supported.

        Args:
            name: Ignored
            *domain: Ignored

        Raises:
            MethodNotImplementedError: Always
        """
        raise MethodNotImplementedError("get_roles")

    async def get_users(self, name: str, *domain: str) -> List[str]:
        """Not supported.

        Args:
            name: Ignored
            *domain: Ignored

        Raises:
            MethodNotImplementedError: Always
        """
        raise MethodNotImplementedError("get_users")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(directory={self.directory!r}, batch_size={self.batch_size})"
