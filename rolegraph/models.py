# -*- coding: utf-8 -*-
"""Location: ./rolegraph/models.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Entity reference and directory query models.

This module defines the canonical identifiers used throughout group hierarchy
traversal, the group records decoded from catalog entities, and the closed set
of relation predicates the directory is queried with.

Examples:
    >>> from rolegraph.models import Ref
    >>> str(Ref.parse("User:Default/Mike"))
    'user:default/mike'
    >>> Ref.parse("group:default/team-a") == Ref.parse("team-a", default_kind="group")
    True
"""

# Standard
from enum import Enum
import logging
from typing import Any, ClassVar, Dict, List, NamedTuple, Optional, Tuple

# Third-Party
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


class InvalidEntityRefError(ValueError):
    """Raised when an entity reference cannot be parsed."""


class EntityKind(str, Enum):
    """Kinds of directory entities that take part in role resolution."""

    USER = "user"
    GROUP = "group"


class Relation(str, Enum):
    """Relation predicates supported by directory queries.

    Examples:
        >>> Relation.PARENT_OF.value
        'relations.parentOf'
    """

    MEMBER_OF = "relations.hasMember"
    PARENT_OF = "relations.parentOf"


class Ref(BaseModel):
    """Canonical identity of a directory entity.

    Refs are immutable and normalized to lower case on construction, so two
    refs compare equal exactly when their canonical strings match.

    Examples:
        >>> ref = Ref(kind="group", namespace="Default", name="Team-A")
        >>> str(ref)
        'group:default/team-a'
        >>> ref == Ref.parse("group:default/team-a")
        True
        >>> len({ref, Ref.parse("GROUP:default/TEAM-A")})
        1
    """

    model_config = ConfigDict(frozen=True)

    kind: EntityKind
    namespace: str = DEFAULT_NAMESPACE
    name: str

    @field_validator("kind", mode="before")
    @classmethod
    def _lower_kind(cls, v: Any) -> Any:
        """Accept kinds in any letter case.

        Args:
            v: Raw kind value

        Returns:
            The lower-cased kind when given a string
        """
        return v.lower() if isinstance(v, str) else v

    @field_validator("namespace", "name")
    @classmethod
    def _normalize_part(cls, v: str) -> str:
        """Strip and lower-case a ref component.

        Args:
            v: Raw component

        Returns:
            str: Normalized component

        Raises:
            ValueError: If the component is empty
        """
        v = v.strip().lower()
        if not v:
            raise ValueError("entity ref parts must not be empty")
        return v

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, text: str, default_kind: Optional[str] = None, default_namespace: str = DEFAULT_NAMESPACE) -> "Ref":
        """Parse ``[kind:][namespace/]name`` into a Ref.

        Args:
            text: Textual entity reference
            default_kind: Kind to use when the text carries none
            default_namespace: Namespace to use when the text carries none

        Returns:
            Ref: The parsed reference

        Raises:
            InvalidEntityRefError: If the text is empty, has no kind and no default
                was given, names an unknown kind, or has an empty component

        Examples:
            >>> str(Ref.parse("team-b", default_kind="group", default_namespace="ops"))
            'group:ops/team-b'
            >>> str(Ref.parse("user:mike"))
            'user:default/mike'
            >>> try:
            ...     Ref.parse("component:default/x")
            ... except InvalidEntityRefError as e:
            ...     print(e)
            Unsupported entity kind 'component' in ref 'component:default/x'
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidEntityRefError(f"Invalid entity ref: {text!r}")

        raw = text.strip()
        kind: Optional[str] = default_kind
        rest = raw
        if ":" in raw:
            kind, rest = raw.split(":", 1)

        namespace = default_namespace
        name = rest
        if "/" in rest:
            namespace, name = rest.split("/", 1)

        if not kind:
            raise InvalidEntityRefError(f"Entity ref '{raw}' has no kind")
        kind = kind.strip().lower()
        if kind not in {k.value for k in EntityKind}:
            raise InvalidEntityRefError(f"Unsupported entity kind '{kind}' in ref '{raw}'")
        if not namespace.strip() or not name.strip():
            raise InvalidEntityRefError(f"Entity ref '{raw}' has an empty namespace or name")

        return cls(kind=kind, namespace=namespace, name=name)


class GroupRecord(BaseModel):
    """A Group entity as returned by the directory.

    The ``parent`` and ``children`` fields come straight from the entity spec and
    may be missing or disagree with each other.

    Examples:
        >>> record = GroupRecord.from_entity({
        ...     "kind": "Group",
        ...     "metadata": {"name": "team-b", "namespace": "default"},
        ...     "spec": {"parent": "team-a", "children": ["team-c"]},
        ... })
        >>> str(record.ref), str(record.parent), [str(c) for c in record.children]
        ('group:default/team-b', 'group:default/team-a', ['group:default/team-c'])
    """

    model_config = ConfigDict(frozen=True)

    ref: Ref
    parent: Optional[Ref] = None
    children: Tuple[Ref, ...] = ()

    @classmethod
    def from_entity(cls, entity: Dict[str, Any]) -> "GroupRecord":
        """Build a record from a catalog entity document.

        A ``parent`` or ``children`` entry that is not a user or group ref is
        dropped, so one malformed relation cannot fail the whole check.

        Args:
            entity: Entity document restricted to the query projection

        Returns:
            GroupRecord: The decoded record

        Raises:
            InvalidEntityRefError: If the entity itself has no usable name

        Examples:
            >>> record = GroupRecord.from_entity({
            ...     "kind": "Group",
            ...     "metadata": {"name": "team-b"},
            ...     "spec": {"parent": "component:default/api", "children": ["team-c", "", "api:default/x"]},
            ... })
            >>> record.parent is None, [str(c) for c in record.children]
            (True, ['group:default/team-c'])
        """
        metadata = entity.get("metadata") or {}
        spec = entity.get("spec") or {}
        try:
            ref = Ref(kind=EntityKind.GROUP, namespace=metadata.get("namespace") or DEFAULT_NAMESPACE, name=metadata.get("name"))
        except ValueError as e:
            raise InvalidEntityRefError(f"Group entity without a usable name: {metadata!r}") from e

        parent = _relation_ref(ref, spec.get("parent"))
        children = tuple(child for child in (_relation_ref(ref, text) for text in spec.get("children") or []) if child is not None)
        return cls(ref=ref, parent=parent, children=children)


def _relation_ref(owner: Ref, text: Any) -> Optional[Ref]:
    """Parse a relation target of ``owner``, or None if it is missing or malformed.

    Args:
        owner: Group whose spec names the target
        text: Raw relation target

    Returns:
        Optional[Ref]: The target ref, defaulting to kind group and the owner's namespace
    """
    if not text:
        return None
    try:
        return Ref.parse(text, default_kind=EntityKind.GROUP.value, default_namespace=owner.namespace)
    except InvalidEntityRefError as e:
        logger.debug(f"Ignoring relation of {owner}: {e}")
        return None


class EntityQuery(BaseModel):
    """A directory query for Group entities related to a set of refs.

    Only the relations in :class:`Relation` are expressible, and at least one
    ref is required.

    Examples:
        >>> query = EntityQuery(relation=Relation.MEMBER_OF, refs=[Ref.parse("user:default/mike")])
        >>> query.filter_expression()
        'kind=group,relations.hasMember=user:default/mike'
        >>> try:
        ...     EntityQuery(relation="relations.ownedBy", refs=[Ref.parse("user:default/mike")])
        ... except ValueError:
        ...     print("rejected")
        rejected
    """

    model_config = ConfigDict(frozen=True)

    PROJECTION: ClassVar[Tuple[str, ...]] = ("metadata.name", "kind", "metadata.namespace", "spec.parent", "spec.children")

    kind: EntityKind = EntityKind.GROUP
    relation: Relation
    refs: List[Ref] = Field(min_length=1)

    def filter_expression(self) -> str:
        """Render the query filter in catalog filter syntax.

        Returns:
            str: Comma separated ``key=value`` conditions
        """
        conditions = [f"kind={self.kind.value}"]
        conditions.extend(f"{self.relation.value}={ref}" for ref in self.refs)
        return ",".join(conditions)

    def to_params(self) -> Dict[str, str]:
        """Build HTTP query parameters for the catalog entities endpoint.

        Returns:
            Dict[str, str]: ``filter`` and ``fields`` parameters

        Examples:
            >>> query = EntityQuery(relation=Relation.PARENT_OF, refs=[Ref.parse("group:default/team-b")])
            >>> query.to_params()["fields"]
            'metadata.name,kind,metadata.namespace,spec.parent,spec.children'
        """
        return {"filter": self.filter_expression(), "fields": ",".join(self.PROJECTION)}


class CycleEdge(NamedTuple):
    """An ancestry edge that would close a cycle in the group graph."""

    ancestor: Ref
    descendant: Ref

    def as_pair(self) -> List[str]:
        """Return the edge as a pair of canonical ref strings.

        Returns:
            List[str]: ``[ancestor, descendant]``
        """
        return [str(self.ancestor), str(self.descendant)]
