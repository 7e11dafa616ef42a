"""
Grant rules and the builder hooks append them to.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

# Composite operations and what they stand for
ALIASES: Dict[str, Tuple[str, ...]] = {
    "all": ("read", "create", "update", "remove"),
    "update": ("patch",),
    "read": ("get", "find"),
    "remove": ("delete",),
}

# Resource type matching any type, including untyped values
ANY_TYPE = "all"

Operations = Union[str, Iterable[str]]
ResourceTypes = Union[str, Iterable[str]]
Conditions = Optional[Dict[str, Any]]


def _as_tuple(values: Union[str, Iterable[str]]) -> Tuple[str, ...]:
    if isinstance(values, str):
        return (values,)
    return tuple(values)


def expand_operations(operations: Operations) -> Tuple[str, ...]:
    """
    Resolve operations to leaf operations through the alias table.

    >>> expand_operations("all")
    ('get', 'find', 'create', 'patch', 'delete')
    """
    leaves: List[str] = []
    pending = list(_as_tuple(operations))
    while pending:
        operation = pending.pop(0)
        if operation in ALIASES:
            pending[0:0] = ALIASES[operation]
        elif operation not in leaves:
            leaves.append(operation)
    return tuple(leaves)


@dataclass(frozen=True)
class Rule:
    """A single can/cannot grant."""
    operations: Tuple[str, ...]
    resource_types: Tuple[str, ...]
    conditions: Conditions = field(default=None, hash=False)
    inverted: bool = False

    @property
    def leaves(self) -> Tuple[str, ...]:
        return expand_operations(self.operations)

    def applies_to(self, resource_type: Optional[str]) -> bool:
        return ANY_TYPE in self.resource_types or (
            resource_type is not None and resource_type in self.resource_types
        )

    def to_dict(self) -> Dict[str, Any]:
        rule: Dict[str, Any] = {
            "operations": list(self.operations),
            "resource_types": list(self.resource_types),
            "inverted": self.inverted,
        }
        if self.conditions is not None:
            rule["conditions"] = self.conditions
        return rule


class RuleBuilder:
    """
    Accumulates rules while the ability hooks run.

    Hooks receive the bound `can` and `cannot` methods, rules are kept in call
    order since later rules take precedence when matching.
    """

    def __init__(self):
        self.rules: List[Rule] = []

    def can(self, operations: Operations, resource_types: ResourceTypes, conditions: Conditions = None) -> Rule:
        return self._add(operations, resource_types, conditions, inverted=False)

    def cannot(self, operations: Operations, resource_types: ResourceTypes, conditions: Conditions = None) -> Rule:
        return self._add(operations, resource_types, conditions, inverted=True)

    def _add(self, operations, resource_types, conditions, inverted: bool) -> Rule:
        rule = Rule(
            operations=_as_tuple(operations),
            resource_types=_as_tuple(resource_types),
            conditions=dict(conditions) if conditions else None,
            inverted=inverted,
        )
        self.rules.append(rule)
        return rule
