"""
Ability computation.

An AbilityEngine is built with an ordered list of hooks. Computing the
abilities of a subject replays every hook against a fresh RuleBuilder and
compiles the collected rules into an immutable AbilitySet.

Hooks have the signature `hook(subject, can, cannot)`, they read the subject
and append rules, nothing else. The subject is None for anonymous callers.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from teamauth.features.permissions.query import matches_conditions, remove_context, rules_to_query
from teamauth.features.permissions.rules import Rule, RuleBuilder, expand_operations
from teamauth.utils import get_logger


log = get_logger(__name__)

AbilityHook = Callable[[Any, Callable[..., Rule], Callable[..., Rule]], None]


@dataclass(frozen=True)
class Resource:
    """
    A resource instance paired with its declared type.

    Ability checks never look for a type on the data itself, an instance is
    always checked through this wrapper.
    """
    type: str
    data: Dict[str, Any] = field(default_factory=dict, hash=False)


class AbilitySet:
    """
    Compiled, read-only rule set of one subject.

    Rules are kept in definition order and indexed by leaf operation.
    Matching scans the candidate rules from the most recent one and the first
    rule matching decides, so a later `cannot` overrides an earlier `can`.
    """

    def __init__(self, rules: Iterable[Rule]):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._index: Dict[str, List[Rule]] = {}
        for rule in self._rules:
            for leaf in rule.leaves:
                self._index.setdefault(leaf, []).append(rule)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"<AbilitySet(rules={len(self._rules)})>"

    @staticmethod
    def _target(subject: Union[str, Resource, Any], data: Optional[Dict[str, Any]]):
        # Returns (type, data, is_type_level)
        if isinstance(subject, Resource):
            return subject.type, subject.data, False
        if isinstance(subject, str):
            if data is None:
                return subject, None, True
            return subject, data, False
        # Untyped value, only rules declared on any type can apply
        return None, subject if isinstance(subject, dict) else {}, False

    def _relevant_rule(self, leaf: str, resource_type: Optional[str], data, type_level: bool) -> Optional[Rule]:
        for rule in reversed(self._index.get(leaf, ())):
            if not rule.applies_to(resource_type):
                continue
            if not rule.conditions:
                return rule
            if type_level:
                # Checking a type asks whether some instance may be allowed,
                # conditional grants count while conditional denials do not
                if not rule.inverted:
                    return rule
                continue
            if matches_conditions(rule.conditions, data):
                return rule
        return None

    def can(self, operation: str, subject: Union[str, Resource, Any], data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Check an operation on a resource type or instance.

        Usage:
            abilities.can("read", "organisations")                       # type level
            abilities.can("update", "organisations", {"_id": org_id})     # instance
            abilities.can("update", Resource("organisations", org))      # instance
        """
        resource_type, target, type_level = self._target(subject, data)
        for leaf in expand_operations(operation):
            rule = self._relevant_rule(leaf, resource_type, target, type_level)
            if rule is not None and not rule.inverted:
                return True
        return False

    def cannot(self, operation: str, subject: Union[str, Resource, Any], data: Optional[Dict[str, Any]] = None) -> bool:
        return not self.can(operation, subject, data)

    def rules_for(self, operation: str, resource_type: str) -> List[Rule]:
        """Rules concerning an operation on a type, most recent first."""
        leaves = set(expand_operations(operation))
        return [
            rule for rule in reversed(self._rules)
            if rule.applies_to(resource_type) and leaves.intersection(rule.leaves)
        ]

    def serialize(self) -> List[Dict[str, Any]]:
        return [rule.to_dict() for rule in self._rules]


class AbilityEngine:
    """
    Computes ability sets from an explicit, ordered list of hooks.

    The hook list is given at construction. Modules loaded later may extend it
    with register_hook, hooks then run in registration order. Registering the
    same hook twice keeps a single entry.
    """

    def __init__(self, hooks: Iterable[AbilityHook] = ()):
        self._hooks: List[AbilityHook] = []
        for hook in hooks:
            self.register_hook(hook)

    @property
    def hooks(self) -> Tuple[AbilityHook, ...]:
        return tuple(self._hooks)

    def register_hook(self, hook: AbilityHook) -> None:
        if hook not in self._hooks:
            self._hooks.append(hook)

    def unregister_hook(self, hook: AbilityHook) -> None:
        self._hooks = [registered for registered in self._hooks if registered is not hook]

    def compute_abilities(self, subject: Any) -> AbilitySet:
        builder = RuleBuilder()
        for hook in self._hooks:
            hook(subject, builder.can, builder.cannot)
        abilities = AbilitySet(builder.rules)
        log.debug("Computed %d rules for subject %s", len(abilities), getattr(subject, "id", None))
        return abilities


# ============================================================================
# Helpers used by request authorization
# ============================================================================

def has_service_abilities(abilities: Optional[AbilitySet], service: Any) -> bool:
    """
    Check access to a service.

    A service is identified by its path, not its name: every organisation has
    its own 'groups' service reachable as '<organisation id>/groups'.
    """
    if abilities is None:
        return False
    path = service if isinstance(service, str) else service.path
    return abilities.can("service", path)


def has_resource_abilities(
    abilities: Optional[AbilitySet],
    operation: str,
    resource_type: str,
    context: Optional[str] = None,
    resource: Optional[Dict[str, Any]] = None
) -> bool:
    """Check an operation on a resource, optionally within a parent organisation."""
    if abilities is None:
        return False
    data = dict(resource or {})
    # Virtual context, never stored on the resource itself
    if context:
        data["context"] = context
    return abilities.can(operation, Resource(resource_type, data))


def query_for_abilities(abilities: Optional[AbilitySet], operation: str, resource_type: str) -> Optional[Dict[str, Any]]:
    """
    Build the filter selecting the resources an operation is allowed on.

    Returns {} when no ability set is available and None when the rules
    allow nothing at all.
    """
    if abilities is None:
        return {}
    query = rules_to_query(abilities.rules_for(operation, resource_type))
    if query is None:
        return None
    return remove_context(query)
