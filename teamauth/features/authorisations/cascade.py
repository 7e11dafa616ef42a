"""
Ordered pipelines of lifecycle side effects.

A cascade runs its steps one after the other, each step starting only when
the previous one is done. Steps are not rolled back: when one fails the
error is logged with the resource ID and raised as CascadeError, naming
the steps already committed. Steps are written to be safe to run again.
"""
from typing import Any, Awaitable, Callable, Optional, Sequence

from teamauth.core.errors import CascadeError
from teamauth.core.service import HookContext
from teamauth.utils import get_logger


log = get_logger(__name__)

Step = Callable[[HookContext], Awaitable[Any]]


def _resource_id(context: HookContext) -> Optional[str]:
    for source in (context.result, context.params.resource):
        if isinstance(source, dict) and source.get("_id") is not None:
            return str(source["_id"])
    return context.id


class Cascade:
    """
    A named sequence of steps usable as an after hook.

    Usage:
        service.add_hooks("after", "create", Cascade("organisation created", [
            create_organisation_database,
            create_organisation_services,
            create_organisation_authorisations,
        ]))
    """

    def __init__(self, name: str, steps: Sequence[Step]):
        self.name = name
        self.steps = tuple(steps)

    def __repr__(self) -> str:
        return f"<Cascade({self.name!r}, steps={[step.__name__ for step in self.steps]})>"

    async def __call__(self, context: HookContext) -> HookContext:
        resource_id = _resource_id(context)
        completed = []
        for step in self.steps:
            log.debug("Cascade '%s' running %s for resource %s", self.name, step.__name__, resource_id)
            try:
                await step(context)
            except Exception as error:
                log.error(
                    "Cascade '%s' failed at %s for resource %s after %s: %s",
                    self.name, step.__name__, resource_id, completed or "no step", error
                )
                raise CascadeError(self.name, step.__name__, resource_id, completed, error) from error
            completed.append(step.__name__)
        log.info("Cascade '%s' done for resource %s", self.name, resource_id)
        return context
