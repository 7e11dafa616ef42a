"""
Members of an organisation, a view over the users holding an authorisation on it.
"""
from typing import Any, Dict, List

from teamauth.core.errors import MethodNotAllowed, NotFound
from teamauth.core.service import HookContext, Service


class MembersService(Service):

    def __init__(self, organisation_id: str):
        super().__init__()
        self.context = organisation_id

    async def member_ids(self) -> List[str]:
        authorisations = await self.app.get_service("authorisations").find({
            "scope": "organisations",
            "resource": self.context,
        })
        return [authorisation["subject_id"] for authorisation in authorisations]

    async def _find(self, context: HookContext) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"_id": {"$in": await self.member_ids()}}
        if context.params.query:
            query = {"$and": [query, context.params.query]}
        return await self.app.get_service("users").find(query)

    async def _ensure_member(self, id: str) -> None:
        if id not in await self.member_ids():
            raise NotFound(f"No member {id} in organisation {self.context}")

    async def _get(self, context: HookContext) -> Dict[str, Any]:
        await self._ensure_member(context.id)
        return await self.app.get_service("users").get(context.id)

    async def _patch(self, context: HookContext) -> Dict[str, Any]:
        await self._ensure_member(context.id)
        return await self.app.get_service("users").patch(context.id, context.data)

    async def _create(self, context: HookContext):
        raise MethodNotAllowed("Members join an organisation through authorisations")

    async def _remove(self, context: HookContext):
        raise MethodNotAllowed("Members leave an organisation through authorisations")
