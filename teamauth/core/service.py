"""
Service layer.

A service exposes find/get/create/patch/remove over documents and runs
registered hooks around each method:

    service.add_hooks("after", "create", create_organisation_services)

Before hooks may raise to abort the call, after hooks see the result in
`context.result`.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from teamauth.core.errors import NotFound
from teamauth.features.permissions.query import filter_to_clause

if TYPE_CHECKING:
    from teamauth.core.application import Application


METHODS = ("find", "get", "create", "patch", "remove")


@dataclass
class HookParams:
    """
    Call parameters.

    `subjects` and `resource` are passed as documents when the caller already
    holds them, authorisation calls then do not have to load them again.
    """
    user: Optional[Dict[str, Any]] = None
    force: bool = False
    query: Dict[str, Any] = field(default_factory=dict)
    subjects: Optional[List[Dict[str, Any]]] = None
    subjects_service: Optional["Service"] = None
    resource: Optional[Dict[str, Any]] = None
    resources_service: Optional["Service"] = None


@dataclass
class HookContext:
    app: "Application"
    service: "Service"
    method: str
    params: HookParams
    id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    result: Any = None
    # Open transaction shared by before hooks and the call itself, when the service uses one
    session: Optional[AsyncSession] = None


Hook = Callable[[HookContext], Awaitable[Any]]


class Service:
    """Base service, subclasses implement the underscored methods they support."""

    def __init__(self):
        self.app: Optional["Application"] = None
        self.path: Optional[str] = None
        # Parent organisation ID of nested services
        self.context: Optional[str] = None
        self._hooks: Dict[str, Dict[str, List[Hook]]] = {
            "before": defaultdict(list),
            "after": defaultdict(list),
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(path={self.path!r})>"

    def setup(self, app: "Application", path: str) -> None:
        self.app = app
        self.path = path

    def add_hooks(self, stage: str, method: str, *hooks: Hook) -> None:
        methods = METHODS if method == "all" else (method,)
        for name in methods:
            self._hooks[stage][name].extend(hooks)

    async def run_hooks(self, stage: str, context: HookContext) -> None:
        for hook in self._hooks[stage][context.method]:
            await hook(context)

    def _context(self, method: str, params: Optional[HookParams], **kwargs) -> HookContext:
        return HookContext(app=self.app, service=self, method=method, params=params or HookParams(), **kwargs)

    async def _dispatch(self, context: HookContext, call: Callable[[HookContext], Awaitable[Any]]) -> Any:
        await self.run_hooks("before", context)
        context.result = await call(context)
        await self.run_hooks("after", context)
        return context.result

    async def find(self, query: Optional[Dict[str, Any]] = None, params: Optional[HookParams] = None) -> List[Dict[str, Any]]:
        params = params or HookParams()
        if query is not None:
            params.query = query
        return await self._dispatch(self._context("find", params), self._find)

    async def get(self, id: str, params: Optional[HookParams] = None) -> Dict[str, Any]:
        return await self._dispatch(self._context("get", params, id=id), self._get)

    async def create(self, data: Dict[str, Any], params: Optional[HookParams] = None) -> Any:
        return await self._dispatch(self._context("create", params, data=data), self._create)

    async def patch(self, id: str, data: Dict[str, Any], params: Optional[HookParams] = None) -> Dict[str, Any]:
        return await self._dispatch(self._context("patch", params, id=id, data=data), self._patch)

    async def remove(self, id: str, params: Optional[HookParams] = None) -> Any:
        return await self._dispatch(self._context("remove", params, id=id), self._remove)

    async def _find(self, context: HookContext):
        raise NotImplementedError

    async def _get(self, context: HookContext):
        raise NotImplementedError

    async def _create(self, context: HookContext):
        raise NotImplementedError

    async def _patch(self, context: HookContext):
        raise NotImplementedError

    async def _remove(self, context: HookContext):
        raise NotImplementedError


class SQLService(Service):
    """Document service backed by one SQLAlchemy model."""

    def __init__(self, model, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.model = model
        self.session_factory = session_factory

    @property
    def name(self) -> str:
        return self.model.__tablename__

    async def _find(self, context: HookContext) -> List[Dict[str, Any]]:
        stmt = select(self.model)
        if context.params.query:
            stmt = stmt.where(filter_to_clause(self.model, context.params.query))
        async with self.session_factory() as db:
            result = await db.execute(stmt)
            return [record.to_document() for record in result.scalars().all()]

    async def _load(self, db: AsyncSession, id: str):
        record = await db.get(self.model, id)
        if record is None:
            raise NotFound(f"No record found for id '{id}' in {self.name}")
        return record

    async def _get(self, context: HookContext) -> Dict[str, Any]:
        async with self.session_factory() as db:
            record = await self._load(db, context.id)
            return record.to_document()

    async def _create(self, context: HookContext) -> Dict[str, Any]:
        async with self.session_factory() as db:
            record = self.model.from_document(context.data)
            db.add(record)
            await db.commit()
            await db.refresh(record)
            return record.to_document()

    async def _patch(self, context: HookContext) -> Dict[str, Any]:
        async with self.session_factory() as db:
            record = await self._load(db, context.id)
            record.update_from_document(context.data)
            await db.commit()
            await db.refresh(record)
            return record.to_document()

    async def _remove(self, context: HookContext) -> Dict[str, Any]:
        async with self.session_factory() as db:
            record = await self._load(db, context.id)
            document = record.to_document()
            await db.delete(record)
            await db.commit()
            return document
