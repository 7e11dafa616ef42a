"""
Provisioning of organisation databases.
"""
from dataclasses import dataclass
from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from teamauth.core.database.base import TenantBase
from teamauth.core.database.engine import create_engine, create_session_factory, drop_db, init_db, sqlite_path
from teamauth.core.errors import BadRequest, NotFound
from teamauth.core.service import HookContext, Service
from teamauth.utils import get_logger


log = get_logger(__name__)


@dataclass
class TenantDatabase:
    name: str
    url: str
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    def to_document(self) -> Dict[str, Any]:
        return {"_id": self.name, "name": self.name, "url": self.url}


class DatabasesService(Service):
    """
    Creates and removes the dedicated database of an organisation.

    Both operations are idempotent: creating an existing database returns it
    and removing an unknown one only cleans what may be left on disk.
    """

    def __init__(self, url_template: str):
        super().__init__()
        self.url_template = url_template
        self.databases: Dict[str, TenantDatabase] = {}

    def url_for(self, name: str) -> str:
        return self.url_template.format(name=name)

    def database(self, name: str) -> TenantDatabase:
        database = self.databases.get(name)
        if database is None:
            raise NotFound(f"Database {name} not found")
        return database

    async def _find(self, context: HookContext):
        return [database.to_document() for database in self.databases.values()]

    async def _get(self, context: HookContext):
        return self.database(context.id).to_document()

    async def _create(self, context: HookContext) -> Dict[str, Any]:
        name = (context.data or {}).get("name")
        if not name:
            raise BadRequest("A database name is required")
        database = self.databases.get(name)
        if database is None:
            url = self.url_for(name)
            engine = create_engine(url)
            await init_db(engine, TenantBase.metadata)
            database = TenantDatabase(name, url, engine, create_session_factory(engine))
            self.databases[name] = database
            log.info("Database %s created", name)
        else:
            log.debug("Database %s already exists", name)
        return database.to_document()

    async def _remove(self, context: HookContext) -> Dict[str, Any]:
        name = context.id
        url = self.url_for(name)
        database = self.databases.pop(name, None)
        if database is not None:
            await drop_db(database.engine, TenantBase.metadata)
            await database.engine.dispose()
        path = sqlite_path(url)
        if path is not None and path.exists():
            path.unlink()
        log.info("Database %s removed", name)
        return {"_id": name, "name": name, "url": url}

    async def dispose(self) -> None:
        for database in self.databases.values():
            await database.engine.dispose()
