"""
Application container: database engines, service registry and ability engine.
"""
from typing import Any, Dict, Optional

from teamauth.core import config
from teamauth.core.database.base import Base
from teamauth.core.database.engine import create_engine, create_session_factory, init_db
from teamauth.core.errors import NotFound
from teamauth.core.service import Service
from teamauth.features.permissions.abilities import AbilityEngine
from teamauth.features.permissions.policies import create_ability_engine
from teamauth.utils import get_logger


log = get_logger(__name__)


class Application:
    """
    Holds the services of a running instance.

    Services are registered under a path. Nested services of an organisation
    live under '<organisation id>/<name>' and are bound to its own database.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        tenant_database_url: Optional[str] = None,
        abilities: Optional[AbilityEngine] = None
    ):
        self.database_url = database_url or config.SQLALCHEMY_DATABASE_URL
        self.tenant_database_url = tenant_database_url or config.TENANT_DATABASE_URL
        self.engine = create_engine(self.database_url)
        self.session_factory = create_session_factory(self.engine)
        self.abilities = abilities or create_ability_engine()
        self.services: Dict[str, Service] = {}

    def use(self, path: str, service: Service) -> Service:
        service.setup(self, path)
        self.services[path] = service
        log.debug("Service %s registered", path)
        return service

    def unuse(self, path: str) -> Optional[Service]:
        service = self.services.pop(path, None)
        if service is not None:
            log.debug("Service %s unregistered", path)
        return service

    def get_service(self, name: str, parent: Optional[Dict[str, Any]] = None) -> Any:
        """
        Resolve a service by name.

        Usage:
            app.get_service("organisations")
            app.get_service("groups", organisation)   # '<organisation id>/groups'
        """
        path = f"{parent['_id']}/{name}" if parent else name
        service = self.services.get(path)
        if service is None:
            raise NotFound(f"Service {path} not found")
        return service

    def has_service(self, name: str, parent: Optional[Dict[str, Any]] = None) -> bool:
        path = f"{parent['_id']}/{name}" if parent else name
        return path in self.services

    async def setup(self) -> None:
        """Create the main tables and restore the services of existing organisations."""
        log.info("Initializing database...")
        await init_db(self.engine, Base.metadata)
        organisations = self.services.get("organisations")
        if organisations is not None:
            await organisations.configure_existing_organisations()
        log.info("Database initialized successfully")

    async def close(self) -> None:
        databases = self.services.get("databases")
        if databases is not None:
            await databases.dispose()
        await self.engine.dispose()
