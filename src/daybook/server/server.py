import contextlib
import logging
import os
import tempfile

from collections.abc import AsyncIterator
from typing import Any

from starlette.applications import Starlette

from daybook.config import DaybookConfig
from daybook.server.apps.starlette_app import DaybookStarletteApplication
from daybook.server.store import DatabaseKeyValueStore, KeyValueStore
from daybook.server.tasks.task_service import TaskService
from daybook.utils.keys import KeyScheme


logger = logging.getLogger(__name__)


def temp_file_path(prefix: str = 'daybook-') -> str:
    """Returns the path of a fresh temporary file that does not exist yet."""
    fd, path = tempfile.mkstemp(prefix=prefix, suffix='.db')
    os.close(fd)
    os.remove(path)
    return path


class DaybookServer:
    """Wires a store, key scheme and task service into a runnable app.

    When the config names no database, the store is a temporary SQLite file
    that lives only as long as the application.
    """

    def __init__(
        self, config: DaybookConfig, store: KeyValueStore | None = None
    ):
        """Initializes the DaybookServer.

        Args:
            config: The server settings.
            store: A ready-made store; built from `config` when omitted.
        """
        self.config = config
        self._temp_path: str | None = None
        if store is None:
            store = self._build_store()
        self.store = store
        self.task_service = TaskService(store, KeyScheme(config.groups))

    def _build_store(self) -> KeyValueStore:
        db_url = self.config.database_url
        if not db_url:
            self._temp_path = temp_file_path()
            db_url = f'sqlite+aiosqlite:///{self._temp_path}'
            logger.info(f'DATABASE_URL not set, using temporary store {self._temp_path}')
        return DatabaseKeyValueStore(db_url, table_name=self.config.table_name)

    @contextlib.asynccontextmanager
    async def lifespan(self, app: Starlette) -> AsyncIterator[None]:
        """Opens the store for the application's lifetime.

        A `StoreError` raised while opening aborts startup.
        """
        try:
            await self.store.initialize()
            logger.info(f'Serving groups {self.config.groups}')
            yield
        finally:
            await self.store.close()
            if self._temp_path and os.path.exists(self._temp_path):
                os.remove(self._temp_path)
                logger.debug(f'Removed temporary store {self._temp_path}')

    def app(self, **kwargs: Any) -> Starlette:
        """Builds and returns the Starlette application instance."""
        logger.info('Building daybook application instance')
        return DaybookStarletteApplication(self.task_service).build(
            lifespan=self.lifespan, **kwargs
        )

    def start(self, **kwargs: Any):
        """Starts the server using Uvicorn."""
        logger.info('Starting daybook server')
        import uvicorn

        uvicorn.run(
            self.app(),
            host=kwargs.pop('host', self.config.host),
            port=kwargs.pop('port', self.config.port),
            **kwargs,
        )
