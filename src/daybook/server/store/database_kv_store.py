import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from daybook.server.models import create_entry_model
from daybook.server.store.kv_store import KeyValueStore
from daybook.types import Item
from daybook.utils.errors import StoreError
from daybook.utils.keys import prefix_upper_bound


logger = logging.getLogger(__name__)


class DatabaseKeyValueStore(KeyValueStore):
    """SQLAlchemy-based implementation of KeyValueStore.

    Entries live in a two-column table whose binary primary key gives the
    ordering; a prefix scan is a single range query over that key.
    """

    engine: AsyncEngine
    async_session_maker: async_sessionmaker[AsyncSession]
    create_table: bool
    _initialized: bool

    def __init__(
        self,
        db_url: str,
        table_name: str = 'entries',
        create_table: bool = True,
    ) -> None:
        """Initializes the DatabaseKeyValueStore.

        Args:
            db_url: Database connection string.
            table_name: Name of the table holding the entries.
            create_table: If true, create the table on initialization.
        """
        logger.debug(
            f'Initializing DatabaseKeyValueStore with DB URL: {db_url}, '
            f'table: {table_name}'
        )
        self.db_url = db_url
        self.engine = create_async_engine(db_url, echo=False)
        self.async_session_maker = async_sessionmaker(
            self.engine, expire_on_commit=False
        )
        self.entry_model = create_entry_model(table_name)
        self.create_table = create_table
        self._initialized = False

    async def initialize(self) -> None:
        """Connects to the database and creates the table if needed.

        Raises:
            StoreError: If the database cannot be opened or created.
        """
        if self._initialized:
            return

        logger.debug('Initializing database schema...')
        try:
            async with self.engine.begin() as conn:
                if self.create_table:
                    await conn.run_sync(
                        self.entry_model.__table__.create, checkfirst=True
                    )
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f'Cannot open store at {self.db_url}: {e}') from e
        self._initialized = True
        logger.debug('Database schema initialized.')

    async def close(self) -> None:
        """Close the database connection engine."""
        if self.engine:
            logger.debug('Closing database engine.')
            await self.engine.dispose()
            self._initialized = False

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def put(self, key: bytes, value: bytes) -> None:
        """Inserts or replaces an entry within a single transaction."""
        await self._ensure_initialized()
        model = self.entry_model

        try:
            async with self.async_session_maker.begin() as session:
                result = await session.execute(
                    select(model.key).where(model.key == key)
                )
                if result.scalar_one_or_none() is not None:
                    logger.debug(f'Replacing entry {key!r}.')
                    await session.execute(
                        update(model).where(model.key == key).values(value=value)
                    )
                else:
                    session.add(model(key=key, value=value))
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f'Failed to put {key!r}: {e}') from e
        logger.debug(f'Stored {len(value)} bytes under key {key!r}.')

    async def get(self, key: bytes) -> bytes | None:
        await self._ensure_initialized()
        model = self.entry_model

        try:
            async with self.async_session_maker() as session:
                result = await session.execute(
                    select(model.value).where(model.key == key)
                )
                return result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f'Failed to get {key!r}: {e}') from e

    async def scan(self, prefix: bytes) -> list[Item]:
        """Returns the entries under `prefix` read in one transaction."""
        await self._ensure_initialized()
        model = self.entry_model

        stmt = select(model.key, model.value).where(model.key >= prefix)
        upper = prefix_upper_bound(prefix)
        if upper is not None:
            stmt = stmt.where(model.key < upper)
        stmt = stmt.order_by(model.key)

        try:
            async with self.async_session_maker.begin() as session:
                rows = (await session.execute(stmt)).all()
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f'Failed to scan {prefix!r}: {e}') from e

        items = [Item(key=bytes(k), value=bytes(v)) for k, v in rows]
        logger.debug(f'Prefix {prefix!r} matched {len(items)} item(s).')
        return items
