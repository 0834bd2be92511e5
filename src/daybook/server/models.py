from typing_extensions import override

from sqlalchemy import LargeBinary
from sqlalchemy.dialects.mysql import VARBINARY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# MySQL cannot index an unbounded BLOB, so keys use a bounded VARBINARY there.
KeyType = LargeBinary().with_variant(VARBINARY(255), 'mysql')


class Base(DeclarativeBase):
    """Base class for declarative models in daybook."""


class EntryMixin:
    """Mixin providing the key and value columns of an ordered key-value table."""

    key: Mapped[bytes] = mapped_column(KeyType, primary_key=True)
    value: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)

    @override
    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}(key={self.key!r}, size={len(self.value or b"")})>'


_entry_models: dict[tuple[str, type[DeclarativeBase]], type] = {}


def create_entry_model(
    table_name: str = 'entries', base: type[DeclarativeBase] = Base
) -> type:
    """Returns the EntryModel class mapped to `table_name`.

    Models are cached per table name and base, so asking twice for the same
    table returns the same class instead of redefining the table.

    Args:
        table_name: Name of the database table. Defaults to 'entries'.
        base: Base declarative class to use. Defaults to daybook's Base.

    Example:
        TodoModel = create_entry_model('todos')
    """
    cache_key = (table_name, base)
    if cache_key in _entry_models:
        return _entry_models[cache_key]

    class EntryModel(EntryMixin, base):
        __tablename__ = table_name

    EntryModel.__name__ = f'EntryModel_{table_name}'
    EntryModel.__qualname__ = f'EntryModel_{table_name}'

    _entry_models[cache_key] = EntryModel
    return EntryModel

