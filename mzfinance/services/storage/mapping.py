"""
Explicit column mappings between local models and remote rows.

Each synchronized entity has a table naming every model field and the
remote column that stores it. Translation goes through these tables only,
so a field that is renamed remotely (``Card.limit`` is ``credit_limit``
because LIMIT is reserved in SQL) cannot be silently corrupted by a
generic casing transform.

Rows pushed to the remote store are stamped with the household owner id.
Month configs have no local id; their remote id is derived as
``mconf_<ownerId>_<monthCode>``.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from mzfinance.models.finance import (
    Asset,
    Card,
    Category,
    FixedEntry,
    Goal,
    Investment,
    MonthConfig,
    Transaction,
)
from mzfinance.models.user import User
from mzfinance.services.storage.interface import Row


ModelT = TypeVar("ModelT", bound=BaseModel)

OWNER_COLUMN = "user_id"


class MappingError(ValueError):
    """A model field has no remote column (or vice versa)."""
    pass


class EntityMapping(Generic[ModelT]):
    """Bidirectional translation between one model and one remote table."""

    def __init__(
        self,
        table: str,
        model: type[ModelT],
        columns: dict[str, str],
        owner_column: Optional[str] = OWNER_COLUMN,
        id_factory: Optional[Callable[[ModelT, str], str]] = None,
    ):
        serialized = {
            name for name, field in model.model_fields.items() if not field.exclude
        }
        missing = serialized - set(columns)
        unknown = set(columns) - set(model.model_fields)
        if missing or unknown:
            raise MappingError(
                f"Column map for {table} does not match {model.__name__}: "
                f"missing={sorted(missing)} unknown={sorted(unknown)}"
            )
        if len(set(columns.values())) != len(columns):
            raise MappingError(f"Column map for {table} reuses a remote column")

        self.table = table
        self.model = model
        self.columns = dict(columns)
        self.fields = {column: field for field, column in columns.items()}
        self.owner_column = owner_column
        self._id_factory = id_factory

    def row_id(self, item: ModelT, owner_id: str) -> str:
        """Remote primary key of an item."""
        if self._id_factory is not None:
            return self._id_factory(item, owner_id)
        return getattr(item, "id")

    def to_remote(self, item: ModelT, owner_id: Optional[str] = None) -> Row:
        """Translate a model into a remote row, stamping the owner."""
        data = item.model_dump(mode="json")
        row: Row = {self.columns[name]: value for name, value in data.items()}
        if self.owner_column and owner_id is not None:
            row[self.owner_column] = owner_id
        if "id" not in row and owner_id is not None:
            row["id"] = self.row_id(item, owner_id)
        return row

    def from_remote(self, row: Row) -> ModelT:
        """
        Translate a remote row into a model.

        Columns without a mapping (owner, timestamps, synthesized ids) are
        dropped. NULL columns fall back to the model defaults.
        """
        data: dict[str, Any] = {}
        for column, value in row.items():
            field = self.fields.get(column)
            if field is None or value is None:
                continue
            data[field] = value
        return self.model.model_validate(data)


def _month_config_id(config: MonthConfig, owner_id: str) -> str:
    return f"mconf_{owner_id}_{config.month_code}"


CATEGORY_MAPPING = EntityMapping("categories", Category, {
    "id": "id",
    "name": "name",
    "icon": "icon",
    "subcategories": "subcategories",
    "is_system": "is_system",
})

CARD_MAPPING = EntityMapping("cards", Card, {
    "id": "id",
    "name": "name",
    "bank": "bank",
    "limit": "credit_limit",
    "closing_day": "closing_day",
    "color": "color",
})

GOAL_MAPPING = EntityMapping("goals", Goal, {
    "id": "id",
    "name": "name",
    "icon": "icon",
    "target_value": "target_value",
    "saved_value": "saved_value",
})

FIXED_ENTRY_MAPPING = EntityMapping("fixed_entries", FixedEntry, {
    "id": "id",
    "description": "description",
    "day": "day",
    "type": "type",
    "value": "value",
    "category_id": "category_id",
    "payment_method": "payment_method",
    "notes": "notes",
    "active": "active",
})

TRANSACTION_MAPPING = EntityMapping("transactions", Transaction, {
    "id": "id",
    "month_code": "month_code",
    "description": "description",
    "day": "day",
    "type": "type",
    "value": "value",
    "category_id": "category_id",
    "payment_method": "payment_method",
    "card_id": "card_id",
    "paid": "paid",
    "payment_date": "payment_date",
    "goal_id": "goal_id",
    "investment_id": "investment_id",
    "notes": "notes",
    "is_fixed": "is_fixed",
})

ASSET_MAPPING = EntityMapping("assets", Asset, {
    "id": "id",
    "description": "description",
    "objective": "objective",
    "bank": "bank",
    "value": "value",
    "updated_at": "updated_at",
    "liquidity": "liquidity",
    "can_touch": "can_touch",
})

INVESTMENT_MAPPING = EntityMapping("investments", Investment, {
    "id": "id",
    "type": "type",
    "value": "value",
    "broker": "broker",
    "updated_at": "updated_at",
    "category": "category",
})

MONTH_CONFIG_MAPPING = EntityMapping("month_configs", MonthConfig, {
    "month_code": "month_code",
    "income": "income",
    "needs_percent": "needs_percent",
    "desires_percent": "desires_percent",
    "savings_percent": "savings_percent",
}, id_factory=_month_config_id)


def profile_mapping(table: str = "profiles") -> EntityMapping[User]:
    """Profile rows are not owner-stamped; the household link is responsible_id."""
    return EntityMapping(table, User, {
        "id": "id",
        "name": "name",
        "username": "username",
        "email": "email",
        "role": "role",
        "permissions": "permissions",
        "responsible_id": "responsible_id",
    }, owner_column=None)


# Synchronized tables, in fetch order
MAPPINGS: dict[str, EntityMapping] = {
    mapping.table: mapping
    for mapping in (
        CATEGORY_MAPPING,
        CARD_MAPPING,
        GOAL_MAPPING,
        FIXED_ENTRY_MAPPING,
        TRANSACTION_MAPPING,
        ASSET_MAPPING,
        INVESTMENT_MAPPING,
        MONTH_CONFIG_MAPPING,
    )
}

TABLES = list(MAPPINGS)
