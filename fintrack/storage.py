from __future__ import annotations

from dataclasses import asdict, replace
from typing import Any, Generic, List, Optional, Type

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.pool import StaticPool

from fintrack.models import Bill, Budget, Income, Investment, Record, Transaction

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), unique=True, nullable=False),
    Column("hashed_password", String(255), nullable=False),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("amount", String(32), nullable=False),
    Column("description", Text, nullable=False),
    Column("category", String(255)),
    Column("type", String(20), nullable=False),
    Column("date", String(10), nullable=False),
    Column("payment_method", String(100)),
    Column("context_tag", String(100)),
    Column("intent_tag", String(100)),
    Column("confidence_indicator", String(50)),
    Column("goal_impact", Text),
    Column("is_planned", Boolean),
    Column("repeat_pattern", String(20)),
    Column("parent_transaction_id", Integer, ForeignKey("transactions.id")),
    Column("recurring_group_key", String(64)),
    Column("created_at", DateTime),
)

bills = Table(
    "bills",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("amount", String(32), nullable=False),
    Column("category", String(255)),
    Column("due_date", String(10), nullable=False),
    Column("status", String(20), nullable=False),
    Column("is_recurring", Boolean, nullable=False),
    Column("auto_pay_enabled", Boolean, nullable=False),
    Column("icon", String(100)),
    Column("color", String(50)),
)

incomes = Table(
    "incomes",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("source", String(255), nullable=False),
    Column("amount", String(32), nullable=False),
    Column("frequency", String(50), nullable=False),
    Column("is_active", Boolean, nullable=False),
)

investments = Table(
    "investments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("symbol", String(50), nullable=False),
    Column("name", String(255), nullable=False),
    Column("type", String(50), nullable=False),
    Column("shares", String(32)),
    Column("avg_cost", String(32)),
    Column("current_value", String(32)),
    Column("pf_current_company", String(32)),
    Column("pf_previous_company", String(32)),
    Column("pf_current_age", String(8)),
)

budgets = Table(
    "budgets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("category", String(255), nullable=False),
    Column("amount", String(32), nullable=False),
    Column("period", String(50), nullable=False),
    Column("spent", String(32), nullable=False),
)


def create_db_engine(database_url: str) -> Engine:
    if not database_url.startswith("sqlite"):
        return create_engine(database_url)
    connect_args = {"check_same_thread": False}
    if database_url in {"sqlite://", "sqlite:///:memory:"}:
        return create_engine(database_url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(database_url, connect_args=connect_args)


class Repository(Generic[Record]):
    """Owner-scoped persistence primitives for one record type."""

    def __init__(self, table: Table, record_type: Type[Record]) -> None:
        self.table = table
        self.record_type = record_type

    def find_by_user_id(self, conn: Connection, user_id: int) -> List[Record]:
        rows = conn.execute(
            select(self.table)
            .where(self.table.c.user_id == user_id)
            .order_by(self.table.c.id.asc())
        ).mappings().all()
        return [self._to_record(row) for row in rows]

    def find_by_id(self, conn: Connection, record_id: int) -> Optional[Record]:
        row = conn.execute(
            select(self.table).where(self.table.c.id == record_id)
        ).mappings().first()
        return self._to_record(row) if row else None

    def exists(self, conn: Connection, record_id: int) -> bool:
        return conn.execute(
            select(self.table.c.id).where(self.table.c.id == record_id)
        ).first() is not None

    def save(self, conn: Connection, record: Record) -> Record:
        values = self._to_values(record)
        if record.id is None:
            result = conn.execute(insert(self.table).values(**values))
            return replace(record, id=result.inserted_primary_key[0])
        conn.execute(
            update(self.table).where(self.table.c.id == record.id).values(**values)
        )
        return record

    def delete(self, conn: Connection, record_id: int) -> bool:
        result = conn.execute(delete(self.table).where(self.table.c.id == record_id))
        return result.rowcount > 0

    def _to_record(self, row: Any) -> Record:
        values = dict(row)
        values["owner_id"] = values.pop("user_id")
        return self.record_type(**values)

    def _to_values(self, record: Record) -> dict[str, Any]:
        values = asdict(record)
        values.pop("id")
        values["user_id"] = values.pop("owner_id")
        return values


transaction_repository: Repository[Transaction] = Repository(transactions, Transaction)
bill_repository: Repository[Bill] = Repository(bills, Bill)
income_repository: Repository[Income] = Repository(incomes, Income)
investment_repository: Repository[Investment] = Repository(investments, Investment)
budget_repository: Repository[Budget] = Repository(budgets, Budget)
