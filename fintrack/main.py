import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

import bcrypt
from fastapi import FastAPI, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from fintrack.amounts import ZERO, format_amount
from fintrack.bill_cycle_roller import roll_bill_cycles
from fintrack.config import Settings
from fintrack.log import init_logging, log_context
from fintrack.metadata_enricher import enrich_transaction
from fintrack.models import (
    BILL_STATUSES,
    Bill,
    Budget,
    Income,
    Investment,
    Transaction,
    apply_patch,
    normalize_transaction_type,
    to_payload,
)
from fintrack.recurrence_expander import expand_recurring_transaction
from fintrack.reports import (
    build_dashboard,
    build_insights,
    build_net_worth_projection,
    build_savings_projection,
)
from fintrack.storage import (
    Repository,
    bill_repository,
    budget_repository,
    create_db_engine,
    income_repository,
    investment_repository,
    metadata,
    transaction_repository,
    users,
)

settings = Settings.from_env()
init_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = create_db_engine(settings.database_url)


@app.on_event("startup")
def init_db() -> None:
    metadata.create_all(engine)


def _money_text(value: Any) -> Any:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


MoneyText = Annotated[str, BeforeValidator(_money_text)]
OptionalMoneyText = Annotated[str | None, BeforeValidator(_money_text)]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CredentialsPayload(ApiModel):
    email: str
    password: str


class UserResponse(ApiModel):
    id: int
    email: str


class TransactionPayload(ApiModel):
    amount: MoneyText
    description: str
    type: str
    date: str
    category: str | None = None
    payment_method: str | None = None
    context_tag: str | None = None
    intent_tag: str | None = None
    confidence_indicator: str | None = None
    goal_impact: str | None = None
    is_planned: bool | None = None
    repeat_pattern: str | None = None


class TransactionPatch(ApiModel):
    amount: OptionalMoneyText = None
    description: str | None = None
    type: str | None = None
    date: str | None = None
    category: str | None = None
    payment_method: str | None = None
    context_tag: str | None = None
    intent_tag: str | None = None
    confidence_indicator: str | None = None
    goal_impact: str | None = None
    is_planned: bool | None = None
    repeat_pattern: str | None = None


class BillPayload(ApiModel):
    name: str
    amount: MoneyText
    due_date: str
    category: str | None = None
    status: str = "pending"
    is_recurring: bool | None = None
    auto_pay_enabled: bool | None = None
    icon: str | None = None
    color: str | None = None


class BillPatch(ApiModel):
    name: str | None = None
    amount: OptionalMoneyText = None
    due_date: str | None = None
    category: str | None = None
    status: str | None = None
    is_recurring: bool | None = None
    auto_pay_enabled: bool | None = None
    icon: str | None = None
    color: str | None = None


class IncomePayload(ApiModel):
    source: str
    amount: MoneyText
    frequency: str = "monthly"
    is_active: bool | None = None


class IncomePatch(ApiModel):
    source: str | None = None
    amount: OptionalMoneyText = None
    frequency: str | None = None
    is_active: bool | None = None


class InvestmentPayload(ApiModel):
    symbol: str
    name: str
    type: str
    shares: OptionalMoneyText = None
    avg_cost: OptionalMoneyText = None
    current_value: OptionalMoneyText = None
    pf_current_company: OptionalMoneyText = None
    pf_previous_company: OptionalMoneyText = None
    pf_current_age: OptionalMoneyText = None


class InvestmentPatch(ApiModel):
    symbol: str | None = None
    name: str | None = None
    type: str | None = None
    shares: OptionalMoneyText = None
    avg_cost: OptionalMoneyText = None
    current_value: OptionalMoneyText = None
    pf_current_company: OptionalMoneyText = None
    pf_previous_company: OptionalMoneyText = None
    pf_current_age: OptionalMoneyText = None


class BudgetPayload(ApiModel):
    category: str
    amount: MoneyText
    period: str = "monthly"


class BudgetPatch(ApiModel):
    category: str | None = None
    amount: OptionalMoneyText = None
    period: str | None = None
    spent: OptionalMoneyText = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


def get_user_id(x_user_id: str | None) -> int:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    try:
        user_id = int(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid user identity.") from exc
    with engine.begin() as conn:
        result = conn.execute(select(users.c.id).where(users.c.id == user_id))
        if not result.first():
            raise HTTPException(status_code=404, detail="User not found.")
    return user_id


def load_owned(conn: Connection, repository: Repository, record_id: int, user_id: int, label: str):
    record = repository.find_by_id(conn, record_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"{label} not found.")
    if record.owner_id != user_id:
        raise HTTPException(status_code=403, detail=f"{label} belongs to another user.")
    return record


def patch_record(record, payload: ApiModel):
    try:
        return apply_patch(record, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def validate_bill_status(status: str | None) -> str | None:
    if status is None:
        return None
    normalized = status.strip().lower()
    if normalized not in BILL_STATUSES:
        raise HTTPException(status_code=400, detail=f"Unsupported bill status: {status}")
    return normalized


def delete_owned(repository: Repository, record_id: int, x_user_id: str | None, label: str) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        load_owned(conn, repository, record_id, user_id, label)
        repository.delete(conn, record_id)
    return {"message": f"{label} deleted successfully"}


def load_user_records(conn: Connection, user_id: int) -> tuple[list, list, list, list]:
    records = (
        transaction_repository.find_by_user_id(conn, user_id),
        bill_repository.find_by_user_id(conn, user_id),
        income_repository.find_by_user_id(conn, user_id),
        investment_repository.find_by_user_id(conn, user_id),
    )
    logger.debug(
        "Loaded %d transactions, %d bills, %d incomes, %d investments",
        *(len(items) for items in records),
    )
    return records


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/auth/signup", response_model=UserResponse)
def signup(payload: CredentialsPayload) -> UserResponse:
    email = payload.email.strip().lower()
    if not email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password required.")
    stmt = insert(users).values(email=email, hashed_password=hash_password(payload.password))
    try:
        with engine.begin() as conn:
            result = conn.execute(stmt)
            user_id = result.inserted_primary_key[0]
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail="Email already exists.") from exc
    logger.info("Created user %s", user_id)
    return UserResponse(id=user_id, email=email)


@app.post("/auth/login", response_model=UserResponse)
def login(payload: CredentialsPayload) -> UserResponse:
    email = payload.email.strip().lower()
    with engine.begin() as conn:
        row = conn.execute(
            select(users.c.id, users.c.email, users.c.hashed_password).where(users.c.email == email)
        ).mappings().first()
    if not row or not verify_password(payload.password, row["hashed_password"]):
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    return UserResponse(id=row["id"], email=row["email"])


@app.get("/transactions")
def list_transactions(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[dict]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = transaction_repository.find_by_user_id(conn, user_id)
    return [to_payload(record) for record in records]


@app.post("/transactions")
def create_transaction(
    payload: TransactionPayload, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    user_id = get_user_id(x_user_id)
    try:
        txn_type = normalize_transaction_type(payload.type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    now = datetime.now()
    transaction = enrich_transaction(
        Transaction(
            owner_id=user_id,
            created_at=now,
            **{**payload.model_dump(), "type": txn_type},
        )
    )
    with log_context(user=user_id), engine.begin() as conn:
        saved = transaction_repository.save(conn, transaction)
        expansion = expand_recurring_transaction(
            saved, occurrences=settings.recurrence_occurrences
        )
        if expansion.instances:
            saved = transaction_repository.save(conn, expansion.source)
            for instance in expansion.instances:
                transaction_repository.save(conn, replace(instance, created_at=now))
        logger.info("Created transaction %s", saved.id)
    return to_payload(saved)


@app.put("/transactions/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionPatch,
    x_user_id: str | None = Header(None, alias="x-user-id"),
) -> dict:
    user_id = get_user_id(x_user_id)
    if payload.type is not None:
        try:
            payload.type = normalize_transaction_type(payload.type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    with engine.begin() as conn:
        existing = load_owned(conn, transaction_repository, transaction_id, user_id, "Transaction")
        updated = enrich_transaction(patch_record(existing, payload))
        saved = transaction_repository.save(conn, updated)
    return to_payload(saved)


@app.delete("/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: int, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    return delete_owned(transaction_repository, transaction_id, x_user_id, "Transaction")


@app.get("/bills")
def list_bills(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[dict]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = bill_repository.find_by_user_id(conn, user_id)
    return [to_payload(record) for record in records]


@app.post("/bills")
def create_bill(payload: BillPayload, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    bill = Bill(
        owner_id=user_id,
        name=payload.name,
        amount=payload.amount,
        due_date=payload.due_date,
        category=payload.category,
        status=validate_bill_status(payload.status),
        is_recurring=bool(payload.is_recurring),
        auto_pay_enabled=bool(payload.auto_pay_enabled),
        icon=payload.icon,
        color=payload.color,
    )
    with engine.begin() as conn:
        saved = bill_repository.save(conn, bill)
    logger.info("Created bill %s for user %s", saved.id, user_id)
    return to_payload(saved)


@app.put("/bills/{bill_id}")
def update_bill(
    bill_id: int, payload: BillPatch, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    user_id = get_user_id(x_user_id)
    if payload.status is not None:
        payload.status = validate_bill_status(payload.status)
    with engine.begin() as conn:
        existing = load_owned(conn, bill_repository, bill_id, user_id, "Bill")
        saved = bill_repository.save(conn, patch_record(existing, payload))
    return to_payload(saved)


@app.delete("/bills/{bill_id}")
def delete_bill(bill_id: int, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    return delete_owned(bill_repository, bill_id, x_user_id, "Bill")


@app.get("/incomes")
def list_incomes(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[dict]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = income_repository.find_by_user_id(conn, user_id)
    return [to_payload(record) for record in records]


@app.post("/incomes")
def create_income(payload: IncomePayload, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    income = Income(
        owner_id=user_id,
        source=payload.source,
        amount=payload.amount,
        frequency=payload.frequency,
        is_active=True if payload.is_active is None else payload.is_active,
    )
    with engine.begin() as conn:
        saved = income_repository.save(conn, income)
    return to_payload(saved)


@app.put("/incomes/{income_id}")
def update_income(
    income_id: int, payload: IncomePatch, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        existing = load_owned(conn, income_repository, income_id, user_id, "Income")
        saved = income_repository.save(conn, patch_record(existing, payload))
    return to_payload(saved)


@app.delete("/incomes/{income_id}")
def delete_income(income_id: int, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    return delete_owned(income_repository, income_id, x_user_id, "Income")


@app.get("/investments")
def list_investments(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[dict]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = investment_repository.find_by_user_id(conn, user_id)
    return [to_payload(record) for record in records]


@app.post("/investments")
def create_investment(
    payload: InvestmentPayload, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    user_id = get_user_id(x_user_id)
    investment = Investment(owner_id=user_id, **payload.model_dump())
    with engine.begin() as conn:
        saved = investment_repository.save(conn, investment)
    return to_payload(saved)


@app.put("/investments/{investment_id}")
def update_investment(
    investment_id: int,
    payload: InvestmentPatch,
    x_user_id: str | None = Header(None, alias="x-user-id"),
) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        existing = load_owned(conn, investment_repository, investment_id, user_id, "Investment")
        saved = investment_repository.save(conn, patch_record(existing, payload))
    return to_payload(saved)


@app.delete("/investments/{investment_id}")
def delete_investment(investment_id: int, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    return delete_owned(investment_repository, investment_id, x_user_id, "Investment")


@app.get("/budgets")
def list_budgets(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[dict]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = budget_repository.find_by_user_id(conn, user_id)
    return [to_payload(record) for record in records]


@app.post("/budgets")
def create_budget(payload: BudgetPayload, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    budget = Budget(
        owner_id=user_id,
        category=payload.category,
        amount=payload.amount,
        period=payload.period,
        spent=format_amount(ZERO),
    )
    with engine.begin() as conn:
        saved = budget_repository.save(conn, budget)
    return to_payload(saved)


@app.put("/budgets/{budget_id}")
def update_budget(
    budget_id: int, payload: BudgetPatch, x_user_id: str | None = Header(None, alias="x-user-id")
) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        existing = load_owned(conn, budget_repository, budget_id, user_id, "Budget")
        saved = budget_repository.save(conn, patch_record(existing, payload))
    return to_payload(saved)


@app.delete("/budgets/{budget_id}")
def delete_budget(budget_id: int, x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    return delete_owned(budget_repository, budget_id, x_user_id, "Budget")


@app.get("/dashboard")
def dashboard(x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    with log_context(user=user_id), engine.begin() as conn:
        roll_bill_cycles(
            user_id,
            bill_repository.find_by_user_id(conn, user_id),
            lambda bill: bill_repository.save(conn, bill),
        )
        records = load_user_records(conn, user_id)
    return build_dashboard(*records)


@app.get("/insights")
def insights(x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = load_user_records(conn, user_id)
    return build_insights(*records)


@app.get("/savings-projection")
def savings_projection(x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = load_user_records(conn, user_id)
    return build_savings_projection(*records)


@app.get("/net-worth-projection")
def net_worth_projection(x_user_id: str | None = Header(None, alias="x-user-id")) -> dict:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        records = load_user_records(conn, user_id)
    return build_net_worth_projection(*records)
