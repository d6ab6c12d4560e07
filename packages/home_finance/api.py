"""HTTP interface for ``home_finance`` (FastAPI).

Routes are thin: each opens one :func:`db.client.session_scope` (commit on
success, rollback on error) and delegates to a rule-engine function. Errors
are translated centrally:

- ``ValidationError``, ``ConflictError``, ``BusinessRuleError`` → 400;
- ``NotFoundError`` for the resource in the URL → 404, for an id referenced
  from the request body (``personId``/``categoryId``) → 400;
- malformed request bodies → 400;
- database and unexpected failures → 500 with a generic message (logged).

Run with ``uvicorn --factory home_finance.api:create_app``.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any, TypeVar

from db.client import session_scope
from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import categories, people, reports, transactions
from .errors import HomeFinanceError, NotFoundError
from .logging_setup import configure_logging, get_logger
from .models import (
    CategoryCreate,
    CategoryOut,
    CategoryPurpose,
    CategoryTotalsReport,
    PersonCreate,
    PersonDetailOut,
    PersonOut,
    PersonTotalsReport,
    PersonUpdate,
    TransactionCreate,
    TransactionOut,
    TransactionUpdate,
)

logger = get_logger("home_finance.api")

_CORS_ENV = "HOME_FINANCE_CORS_ORIGINS"
_DEFAULT_CORS_ORIGINS = "http://localhost:3000"

T = TypeVar("T")


def _cors_origins() -> list[str]:
    raw = os.getenv(_CORS_ENV) or _DEFAULT_CORS_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


def _run(request: Request, op: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run one rule-engine operation inside its own transactional scope."""

    with session_scope(database_url=request.app.state.database_url) as session:
        return op(session, *args, **kwargs)


# ---- Error translation -------------------------------------------------------


def _status_for(exc: HomeFinanceError) -> int:
    if isinstance(exc, NotFoundError) and exc.field is None:
        return 404
    return 400


async def _handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, HomeFinanceError)
    status = _status_for(exc)
    logger.info("%s %s rejected (%s): %s", request.method, request.url.path, status, exc.message)
    return JSONResponse(status_code=status, content=exc.to_dict())


async def _handle_request_validation(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "path", "query")]
    content: dict[str, Any] = {
        "message": first.get("msg", "Invalid request"),
        "error": "validation_error",
    }
    if loc:
        content["field"] = ".".join(loc)
    return JSONResponse(status_code=400, content=content)


async def _handle_internal_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"message": "Internal server error", "error": "internal_error"},
    )


# ---- Routes ------------------------------------------------------------------

persons_router = APIRouter(prefix="/api/persons", tags=["persons"])
categories_router = APIRouter(prefix="/api/categories", tags=["categories"])
transactions_router = APIRouter(prefix="/api/transactions", tags=["transactions"])
reports_router = APIRouter(prefix="/api/reports", tags=["reports"])


@persons_router.get("", response_model=list[PersonOut])
def list_persons(request: Request) -> list[PersonOut]:
    return _run(request, people.list_people)


@persons_router.get("/minors", response_model=list[PersonOut])
def list_minors(request: Request) -> list[PersonOut]:
    return _run(request, people.list_minors)


@persons_router.get("/adults", response_model=list[PersonOut])
def list_adults(request: Request) -> list[PersonOut]:
    return _run(request, people.list_adults)


@persons_router.get("/{person_id}", response_model=PersonOut)
def get_person(person_id: int, request: Request) -> PersonOut:
    return _run(request, people.get_person, person_id)


@persons_router.get("/{person_id}/detail", response_model=PersonDetailOut)
def get_person_detail(person_id: int, request: Request) -> PersonDetailOut:
    return _run(request, people.get_person_detail, person_id)


@persons_router.post("", response_model=PersonOut, status_code=201)
def create_person(payload: PersonCreate, request: Request) -> PersonOut:
    return _run(request, people.create_person, name=payload.name, age=payload.age)


@persons_router.patch("/{person_id}", response_model=PersonOut)
def update_person(person_id: int, payload: PersonUpdate, request: Request) -> PersonOut:
    return _run(request, people.update_person, person_id, payload)


@persons_router.delete("/{person_id}", status_code=204)
def delete_person(person_id: int, request: Request) -> Response:
    _run(request, people.delete_person, person_id)
    return Response(status_code=204)


@categories_router.get("", response_model=list[CategoryOut])
def list_categories(request: Request, purpose: str | None = None) -> list[CategoryOut]:
    if purpose is None:
        return _run(request, categories.list_categories)
    return _run(request, categories.list_categories_by_purpose, purpose)


@categories_router.get("/purpose/{purpose}", response_model=list[CategoryOut])
def list_categories_by_purpose(purpose: str, request: Request) -> list[CategoryOut]:
    return _run(request, categories.list_categories_by_purpose, purpose)


@categories_router.get("/{category_id}", response_model=CategoryOut)
def get_category(category_id: int, request: Request) -> CategoryOut:
    return _run(request, categories.get_category, category_id)


@categories_router.post("", response_model=CategoryOut, status_code=201)
def create_category(payload: CategoryCreate, request: Request) -> CategoryOut:
    return _run(
        request,
        categories.create_category,
        description=payload.description,
        purpose=CategoryPurpose(payload.purpose),
    )


@transactions_router.get("", response_model=list[TransactionOut])
def list_transactions(request: Request) -> list[TransactionOut]:
    return _run(request, transactions.list_transactions)


@transactions_router.get("/{transaction_id}", response_model=TransactionOut)
def get_transaction(transaction_id: int, request: Request) -> TransactionOut:
    return _run(request, transactions.get_transaction, transaction_id)


@transactions_router.post("", response_model=TransactionOut, status_code=201)
def create_transaction(payload: TransactionCreate, request: Request) -> TransactionOut:
    def _create(session: Session) -> TransactionOut:
        return transactions.create_transaction(
            session,
            description=payload.description,
            amount=payload.amount,
            transaction_date=payload.date,
            transaction_type=payload.type,
            category_id=payload.category_id,
            person_id=payload.person_id,
        )

    return _run(request, _create)


@transactions_router.api_route(
    "/{transaction_id}", methods=["PUT", "PATCH"], response_model=TransactionOut
)
def update_transaction(
    transaction_id: int, payload: TransactionUpdate, request: Request
) -> TransactionOut:
    return _run(request, transactions.update_transaction, transaction_id, payload)


@transactions_router.delete("/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: int, request: Request) -> Response:
    _run(request, transactions.delete_transaction, transaction_id)
    return Response(status_code=204)


@reports_router.get("/persons", response_model=PersonTotalsReport)
def person_totals(request: Request) -> PersonTotalsReport:
    return _run(request, reports.person_totals_report)


@reports_router.get("/categories", response_model=CategoryTotalsReport)
def category_totals(request: Request) -> CategoryTotalsReport:
    return _run(request, reports.category_totals_report)


# ---- Application factory -----------------------------------------------------


def create_app(*, database_url: str | None = None) -> FastAPI:
    """Build the FastAPI application.

    ``database_url`` overrides ``DATABASE_URL`` (read lazily on the first
    request, after ``.env`` has been loaded).
    """

    load_dotenv(override=False)
    configure_logging()

    app = FastAPI(
        title="Home Finance API",
        description="Household expense and income tracking",
        version="0.1.0",
    )
    app.state.database_url = database_url
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HomeFinanceError, _handle_domain_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(SQLAlchemyError, _handle_internal_error)
    app.add_exception_handler(Exception, _handle_internal_error)

    for router in (persons_router, categories_router, transactions_router, reports_router):
        app.include_router(router)
    return app


__all__ = ["create_app"]
