# maktab/backend/api/dependencies.py
from fastapi import Request, Depends, HTTPException, status
import asyncpg

from ..db.db_client import AsyncPostgresClient
from ..services.auth_service import AuthService


def get_postgres_pool(request: Request) -> asyncpg.Pool:
    """
    Returns the PostgreSQL pool created in the lifespan.
    """
    pool = getattr(request.app.state, "postgres_pool", None)
    if pool is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return pool


def get_db_client(postgres_pool: asyncpg.Pool = Depends(get_postgres_pool)) -> AsyncPostgresClient:
    """A fresh client per request over the shared pool."""
    return AsyncPostgresClient(pool=postgres_pool)


def get_auth_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> AuthService:
    """
    Builds an AuthService for each request.

    Handlers are independent; the only shared resource is the connection pool,
    which hands each request its own connection.
    """
    return AuthService(db_client=db_client)
