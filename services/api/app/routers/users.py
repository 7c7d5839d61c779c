"""
Account endpoints:
  POST /api/users      — register an account
  GET  /api/users/{id} — fetch an account with its counters
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import get_uow
from app.exceptions import DuplicateEntityError
from app.repositories import UnitOfWork
from app.schemas import AccountCreate, AccountResponse
from app.security import hash_password

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/users", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(body: AccountCreate, uow: UnitOfWork = Depends(get_uow)):
    """Register a new account. Counters start at zero."""
    if await uow.accounts.get_by_username(body.username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Username '{body.username}' already taken",
        )

    fields = body.model_dump(exclude={"password"})
    try:
        async with uow:
            account = await uow.accounts.add(
                password_hash=hash_password(body.password), **fields
            )
    except DuplicateEntityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    logger.info("Created account %s (id=%s)", account.username, account.id)
    return account


@router.get("/users/{user_id}", response_model=AccountResponse)
async def get_account(user_id: str, uow: UnitOfWork = Depends(get_uow)):
    account = await uow.accounts.get(user_id)
    if not account:
        raise HTTPException(status_code=404, detail="User not found")
    return account
