"""Administrative endpoints for accounts, quotas and the storage audit trail."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gallery.core.container import ApplicationContainer
from gallery.core.security import get_current_admin
from gallery.interfaces.http.deps import get_app_container, get_db_session
from gallery.modules.accounts import (
    Account as AccountDomain,
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountNotFoundError,
    AccountUpdateInput,
    InvalidRoleError,
    UNSET,
)
from gallery.modules.accounts.service import AccountService
from gallery.schemas import AccountCreate, AccountResponse, AccountUpdate, AuditEntryResponse

router = APIRouter()


def _account_service(db: AsyncSession, container: ApplicationContainer) -> AccountService:
    return AccountService.with_session(db, container.settings.quota.default_quota_bytes)


@router.get("/accounts", response_model=List[AccountResponse])
async def list_accounts(
    admin: AccountDomain = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
):
    return await _account_service(db, container).list_accounts()


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    payload: AccountCreate,
    admin: AccountDomain = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
):
    account_service = _account_service(db, container)
    try:
        account = await account_service.create_account(
            AccountCreateInput(
                username=payload.username,
                password=payload.password,
                role=payload.role,
                email=payload.email,
                quota_bytes=payload.quota_bytes,
            )
        )
    except AccountAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists") from exc
    except InvalidRoleError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return account


@router.patch("/accounts/{account_id}", response_model=AccountResponse)
async def update_account(
    account_id: str,
    payload: AccountUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
    container: ApplicationContainer = Depends(get_app_container),
):
    provided = payload.model_dump(exclude_unset=True)
    update = AccountUpdateInput(
        email=provided.get("email", UNSET),
        is_active=provided.get("is_active", UNSET),
        role=provided.get("role", UNSET),
        password=provided.get("password", UNSET),
        quota_bytes=provided.get("quota_bytes", UNSET),
    )
    try:
        return await _account_service(db, container).update_account(account_id, update)
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found") from exc
    except InvalidRoleError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.get("/audit", response_model=List[AuditEntryResponse])
async def list_audit_entries(
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    admin: AccountDomain = Depends(get_current_admin),
    container: ApplicationContainer = Depends(get_app_container),
):
    return await container.audit.list_operations(limit=limit, offset=offset, user_id=user_id, action=action)
