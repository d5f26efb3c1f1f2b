"""Authentication endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status

from gallery.core.security import create_access_token, get_current_account
from gallery.interfaces.http.deps import get_account_service
from gallery.modules.accounts import Account as AccountDomain
from gallery.modules.accounts.service import AccountService
from gallery.schemas import AccountLoginResponse, AccountResponse, LoginRequest

router = APIRouter()


@router.post("/login", response_model=AccountLoginResponse, summary="Log in and receive a bearer token")
async def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountLoginResponse:
    account = await account_service.authenticate(payload.username, payload.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    await account_service.set_last_login(account.id)

    access_token = create_access_token(account.id, account.username, account.role)
    return AccountLoginResponse(
        access_token=access_token,
        account_id=account.id,
        username=account.username,
        role=account.role,
    )


@router.get("/me", response_model=AccountResponse)
async def current_account(account: AccountDomain = Depends(get_current_account)):
    return account
