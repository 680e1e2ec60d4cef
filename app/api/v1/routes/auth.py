"""Authentication routes for sign-up, login, logout, token refresh and password resets."""
from fastapi import APIRouter, Depends, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import (
    UserCreate,
    UserOut,
    Token,
    TokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from app.services.auth_service import AuthService
from app.db.session import get_session
from app.db import repositories as repo
from app.auth import Identity, get_current_identity, security
from app.core.errors import unwrap
from app.core.rate_limit import limiter

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(session: AsyncSession = Depends(get_session)) -> AuthService:
    return AuthService(session)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
async def register(
    request: Request,
    payload: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Create an account and return its tokens.

    Rate limit: 3 requests per minute
    """
    return unwrap(await auth_service.register(payload))


@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(
    request: Request,
    form_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Login endpoint returning access and refresh tokens.

    Rate limit: 5 requests per minute
    """
    return unwrap(await auth_service.login(form_data))


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token(
    request: Request,
    payload: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return unwrap(await auth_service.refresh_access_token(payload.refresh_token))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identity: Identity = Depends(get_current_identity),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Revoke the access token used for this request."""
    await auth_service.logout(credentials.credentials)
    return None


@router.get("/me", response_model=UserOut)
async def get_current_user_info(
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session),
):
    return await repo.get_user(session, identity.id)


@router.post("/forgot-password", response_model=MessageResponse)
@limiter.limit("3/minute")
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Issue a reset token. The token is delivered out of band; the response
    is the same generic acknowledgement whether or not the email is known.
    """
    return await auth_service.forgot_password(payload.email)


@router.post("/reset-password", response_model=MessageResponse)
@limiter.limit("5/minute")
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    return unwrap(await auth_service.reset_password(payload.token, payload.password))
