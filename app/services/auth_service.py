"""Authentication service for sign-up, login, token management and password resets."""
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import UserCreate, LoginRequest, UserOut
from app.db.models import User
from app.db import repositories as repo
from app.core.clock import utcnow
from app.core.errors import ErrorKind, Failure, Result, is_failure
from app.core.logging import logger
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    revoke_token,
    validate_password,
    verify_password,
)
from app.events import publisher

RESET_ACKNOWLEDGEMENT = "If an account exists with this email, you will receive password reset instructions."


def _token_claims(user: User) -> dict:
    return {"sub": str(user.id), "role": user.role.value}


class AuthService:
    """
    Service layer for authentication operations.

    Handles user registration, login, token refresh, logout and password
    resets. Expected failures are returned as ``Failure`` values.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _issue_tokens(self, user: User) -> dict:
        claims = _token_claims(user)
        return {
            "access_token": create_access_token(claims),
            "refresh_token": create_refresh_token(claims),
            "token_type": "bearer",
            "user": UserOut.model_validate(user),
        }

    async def register(self, payload: UserCreate) -> Result[dict]:
        """
        Register a new account and sign it in.

        Returns:
            Tokens and the created user, or a Failure for a weak password or
            an email that is already registered
        """
        try:
            validate_password(payload.password)
        except ValueError as e:
            return Failure(ErrorKind.validation_error, str(e))

        if await repo.get_user_by_email(self.session, payload.email):
            return Failure(ErrorKind.conflict, "Email already registered")

        user = await repo.create_user(self.session, payload)
        if is_failure(user):
            return user
        logger.info(f"Registered user {user.id} as {user.role.value}")
        return self._issue_tokens(user)

    async def login(self, form_data: LoginRequest) -> Result[dict]:
        user = await repo.get_user_by_email(self.session, form_data.email)
        if not user or not verify_password(form_data.password, user.hashed_password):
            return Failure(ErrorKind.unauthenticated, "Invalid credentials")
        if user.is_blocked:
            return Failure(ErrorKind.account_blocked, "Your account has been blocked. Please contact support.")
        return self._issue_tokens(user)

    async def refresh_access_token(self, refresh_token: str) -> Result[dict]:
        """
        Exchange a refresh token for a new access token.

        The account is re-read so a blocked or deleted user cannot keep
        minting access tokens.
        """
        try:
            token_data = decode_token(refresh_token)
        except ValueError:
            return Failure(ErrorKind.unauthenticated, "Invalid refresh token")

        if token_data.get("type") != "refresh":
            return Failure(ErrorKind.unauthenticated, "Invalid token type")

        try:
            user_id = UUID(str(token_data["sub"]))
        except ValueError:
            return Failure(ErrorKind.unauthenticated, "Invalid refresh token")

        user = await repo.get_user(self.session, user_id)
        if user is None:
            return Failure(ErrorKind.account_not_found, "User not found")
        if user.is_blocked:
            return Failure(ErrorKind.account_blocked, "Your account has been blocked. Please contact support.")

        return {"access_token": create_access_token(_token_claims(user)), "token_type": "bearer"}

    async def logout(self, token: str) -> None:
        await revoke_token(token)

    async def forgot_password(self, email: str) -> dict:
        """
        Start a password reset.

        The response is identical whether or not the account exists. The
        plain token is only handed to the notification channel; the store
        keeps its SHA-256 digest.
        """
        user = await repo.get_user_by_email(self.session, email)
        if user is not None:
            token, token_hash, expires_at = generate_reset_token()
            await repo.set_reset_token(self.session, user, token_hash, expires_at)
            await publisher.publish_event("password_reset.requested", {
                "user_id": str(user.id),
                "email": user.email,
                "name": user.name,
                "token": token,
                "expires_at": expires_at.isoformat(),
            })
            logger.info(f"Password reset requested for user {user.id}")
        return {"success": True, "message": RESET_ACKNOWLEDGEMENT}

    async def reset_password(self, token: str, password: str) -> Result[dict]:
        try:
            validate_password(password)
        except ValueError as e:
            return Failure(ErrorKind.validation_error, str(e))

        token_hash = hash_reset_token(token)
        user = await repo.get_user_by_reset_token(self.session, token_hash, utcnow())
        if user is None:
            return Failure(ErrorKind.validation_error, "Invalid or expired reset token")

        consumed = await repo.consume_reset_token(self.session, user.id, token_hash, hash_password(password))
        if not consumed:
            return Failure(ErrorKind.validation_error, "Invalid or expired reset token")

        logger.info(f"Password reset completed for user {user.id}")
        return {"success": True, "message": "Password has been reset successfully"}
