"""
Auth Service.

Holds the signed-in identity and runs the register/login/logout flows.

The service is the application's auth provider: `user` is None for guests,
`loading` stays True until `initialize()` has resolved any saved session,
and listeners are notified whenever the identity changes.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from notevault.clients.auth import AuthClient
from notevault.core.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    ValidationError,
)
from notevault.repositories.profile import ProfileRepository
from notevault.schemas.auth import AuthUser, LoginForm, RegisterForm
from notevault.services.base import BaseService


class IdentitySource(Protocol):
    """Anything exposing the signed-in user (None for guests)."""

    @property
    def user(self) -> AuthUser | None: ...


AuthListener = Callable[[AuthUser | None], None]

REGISTERED_MESSAGE = "Account created! Please check your email to confirm your account."
REGISTERED_PROFILE_PENDING_MESSAGE = (
    "Account created! Check your email to confirm. "
    "Profile setup will complete after confirmation."
)


def _first_error(exc: PydanticValidationError) -> ValidationError:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Validation failed")
    return ValidationError(
        f"{field}: {message}" if field else message,
        details={"errors": [{"field": ".".join(map(str, e["loc"])), "message": e["msg"]} for e in errors]},
    )


class AuthService(BaseService):
    """Managed-auth session for one user of the application."""

    source = "auth"

    def __init__(
        self,
        client: AuthClient,
        profiles: ProfileRepository,
        site_url: str,
        session_path: Path | None = None,
    ) -> None:
        super().__init__()
        self._client = client
        self._profiles = profiles
        self._site_url = site_url.rstrip("/")
        self._session_path = session_path
        self._listeners: list[AuthListener] = []

        self._user: AuthUser | None = None
        self._access_token: str | None = None
        self.loading = True

    @property
    def user(self) -> AuthUser | None:
        return self._user

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """
        Register a listener called with the new user on every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_session(self, user: AuthUser | None, access_token: str | None) -> None:
        changed = (user.id if user else None) != (self._user.id if self._user else None)
        self._user = user
        self._access_token = access_token
        self.loading = False
        self._save_session()
        if changed:
            for listener in list(self._listeners):
                listener(user)

    # -------------------------------------------------------------------------
    # Session file
    # -------------------------------------------------------------------------

    def _save_session(self) -> None:
        if self._session_path is None:
            return
        if self._access_token is None:
            self._session_path.unlink(missing_ok=True)
            return
        self._session_path.parent.mkdir(parents=True, exist_ok=True)
        self._session_path.write_text(
            json.dumps({"access_token": self._access_token}),
            encoding="utf-8",
        )

    def _read_saved_token(self) -> str | None:
        if self._session_path is None or not self._session_path.exists():
            return None
        try:
            data = json.loads(self._session_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self._logger.warning(
                "Ignoring unreadable session file",
                extra={"path": str(self._session_path), "error": str(e), "source": self.source},
            )
            return None
        token = data.get("access_token") if isinstance(data, dict) else None
        return token if isinstance(token, str) and token else None

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    async def initialize(self) -> AuthUser | None:
        """
        Resolve the saved session, if any, into a user.

        An expired or revoked token signs the user out locally. An
        unreachable auth service keeps the user signed out for this run
        without discarding the saved token.
        """
        token = self._read_saved_token()
        if token is None:
            self._set_session(None, None)
            return None

        try:
            payload = await self._client.get_user(token)
        except AuthenticationError:
            self._log_operation("Saved session expired")
            self._set_session(None, None)
            return None
        except ExternalServiceError as e:
            self._logger.warning(
                "Auth service unreachable, continuing as guest",
                extra={"error": e.message, "source": self.source},
            )
            self._user = None
            self.loading = False
            return None

        self._set_session(AuthUser.model_validate(payload), token)
        return self._user

    async def register(self, **fields: Any) -> str:
        """
        Create an account and its profile row.

        Args:
            **fields: fullname, email, password, university

        Returns:
            Message to show the user

        Raises:
            ValidationError: If a field is invalid
            AuthenticationError: If the auth service refuses the sign-up
        """
        try:
            form = RegisterForm(**fields)
        except PydanticValidationError as e:
            raise _first_error(e) from e

        self._log_operation("Registering account", email=form.email)
        try:
            payload = await self._client.sign_up(
                form.email,
                form.password,
                data={"full_name": form.fullname, "university": form.university},
                redirect_to=f"{self._site_url}/auth/callback",
            )
        except AuthenticationError as e:
            if "already registered" in e.message:
                raise AuthenticationError("This email is already registered. Please log in.") from e
            raise

        user_data = payload.get("user") or (payload if "id" in payload else None)
        if user_data:
            user = AuthUser.model_validate(user_data)
            try:
                await self._profiles.create(user.id, form.fullname, form.university)
            except ExternalServiceError as e:
                self._logger.warning(
                    "Profile insert failed",
                    extra={"user_id": user.id, "error": e.message, "source": self.source},
                )
                return REGISTERED_PROFILE_PENDING_MESSAGE

        return REGISTERED_MESSAGE

    async def login(self, email: str, password: str) -> AuthUser:
        """
        Sign in with email and password.

        Raises:
            ValidationError: If the form is invalid
            AuthenticationError: If the credentials are refused
        """
        try:
            form = LoginForm(email=email, password=password)
        except PydanticValidationError as e:
            raise _first_error(e) from e

        try:
            payload = await self._client.sign_in_with_password(form.email, form.password)
        except AuthenticationError as e:
            if "Email not confirmed" in e.message:
                raise AuthenticationError("Please confirm your email before logging in.") from e
            raise

        user = AuthUser.model_validate(payload["user"])
        self._set_session(user, payload["access_token"])
        self._log_operation("Signed in", user_id=user.id)
        return user

    async def logout(self) -> None:
        """Sign out locally, revoking the remote session when possible."""
        token = self._access_token
        if token is not None:
            try:
                await self._client.sign_out(token)
            except (AuthenticationError, ExternalServiceError) as e:
                self._logger.warning(
                    "Remote sign-out failed",
                    extra={"error": e.message, "source": self.source},
                )
        self._set_session(None, None)
        self._log_operation("Signed out")
