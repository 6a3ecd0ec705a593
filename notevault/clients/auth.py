"""
Auth Client.

Password sign-up/sign-in against the managed auth service (GoTrue dialect).
"""

from typing import Any

from notevault.clients.base import SupabaseHTTPClient, error_message
from notevault.core.exceptions import AuthenticationError, ExternalServiceError


class AuthClient(SupabaseHTTPClient):
    """Raw auth endpoints. Session state lives in AuthService."""

    dependency = "auth"
    error_class = ExternalServiceError

    def _payload(self, response: Any) -> dict[str, Any]:
        if response.status_code >= 400:
            raise AuthenticationError(error_message(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError("Auth service returned a non-JSON body") from e

    async def sign_up(
        self,
        email: str,
        password: str,
        data: dict[str, Any] | None = None,
        redirect_to: str | None = None,
    ) -> dict[str, Any]:
        """
        Register a new account.

        With email confirmation enabled the response carries a user but no
        session.
        """
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = await self.post(
            "/signup",
            params=params,
            json={"email": email, "password": password, "data": data or {}},
        )
        return self._payload(response)

    async def sign_in_with_password(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a session (access_token, refresh_token, user)."""
        response = await self.post(
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return self._payload(response)

    async def get_user(self, access_token: str) -> dict[str, Any]:
        """Fetch the user owning an access token."""
        response = await self.get(
            "/user",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._payload(response)

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind an access token."""
        response = await self.post(
            "/logout",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        self._payload(response)
