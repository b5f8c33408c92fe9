"""
Minimal Gmail REST client used as the alert transport.

Authenticates with an OAuth2 refresh token (the same credential the Google
OAuth playground issues) and sends plain-text messages via
users.messages.send.
"""

import asyncio
import base64
import logging
import time
from email.message import EmailMessage

import httpx

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"

# Refresh this many seconds before Google says the token expires.
_EXPIRY_MARGIN_S = 60


class TransportError(Exception):
    """Raised when a message could not be handed to Gmail."""


def build_raw_message(recipient: str, subject: str, body: str) -> str:
    """RFC 2822 text/plain message, base64url encoded without padding."""
    message = EmailMessage()
    message["To"] = recipient
    message["Subject"] = subject
    message.set_content(body, charset="utf-8")
    return base64.urlsafe_b64encode(message.as_bytes()).decode("ascii").rstrip("=")


class GmailTransport:
    def __init__(
        self,
        client: httpx.AsyncClient,
        client_id: str,
        client_secret: str,
        refresh_token: str,
    ):
        self._client = client
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._access_token: str | None = None
        self._expires_at = 0.0
        self._token_lock = asyncio.Lock()

    async def _get_access_token(self) -> str:
        async with self._token_lock:
            if self._access_token and time.monotonic() < self._expires_at:
                return self._access_token

            if not self._refresh_token:
                raise TransportError("Gmail refresh token is not configured")

            try:
                response = await self._client.post(
                    TOKEN_URL,
                    data={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "refresh_token": self._refresh_token,
                        "grant_type": "refresh_token",
                    },
                )
            except httpx.HTTPError as exc:
                raise TransportError(f"token refresh failed: {exc}") from exc

            if response.status_code != 200:
                raise TransportError(
                    f"token refresh failed: {response.status_code} {_error_text(response)}"
                )

            payload = response.json()
            self._access_token = payload["access_token"]
            expires_in = float(payload.get("expires_in", 3600))
            self._expires_at = time.monotonic() + max(expires_in - _EXPIRY_MARGIN_S, 0)
            logger.debug("Refreshed Gmail access token", extra={"expires_in": expires_in})
            return self._access_token

    async def send(self, recipient: str, subject: str, body: str) -> str:
        """Send one message and return the Gmail message id."""
        token = await self._get_access_token()
        try:
            response = await self._client.post(
                SEND_URL,
                headers={"Authorization": f"Bearer {token}"},
                json={"raw": build_raw_message(recipient, subject, body)},
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"send failed: {exc}") from exc

        if response.status_code >= 400:
            if response.status_code == 401:
                # Force a refresh on the next send.
                self._access_token = None
            raise TransportError(f"send failed: {response.status_code} {_error_text(response)}")

        return response.json().get("id", "")


def _error_text(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("message", str(error))
    if isinstance(error, str):
        return payload.get("error_description", error)
    return response.text
