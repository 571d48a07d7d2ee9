import requests
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from brokerlink.core.config import Settings
from brokerlink.core.exceptions import UpstreamError
from brokerlink.core.logger import logger


class UpstoxOAuthClient:
    """Upstox v2 OAuth endpoints: authorization dialog and code exchange"""

    def __init__(
        self,
        auth_dialog_url: str,
        token_url: str,
        timeout: float = 20.0,
        session: Optional[requests.Session] = None,
    ):
        self.auth_dialog_url = auth_dialog_url
        self.token_url = token_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "UpstoxOAuthClient":
        return cls(
            auth_dialog_url=settings.UPSTOX_AUTH_DIALOG_URL,
            token_url=settings.UPSTOX_TOKEN_URL,
            timeout=settings.UPSTOX_HTTP_TIMEOUT,
        )

    def build_authorization_url(self, client_id: str, redirect_uri: str, state: str) -> str:
        query = urlencode({
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "state": state,
        })
        return f"{self.auth_dialog_url}?{query}"

    def exchange_code(
        self,
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
    ) -> Dict[str, Any]:
        """Exchange an authorization code for tokens.

        Returns a dict with ``access_token``, ``refresh_token`` (may be None)
        and ``extended_token`` (may be None).
        """
        try:
            resp = self.session.post(
                self.token_url,
                headers={"accept": "application/json", "Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "code": code,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.log_error("Upstox token request failed", {"error": str(e)})
            raise UpstreamError("Upstox token service is unreachable", status_code=502) from e

        if not resp.ok:
            logger.log_error("Upstox token exchange rejected", {"status": resp.status_code, "body": resp.text[:500]})
            logger.log_api_call("upstox", "token", "failed")
            raise UpstreamError("Failed to exchange authorization code for token")

        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        # Some responses wrap the payload in a "data" envelope
        payload = data.get("data") if isinstance(data.get("data"), dict) else data

        access_token = payload.get("access_token")
        if not access_token:
            logger.log_error("Upstox token response missing access_token", {"keys": sorted(payload.keys())})
            raise UpstreamError("Upstox access token missing in response")

        logger.log_api_call("upstox", "token", "success")
        return {
            "access_token": access_token,
            "refresh_token": payload.get("refresh_token"),
            "extended_token": payload.get("extended_token"),
        }
