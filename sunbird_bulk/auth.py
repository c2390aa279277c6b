"""
auth.py - Sunbird token exchange

The creator account logs in once per run (AuthSession.refresh()); the
resulting user token is sent as x-authenticated-user-token on every
content call. Tokens are not re-checked for expiry during a run.

Enrollment also needs a token per learner; learner_session() does the
same two-step exchange for a learner login and reads the user id out of
the access token's sub claim.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from sunbird_bulk.config_utils import BulkConfig
from sunbird_bulk.errors import AuthenticationError, extract_errmsg
from sunbird_bulk.log_utils import mask_sensitive


logger = logging.getLogger(__name__)

TOKEN_ROUTE = "/auth/realms/sunbird/protocol/openid-connect/token"
REFRESH_ROUTE = "/auth/v1/refresh/token"


@dataclass
class LearnerSession:
    user_id: str
    access_token: str


def bearer(api_key: str) -> str:
    """Accept the API key with or without its 'Bearer ' prefix."""
    if api_key.lower().startswith("bearer "):
        return api_key
    return f"Bearer {api_key}"


def extract_user_id(token: str) -> str:
    """
    Read the user id from a JWT access token.

    The sub claim looks like "f:<realm id>:<user id>"; the user id is the
    last segment.
    """
    try:
        payload = token.split(".")[1]
        payload += "=" * (-len(payload) % 4)
        claims = json.loads(base64.urlsafe_b64decode(payload.encode("ascii")))
        return str(claims["sub"]).split(":")[-1]
    except (IndexError, KeyError, ValueError) as e:
        raise AuthenticationError(
            message="Could not read user id from access token",
            cause=e,
        )


class AuthSession:
    """Holds the creator's user token for the duration of one run"""

    def __init__(self, config: BulkConfig, http: Optional[requests.Session] = None):
        self.config = config
        self.http = http or requests.Session()
        self.user_token: Optional[str] = None

    @property
    def authorization(self) -> str:
        return bearer(self.config.api_key or "")

    def refresh(self) -> str:
        """Log in as the configured creator and cache the user token."""
        self.config.require_credentials()
        self.user_token = self._exchange(
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "grant_type": self.config.grant_type,
                "username": self.config.username,
                "password": self.config.password,
            },
            who=self.config.username or "",
        )
        logger.info(f"[auth] Logged in as {self.config.username} (token {mask_sensitive(self.user_token)})")
        return self.user_token

    def learner_session(self, login: str) -> LearnerSession:
        """Get a token for a learner (login is usually the email from the CSV)."""
        access_token = self._exchange(
            {
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "grant_type": self.config.grant_type,
                "username": login,
            },
            who=login,
        )
        return LearnerSession(user_id=extract_user_id(access_token), access_token=access_token)

    def _exchange(self, form: dict, who: str) -> str:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": self.authorization,
        }
        base = self.config.base_url
        try:
            resp = self.http.post(
                f"{base}{TOKEN_ROUTE}", data=form, headers=headers, timeout=self.config.timeout
            )
            resp.raise_for_status()
            refresh_token = resp.json()["refresh_token"]

            resp = self.http.post(
                f"{base}{REFRESH_ROUTE}",
                data={"refresh_token": refresh_token},
                headers=headers,
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
            return resp.json()["result"]["access_token"]
        except requests.HTTPError as e:
            errmsg = extract_errmsg(e.response) if e.response is not None else None
            raise AuthenticationError(
                message=errmsg or f"Invalid credentials for {who}",
                context={"user": who, "status_code": getattr(e.response, "status_code", None)},
                cause=e,
            )
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            raise AuthenticationError(
                message=f"Token exchange failed for {who}",
                context={"user": who},
                cause=e,
            )
