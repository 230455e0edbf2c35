from __future__ import annotations

import hmac
import logging
from typing import Any, Dict, MutableMapping, Optional

from pydantic import BaseModel

from app.clients.gateway import GatewayClient, GatewayErrorKind, GatewayResult

logger = logging.getLogger(__name__)

SESSION_KEY = "identity"


class Identity(BaseModel):
    user_id: str
    email: str
    access_token: str | None = None


class IdentityProvider:
    """Sign-in, current-user lookup and sign-out against the hosted auth service.

    The signed-in identity lives in the session mapping handed in by the caller
    (the request's cookie session). In mock mode only the configured admin
    credentials are accepted.
    """

    def __init__(
        self,
        gateway: GatewayClient,
        *,
        admin_email: str,
        admin_password: str,
    ) -> None:
        self._gateway = gateway
        self._admin_email = admin_email
        self._admin_password = admin_password

    async def sign_in(self, email: str, password: str) -> GatewayResult[Identity]:
        email = email.strip().lower()
        logger.info("Sign-in attempt for %s", email)
        if self._gateway.use_mock_data:
            await self._gateway.simulate_latency()
            valid = hmac.compare_digest(email, self._admin_email.lower()) and hmac.compare_digest(
                password, self._admin_password
            )
            if not valid:
                return GatewayResult.failure(
                    "Invalid login credentials", kind=GatewayErrorKind.response, status_code=400
                )
            return GatewayResult.success(Identity(user_id="mock-admin", email=email))

        result = await self._gateway.request(
            "sign in",
            "POST",
            "/auth/v1/token",
            lambda response: response.json(),
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if not result.ok:
            return GatewayResult(error=result.error)
        body: Dict[str, Any] = result.data or {}
        user = body.get("user") or {}
        return GatewayResult.success(
            Identity(
                user_id=str(user.get("id", "")),
                email=str(user.get("email", email)),
                access_token=body.get("access_token"),
            )
        )

    async def current_user(self, session: MutableMapping[str, Any]) -> Optional[Identity]:
        raw = session.get(SESSION_KEY)
        if not raw:
            return None
        try:
            identity = Identity.model_validate(raw)
        except ValueError:
            session.pop(SESSION_KEY, None)
            return None

        if self._gateway.use_mock_data:
            return identity

        result = await self._gateway.request(
            "current user",
            "GET",
            "/auth/v1/user",
            lambda response: response.json(),
            headers={"Authorization": f"Bearer {identity.access_token}"},
        )
        if not result.ok:
            logger.info("Session for %s is no longer valid: %s", identity.email, result.message_or("unknown"))
            session.pop(SESSION_KEY, None)
            return None
        return identity

    def remember(self, session: MutableMapping[str, Any], identity: Identity) -> None:
        session[SESSION_KEY] = identity.model_dump()

    async def sign_out(self, session: MutableMapping[str, Any]) -> None:
        raw = session.pop(SESSION_KEY, None)
        if not raw or self._gateway.use_mock_data:
            return
        token = raw.get("access_token")
        if not token:
            return
        result = await self._gateway.request(
            "sign out",
            "POST",
            "/auth/v1/logout",
            lambda response: None,
            headers={"Authorization": f"Bearer {token}"},
        )
        if not result.ok:
            logger.warning("Remote sign-out failed: %s", result.message_or("unknown error"))
