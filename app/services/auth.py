from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Protocol

from fastapi import Depends, Security
from fastapi.security.api_key import APIKeyHeader

from app.core.config import settings
from app.services.errors import InternalError, UnauthorizedError
from app.services.http_client import JsonHttpClient

log = logging.getLogger(__name__)

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


@dataclass(frozen=True)
class Identity:
    uid: str
    claims: dict[str, Any] = field(default_factory=dict)


class InvalidTokenError(Exception):
    """The verifier rejected the token."""


class VerifierUnavailableError(Exception):
    """The verifier could not give an answer."""


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> Identity: ...


class RemoteTokenVerifier:
    """
    Verifies tokens against the identity provider's token-info endpoint.

    GET <auth_verify_url> with "Authorization: Bearer <token>":
      - 2xx with {"uid": ...} or {"sub": ...}  -> Identity
      - 401 / 403                              -> InvalidTokenError
      - anything else                          -> VerifierUnavailableError
    """

    def __init__(self, url: str, http: JsonHttpClient):
        self.url = url
        self.http = http

    async def aclose(self) -> None:
        await self.http.aclose()

    async def verify(self, token: str) -> Identity:
        res = await self.http.get_json(url=self.url, headers={"Authorization": f"Bearer {token}"})
        if res.ok:
            uid = res.detail.get("uid") or res.detail.get("sub")
            if not uid:
                raise InvalidTokenError("token has no subject")
            return Identity(uid=str(uid), claims=res.detail)
        if res.status_code in (401, 403):
            raise InvalidTokenError(res.detail.get("error") or res.error_message or "rejected")
        raise VerifierUnavailableError(res.error_message or res.error_code or "verifier error")


@lru_cache
def get_token_verifier() -> TokenVerifier:
    http = JsonHttpClient(timeout_seconds=settings.auth_verify_timeout_seconds)
    return RemoteTokenVerifier(settings.auth_verify_url, http)


async def close_token_verifier() -> None:
    # Only close a verifier that was actually built.
    if get_token_verifier.cache_info().currsize == 0:
        return
    verifier = get_token_verifier()
    get_token_verifier.cache_clear()
    aclose = getattr(verifier, "aclose", None)
    if aclose is not None:
        await aclose()


def _extract_token(authorization: str) -> str:
    scheme, _, rest = authorization.strip().partition(" ")
    if rest and scheme.lower() == "bearer":
        return rest.strip()
    return authorization.strip()


async def get_identity(
    authorization: str | None = Security(authorization_header),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    if not authorization or not _extract_token(authorization):
        raise UnauthorizedError("Missing Authorization token")

    try:
        return await verifier.verify(_extract_token(authorization))
    except InvalidTokenError as e:
        log.info("token rejected: %s", e)
        raise UnauthorizedError("Invalid token", error=str(e))
    except VerifierUnavailableError as e:
        log.exception("token verification failed")
        raise InternalError("Authentication error", error=str(e))
