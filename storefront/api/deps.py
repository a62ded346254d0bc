import jwt
from fastapi import Cookie, Header, Request

from storefront.config import settings
from storefront.errors import Unauthorized
from storefront.services.registry import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def _bearer_token(authorization: str | None) -> str | None:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def get_actor_id(
    authorization: str | None = Header(default=None),
    token: str | None = Cookie(default=None, alias="token"),
) -> str:
    """Dependency: id of the authenticated admin, from the gateway-issued JWT."""
    raw = _bearer_token(authorization) or token
    if not raw:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(raw, settings.SECRET_KEY, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid or expired token") from None
    if not payload.get("sub"):
        raise Unauthorized("Invalid or expired token")
    return payload["sub"]
