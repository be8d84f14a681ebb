"""Caller identity for the two kinds of client.

End users: signup and login live in another service which sits in front of
this one and forwards the authenticated user id in ``X-User-Id``.

Payment gateway: settlement callbacks carry the shared secret configured as
``BOOKINGS["GATEWAY_CALLBACK_TOKEN"]`` in ``X-Gateway-Token``. A user id
header is never enough to reach them.
"""

import hmac
from dataclasses import dataclass

from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework.request import Request

USER_HEADER = "X-User-Id"
GATEWAY_HEADER = "X-Gateway-Token"


@dataclass(frozen=True)
class Principal:
    user_id: str

    @property
    def is_authenticated(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.user_id


@dataclass(frozen=True)
class GatewayPrincipal:
    name: str = "payment-gateway"

    @property
    def is_authenticated(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.name


class UserHeaderAuthentication(authentication.BaseAuthentication):
    def authenticate(self, request: Request) -> tuple[Principal, None] | None:
        user_id = request.headers.get(USER_HEADER, "").strip()
        if not user_id:
            return None
        if len(user_id) > 64:
            raise exceptions.AuthenticationFailed("Invalid user id.")
        return Principal(user_id=user_id), None

    def authenticate_header(self, request: Request) -> str:
        return USER_HEADER


class GatewayTokenAuthentication(authentication.BaseAuthentication):
    """Accepts only the payment gateway's shared secret.

    With no secret configured every callback is refused.
    """

    def authenticate(self, request: Request) -> tuple[GatewayPrincipal, None] | None:
        presented = request.headers.get(GATEWAY_HEADER, "")
        if not presented:
            return None
        expected = getattr(settings, "BOOKINGS", {}).get("GATEWAY_CALLBACK_TOKEN", "")
        if not expected or not hmac.compare_digest(presented.encode(), expected.encode()):
            raise exceptions.AuthenticationFailed("Invalid gateway token.")
        return GatewayPrincipal(), None

    def authenticate_header(self, request: Request) -> str:
        return GATEWAY_HEADER
