"""Request-scoped authentication dependencies."""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kanban.auth import create_access_token, decode_access_token
from kanban.errors import Forbidden, Unauthorized
from kanban.models import User, UserRole, UserType

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, decoded from the session token claims.

    Handlers receive it explicitly and hand it to the service layer, so
    authorization never reads ambient state.
    """

    id: int
    role: UserRole
    user_type: UserType

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, role=UserRole(user.role), user_type=UserType(user.user_type))


def issue_token(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "role": UserRole(user.role).value, "type": UserType(user.user_type).value}
    )


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Unauthorized")

    claims = decode_access_token(credentials.credentials)
    try:
        return Principal(
            id=int(claims["sub"]),
            role=UserRole(claims["role"]),
            user_type=UserType(claims["type"]),
        )
    except (KeyError, ValueError) as exc:
        raise Unauthorized("Invalid authentication credentials") from exc


def ensure_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise Forbidden("Forbidden: User is not an Admin")
