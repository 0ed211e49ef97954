"""
Caller identity for engine operations.

Tokens are issued elsewhere; this module only verifies a bearer JWT and
turns its claims into a ``Caller`` that routes pass explicitly to the
engine functions.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET
from errors import PermissionDenied, Unauthorized

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLES = (ROLE_ADMIN, ROLE_STAFF)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __str__(self) -> str:
        return f"{self.user_id} ({self.role})"


# Reconciler runs triggered by the scheduler act under this identity
SYSTEM_CALLER = Caller(user_id="system", role=ROLE_ADMIN)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Caller]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in ROLES:
        return None
    return Caller(user_id=str(user_id), role=role)


def get_caller(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Caller:
    if credentials is None:
        raise Unauthorized("Missing bearer token")
    caller = verify_token(credentials.credentials)
    if caller is None:
        raise Unauthorized("Invalid authentication credentials")
    return caller


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise PermissionDenied("Admin role required")
    return caller
