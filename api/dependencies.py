"""API Dependencies - Authentication"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from domain.auth import Operator
from infrastructure.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_operator(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> Operator:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise credentials_exception

    username = payload.get("sub")
    if not username:
        raise credentials_exception
    return Operator(
        username=username,
        full_name=payload.get("name"),
        disabled=bool(payload.get("disabled", False)),
    )


async def get_current_active_operator(current: Operator = Depends(get_current_operator)) -> Operator:
    if current.disabled:
        raise HTTPException(status_code=400, detail="Inactive operator")
    return current
