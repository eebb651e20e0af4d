"""API Dependencies - Authentication"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import Operator, OperatorInDB
from infrastructure.security import decode_access_token, get_password_hash
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Front-desk accounts; staff management lives outside this service
_operators_db = {
    "frontdesk": {
        "username": "frontdesk",
        "full_name": "Front Desk",
        "email": "frontdesk@example.com",
        "role": "front-desk",
        "plain_password": "frontdesk123",
        "disabled": False,
    },
    "manager": {
        "username": "manager",
        "full_name": "Duty Manager",
        "email": "manager@example.com",
        "role": "manager",
        "plain_password": "manager123",
        "disabled": False,
    },
}

operators_db = _operators_db

_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        operator = _operators_db.get(username)
        if operator and "plain_password" in operator:
            _password_hash_cache[username] = get_password_hash(operator["plain_password"])
    return _password_hash_cache.get(username, "")


def get_operator(db, username: str):
    if username in db:
        operator_dict = db[username].copy()
        if "plain_password" in operator_dict:
            operator_dict["hashed_password"] = _get_hashed_password(username)
            del operator_dict["plain_password"]
        return OperatorInDB(**operator_dict)
    return None


async def get_current_operator(token: str = Depends(oauth2_scheme)):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    operator = get_operator(_operators_db, username=token_data.username)
    if operator is None:
        raise credentials_exception
    return operator


async def get_current_active_operator(current_operator: Operator = Depends(get_current_operator)):
    if current_operator.disabled:
        raise HTTPException(status_code=400, detail="Inactive operator")
    return current_operator
