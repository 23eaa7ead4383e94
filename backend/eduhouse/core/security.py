from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from eduhouse.core.config import settings


PRINCIPAL_KINDS = ('admin', 'user')


class TokenDecodeError(Exception):
    pass


def create_access_token(subject: str, *, kind: str, expires_delta: timedelta | None = None) -> str:
    """
    Issue a bearer token for an admin or a user.

    Token issuance flows (OTP, login) live outside this service; this helper is what they
    and the test-suite use to mint tokens this API accepts.
    """
    if kind not in PRINCIPAL_KINDS:
        raise ValueError(f'Unknown principal kind: {kind}')
    data: dict[str, Any] = {'sub': subject, 'kind': kind, 'token_type': 'access'}
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    data.update({'exp': expire})
    return jwt.encode(data, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise TokenDecodeError('Invalid access token') from exc

    if payload.get('token_type') != 'access':
        raise TokenDecodeError('Unexpected token type for access token')
    if payload.get('kind') not in PRINCIPAL_KINDS:
        raise TokenDecodeError('Unexpected principal kind')
    return payload
