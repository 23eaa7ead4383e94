from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from eduhouse.access.principal import Principal, PrincipalKind
from eduhouse.core.security import TokenDecodeError, decode_access_token
from eduhouse.db.session import get_db
from eduhouse.models.rbac import Admin, User


oauth2_scheme = OAuth2PasswordBearer(tokenUrl='/api/v1/auth/token')
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl='/api/v1/auth/token', auto_error=False)


def _load_principal(db: Session, token: str) -> Principal:
    try:
        payload = decode_access_token(token)
        subject = payload.get('sub')
        if not subject:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid access token subject')
        subject_id = UUID(subject)
        kind = PrincipalKind(payload['kind'])
    except (TokenDecodeError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid access token') from exc

    if kind is PrincipalKind.ADMIN:
        admin = db.get(Admin, subject_id)
        if not admin:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Admin not found')
        return Principal.for_admin(admin)

    user = db.get(User, subject_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='User not found')
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Inactive user')
    return Principal.for_user(user)


def get_current_principal(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> Principal:
    return _load_principal(db, token)


def get_optional_principal(
    db: Session = Depends(get_db), token: str | None = Depends(optional_oauth2_scheme)
) -> Principal | None:
    if not token:
        return None
    return _load_principal(db, token)
