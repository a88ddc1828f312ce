from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from mindbridge.core.security import oauth2_scheme, decode_access_token
from mindbridge.db.session import get_db
from mindbridge.models.user import User


def get_user_from_token(db: Session, token: str) -> User:
    """
    Resolve a bearer token to its user.

    A token whose role claim no longer matches the stored role (the user
    was promoted or demoted since login) is rejected; the user must log in
    again.
    """
    claims = decode_access_token(token)

    user = db.query(User).filter(User.email == claims.email).first()
    if not user or (claims.role is not None and claims.role != user.role):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return get_user_from_token(db, token)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user
