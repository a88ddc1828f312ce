from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status

from mindbridge.models.user import User, DEPARTMENTS, USER_ROLES
from mindbridge.core.security import get_password_hash, verify_password


def create_user(
    db: Session,
    email: str,
    password: str,
    *,
    role: str = "user",
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    department: Optional[str] = None,
):
    if role not in USER_ROLES:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown role: {role}"
        )

    if department and department not in DEPARTMENTS:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown department: {department}"
        )

    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        department=department,
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )


def authenticate_user(db: Session, email: str, password: str):
    user = db.query(User).filter(User.email == email).first()

    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    return user


def update_profile(db: Session, user: User, changes: dict) -> User:
    department = changes.get("department")
    if department and department not in DEPARTMENTS:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown department: {department}"
        )

    for field, value in changes.items():
        setattr(user, field, value)

    db.add(user)
    db.commit()
    db.refresh(user)
    return user
