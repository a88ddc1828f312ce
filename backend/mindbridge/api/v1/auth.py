from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm

from mindbridge.schemas.user import UserCreate, Token, UserOut
from mindbridge.services.auth_service import create_user, authenticate_user
from mindbridge.core.security import create_user_token
from mindbridge.core.dependencies import get_current_user
from mindbridge.db.session import get_db

router = APIRouter(
    prefix="/auth",
    tags=["Auth"]
)


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED
)
def register(user: UserCreate, db: Session = Depends(get_db)):
    created_user = create_user(
        db,
        user.email,
        user.password,
        first_name=user.first_name,
        last_name=user.last_name,
        department=user.department,
    )

    return {
        "id": created_user.id,
        "email": created_user.email,
        "role": created_user.role,
    }


@router.post(
    "/login",
    response_model=Token,
    status_code=status.HTTP_200_OK
)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    authenticated_user = authenticate_user(
        db,
        email=form_data.username,  # OAuth2 uses "username"
        password=form_data.password
    )

    if not authenticated_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_user_token(authenticated_user.email, authenticated_user.role)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "role": authenticated_user.role,
    }


@router.get("/me", response_model=UserOut)
def me(current_user=Depends(get_current_user)):
    return current_user
