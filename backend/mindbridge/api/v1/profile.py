from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mindbridge.db.session import get_db
from mindbridge.core.dependencies import get_current_user
from mindbridge.schemas.user import ProfileUpdate, UserOut
from mindbridge.services.auth_service import update_profile

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=UserOut)
def get_profile(current_user=Depends(get_current_user)):
    return current_user


@router.patch("", response_model=UserOut)
def patch_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return update_profile(db, current_user, payload.model_dump(exclude_unset=True))
