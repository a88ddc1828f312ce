from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mindbridge.db.session import get_db
from mindbridge.core.dependencies import get_current_user
from mindbridge.schemas.assessment import (
    AssessmentOut,
    AssessmentSubmit,
    QuestionOut,
    RecommendationOut,
    RecommendationUpdate,
)
from mindbridge.services.assessment_service import (
    get_assessment,
    get_questions,
    list_assessments,
    save_assessment,
    set_recommendation_completed,
)

router = APIRouter(tags=["Assessments"])


@router.get("/assessments/questions", response_model=list[QuestionOut])
def questions():
    return get_questions()


@router.post("/assessments", response_model=AssessmentOut, status_code=status.HTTP_201_CREATED)
def submit_assessment(
    payload: AssessmentSubmit,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return save_assessment(db, user_id=current_user.id, answers=payload.answers)


@router.get("/assessments", response_model=list[AssessmentOut])
def assessment_history(
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return list_assessments(db, current_user.id)


@router.get("/assessments/{assessment_id}/recommendations", response_model=list[RecommendationOut])
def assessment_recommendations(
    assessment_id: int,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return get_assessment(db, current_user.id, assessment_id).recommendation_items


@router.patch("/recommendations/{recommendation_id}", response_model=RecommendationOut)
def update_recommendation(
    recommendation_id: int,
    payload: RecommendationUpdate,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
):
    return set_recommendation_completed(
        db,
        user_id=current_user.id,
        recommendation_id=recommendation_id,
        completed=payload.completed,
    )
