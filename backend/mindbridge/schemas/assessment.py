from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Dict, List, Optional


class AnswerOption(BaseModel):
    value: int
    label: str


class QuestionOut(BaseModel):
    id: int
    category: str
    question: str
    options: List[AnswerOption]


class AssessmentSubmit(BaseModel):
    answers: Dict[int, int]


class RecommendationOut(BaseModel):
    id: int
    category: str
    title: str
    description: Optional[str] = None
    priority: Optional[int] = None
    completed: bool

    model_config = ConfigDict(from_attributes=True)


class RecommendationUpdate(BaseModel):
    completed: bool


class AssessmentOut(BaseModel):
    id: int
    category_scores: Dict[str, int]
    overall_severity: str
    primary_concerns: List[str]
    recommendations: List[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
