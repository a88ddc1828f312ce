from sqlalchemy import (
    Column,
    Integer,
    ForeignKey,
    Boolean,
    DateTime,
    Text,
    String,
    JSON,
    SmallInteger,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from mindbridge.db.base import Base


class AssessmentResult(Base):
    """
    One completed self-assessment and its derived severity.
    """

    __tablename__ = "assessment_results"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category_scores = Column(JSON, nullable=False)
    overall_severity = Column(String, nullable=False)
    primary_concerns = Column(JSON, nullable=False, default=list)
    recommendations = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user = relationship("User", backref="assessment_results")
    recommendation_items = relationship(
        "Recommendation",
        back_populates="assessment_result",
        cascade="all, delete-orphan",
        order_by="Recommendation.priority",
    )


class Recommendation(Base):
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True)

    assessment_result_id = Column(
        Integer,
        ForeignKey("assessment_results.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    category = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(SmallInteger, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    assessment_result = relationship("AssessmentResult", back_populates="recommendation_items")
