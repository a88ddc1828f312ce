from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from mindbridge.db.base import Base


USER_ROLES = ("user", "admin")

DEPARTMENTS = {
    "college_computing_studies": "College of Computing Studies",
    "college_health_sciences": "College of Health Sciences",
    "college_criminal_justice": "College of Criminal Justice",
    "college_education": "College of Education",
    "college_business_public_management": "College of Business and Public Management",
    "college_law": "College of Law",
    "college_arts_sciences": "College of Arts and Sciences",
}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)

    role = Column(String(16), nullable=False, default="user")  # "user" | "admin"

    # profile
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    department = Column(String, nullable=True)
    guardian_email = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
