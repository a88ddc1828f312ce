from pydantic import BaseModel
from typing import List


class DashboardStats(BaseModel):
    users: int
    assessments: int
    ai_chats: int
    expert_chats: int
    pending_expert_chats: int


class DepartmentCount(BaseModel):
    department: str
    count: int


class IssueCount(BaseModel):
    issue: str
    count: int


class AnalyticsOut(BaseModel):
    departments: List[DepartmentCount]
    issues: List[IssueCount]
