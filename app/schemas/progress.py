# app/schemas/progress.py
from typing import Optional

from pydantic import BaseModel, Field


class CourseProgress(BaseModel):
    """Progress of one user through one course"""

    total_modules: int = Field(..., ge=0)
    completed_modules: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0)

    @property
    def is_complete(self) -> bool:
        return self.total_modules > 0 and self.percentage >= 100


class CompletionResult(BaseModel):
    module_id: int
    is_completed: bool = True
    course_progress: CourseProgress
    certificate_url: Optional[str] = None
