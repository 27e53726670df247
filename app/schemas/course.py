# app/schemas/course.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import Money, Pagination

# ==================== Course Schemas ====================


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    instructor: str = Field(..., min_length=1, max_length=255)
    topics: List[str] = Field(default_factory=list)
    price: Money = Field(..., ge=0)


class CourseCreate(CourseBase):
    thumbnail_image: Optional[str] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    instructor: Optional[str] = Field(None, min_length=1, max_length=255)
    topics: Optional[List[str]] = None
    price: Optional[Money] = Field(None, ge=0)
    thumbnail_image: Optional[str] = None


class CourseResponse(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    thumbnail_image: Optional[str] = None
    total_modules: int = 0
    created_at: datetime
    updated_at: datetime


class CourseListItem(CourseResponse):
    """Catalog entry as seen by the (optional) caller"""

    is_purchased: bool = False


class CourseDetailResponse(CourseResponse):
    """Course with the caller's progress"""

    completed_modules: int = 0
    progress_percentage: float = 0.0
    is_purchased: bool = False


class CourseListResponse(BaseModel):
    courses: List[CourseListItem]
    pagination: Pagination


class MyCourseResponse(CourseResponse):
    """Enrolled course with progress"""

    completed_modules: int
    progress_percentage: float
    purchased_at: datetime


class MyCoursesListResponse(BaseModel):
    courses: List[MyCourseResponse]
    pagination: Pagination


# ==================== Purchase Schemas ====================


class PurchaseResult(BaseModel):
    course_id: int
    user_balance: Money
    transaction_id: int


class DashboardResponse(BaseModel):
    courses: List[MyCourseResponse]
    enrolled_count: int
    completed_count: int
