# app/routers/course.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin, get_current_user, get_optional_user
from app.models.user import User
from app.schemas.course import (
    CourseCreate,
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    CourseUpdate,
    MyCoursesListResponse,
    PurchaseResult,
)
from app.services.course import CourseService
from app.utils.file_upload import file_upload_service

router = APIRouter(
    prefix="/api/courses",
    tags=["Courses"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=CourseListResponse)
def list_courses(
    q: Optional[str] = Query(None, description="Search by title, instructor or topic"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Browse the catalog.
    Authenticated callers also see which courses they already own.
    """
    service = CourseService(db)
    courses, pagination = service.get_courses(q, page, limit, current_user)
    return {"courses": courses, "pagination": pagination}


@router.get("/my-courses", response_model=MyCoursesListResponse)
def my_courses(
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Courses purchased by the current user, with progress."""
    service = CourseService(db)
    courses, pagination = service.get_my_courses(current_user.id, q, page, limit)
    return {"courses": courses, "pagination": pagination}


@router.get("/{course_id}", response_model=CourseDetailResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    service = CourseService(db)
    return service.get_course(course_id, current_user)


@router.post("/{course_id}/buy", response_model=PurchaseResult)
def buy_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Pay for a course from the user's balance and enroll."""
    service = CourseService(db)
    return service.buy_course(course_id, current_user.id)


# ==================== Admin Endpoints ====================


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    course_in: CourseCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = CourseService(db)
    return service.course_response(service.create_course(course_in))


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = CourseService(db)
    return service.course_response(service.update_course(course_id, course_in))


@router.post("/{course_id}/thumbnail", response_model=CourseResponse)
async def upload_thumbnail(
    course_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = CourseService(db)
    service.get_course_or_404(course_id)
    url = await file_upload_service.save_thumbnail(file)
    course = service.update_course(course_id, CourseUpdate(thumbnail_image=url))
    return service.course_response(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Delete a course along with its modules, progress and enrollments."""
    service = CourseService(db)
    service.delete_course(course_id)
