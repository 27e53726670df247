# app/routers/module.py
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin, get_current_user
from app.models.user import User
from app.schemas.module import (
    ModuleCreate,
    ModuleListResponse,
    ModuleReorderRequest,
    ModuleReorderResponse,
    ModuleResponse,
    ModuleUpdate,
)
from app.schemas.progress import CompletionResult
from app.services.certificate import CertificateIssuer, get_certificate_issuer
from app.services.module import ModuleService
from app.utils.file_upload import file_upload_service

course_modules_router = APIRouter(
    prefix="/api/courses/{course_id}/modules",
    tags=["Modules"],
    responses={404: {"description": "Not found"}},
)

router = APIRouter(
    prefix="/api/modules",
    tags=["Modules"],
    responses={404: {"description": "Not found"}},
)


# ==================== Course Modules ====================


@course_modules_router.get("", response_model=ModuleListResponse)
def list_modules(
    course_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Modules of a course ordered by position.
    Requires a purchase of the course (admins exempt).
    """
    service = ModuleService(db)
    modules, pagination = service.get_modules(course_id, current_user, page, limit)
    return {"modules": modules, "pagination": pagination}


@course_modules_router.post(
    "", response_model=ModuleResponse, status_code=status.HTTP_201_CREATED
)
def create_module(
    course_id: int,
    module_in: ModuleCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Append a module to the course. Admin only."""
    service = ModuleService(db)
    return service.create_module(course_id, module_in)


@course_modules_router.patch("/reorder", response_model=ModuleReorderResponse)
def reorder_modules(
    course_id: int,
    request: ModuleReorderRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    """Apply a new ordering in one transaction. Admin only."""
    service = ModuleService(db)
    module_order = service.reorder_modules(course_id, request.module_order)
    return {"module_order": module_order}


# ==================== Single Module ====================


@router.get("/{module_id}", response_model=ModuleResponse)
def get_module(
    module_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = ModuleService(db)
    return service.get_module(module_id, current_user)


@router.patch("/{module_id}/complete", response_model=CompletionResult)
def complete_module(
    module_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    certificate_issuer: CertificateIssuer = Depends(get_certificate_issuer),
):
    """
    Mark the module as completed.
    The response carries a certificate URL once the whole course is done.
    """
    service = ModuleService(db, certificate_issuer=certificate_issuer)
    return service.complete_module(module_id, current_user)


@router.put("/{module_id}", response_model=ModuleResponse)
def update_module(
    module_id: int,
    module_in: ModuleUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = ModuleService(db)
    return service.update_module(module_id, module_in)


@router.post("/{module_id}/pdf", response_model=ModuleResponse)
async def upload_module_pdf(
    module_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = ModuleService(db)
    service.get_module_or_404(module_id)
    url = await file_upload_service.save_pdf(file)
    return service.update_module(module_id, ModuleUpdate(pdf_content=url))


@router.post("/{module_id}/video", response_model=ModuleResponse)
async def upload_module_video(
    module_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = ModuleService(db)
    service.get_module_or_404(module_id)
    url = await file_upload_service.save_video(file)
    return service.update_module(module_id, ModuleUpdate(video_content=url))


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_module(
    module_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    service = ModuleService(db)
    service.delete_module(module_id)
