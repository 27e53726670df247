# app/schemas/module.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.common import Pagination

# ==================== Module Schemas ====================


class ModuleCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    pdf_content: Optional[str] = None
    video_content: Optional[str] = None


class ModuleUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    pdf_content: Optional[str] = None
    video_content: Optional[str] = None


class ModuleCourseInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    instructor: str


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    description: str
    order: int
    pdf_content: Optional[str] = None
    video_content: Optional[str] = None
    is_completed: bool = False
    created_at: datetime
    updated_at: datetime


class ModuleListItem(ModuleResponse):
    course: ModuleCourseInfo


class ModuleListResponse(BaseModel):
    modules: List[ModuleListItem]
    pagination: Pagination


# ==================== Reorder Schemas ====================


class ModuleOrderItem(BaseModel):
    id: int
    order: int


class ModuleReorderRequest(BaseModel):
    module_order: List[ModuleOrderItem] = Field(..., min_length=1)


class ModuleReorderResponse(BaseModel):
    module_order: List[ModuleOrderItem]
