# admin_console/models/category.py
from pydantic import BaseModel, Field
from typing import List, Optional, Literal

VisibilityStatus = Literal["visible", "hidden"]
TaxonomyKind = Literal["categories", "subcategories"]

class Category(BaseModel):
    id: str
    name: str
    status: Optional[str] = None

class Subcategory(BaseModel):
    id: str
    name: str
    status: Optional[str] = None
    # бэкенд присылает здесь имена или id родительских категорий
    categories: List[str] = []

class TaxonomyDeletePayload(BaseModel):
    ids: List[str] = Field(..., min_length=1)
    # False: первый проход, бэкенд может попросить подтверждение
    confirm: bool = False

class TaxonomyDeleteResponse(BaseModel):
    success: bool
    needs_confirmation: bool = False
    message: Optional[str] = None
    remaining: List[dict] = []

class VisibilityPayload(BaseModel):
    ids: List[str] = Field(..., min_length=1)
    status: VisibilityStatus
