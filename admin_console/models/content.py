# admin_console/models/content.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Literal
from datetime import datetime

BlogStatus = Literal["draft", "scheduled", "published"]
CallbackStatus = Literal["pending", "scheduled", "contacted", "completed", "cancelled"]
CallbackSort = Literal["added", "urgency", "event_date"]


# --- Блог ---

class BlogRow(BaseModel):
    id: str
    title: str = ""
    author: str = ""
    category: str = ""
    status: str = ""
    thumbnail: str = ""
    created: str = ""
    updated: str = ""
    content: str = ""

class BlogForm(BaseModel):
    id: Optional[str] = None
    title: str
    slug: str = ""
    content: str = ""
    tags: List[str] = []
    author: str = ""
    featuredImage: Optional[str] = None
    metaTitle: Optional[str] = None
    metaDescription: Optional[str] = None
    ogTitle: Optional[str] = None
    ogImage: Optional[str] = None
    schemaEnabled: bool = False
    publishDate: Optional[datetime] = None
    draft: bool = False


# --- Отзывы ---

class Testimonial(BaseModel):
    id: Optional[str] = None
    name: str = ""
    role: str = ""
    image: str = ""
    rating: int = 5
    content: str = ""
    status: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def stringify_id(cls, v):
        if v is None or v == "":
            return None
        return str(v)


# --- Заявки на обратный звонок ---

class CallbackRow(BaseModel):
    id: str
    device_uuid: str = ""
    username: str = ""
    email: str = ""
    phone_number: str = ""
    event_type: str = "Other"
    event_venue: str = ""
    approx_guest: Optional[int] = None
    status: CallbackStatus = "pending"
    event_datetime: Optional[str] = None
    budget: str = ""
    preferred_callback: Optional[str] = None
    theme: str = ""
    notes: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def stringify_id(cls, v):
        return str(v)

    @field_validator(
        'device_uuid', 'username', 'email', 'phone_number', 'event_type', 'event_venue',
        'event_datetime', 'budget', 'preferred_callback', 'theme', 'notes', 'created_at', 'updated_at',
        mode='before',
    )
    @classmethod
    def stringify_scalars(cls, v):
        # бюджет, телефон и т.п. бэкенд может прислать числом
        if v is not None and not isinstance(v, str):
            return str(v)
        return v

    @field_validator('approx_guest', mode='before')
    @classmethod
    def empty_guests(cls, v):
        if v in ("", None):
            return None
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return None

class CallbackForm(BaseModel):
    username: str
    email: str = ""
    phone_number: str = ""
    event_type: str = "Other"
    event_venue: str = ""
    preferred_callback: Optional[datetime] = None
    event_datetime: Optional[datetime] = None
    approx_guest: Optional[int] = Field(None, ge=0)
    budget: str = ""
    theme: str = ""
    notes: str = ""
    device_uuid: str = "admin-ui"
    # учитывается только при редактировании
    status: Optional[CallbackStatus] = None

class CallbackSaveResponse(BaseModel):
    callback: CallbackRow
    warnings: List[str] = []
