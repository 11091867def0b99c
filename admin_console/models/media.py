# admin_console/models/media.py
from pydantic import BaseModel, field_validator
from typing import List, Optional

class MediaImage(BaseModel):
    image_id: str
    url: str
    alt_text: Optional[str] = None
    tags: List[str] = []
    width: Optional[int] = None
    height: Optional[int] = None
    linked_id: Optional[str] = None
    linked_table: Optional[str] = None
    linked_page: Optional[str] = None
    image_type: Optional[str] = None
    size: Optional[int] = None
    download_name: Optional[str] = None

    @field_validator('image_id', 'linked_id', mode='before')
    @classmethod
    def stringify(cls, v):
        return None if v is None else str(v)

class ImageUpload(BaseModel):
    # base64 data URL (data:image/...)
    image: str
    alt_text: str = ""
    linked_table: Optional[str] = None

    @field_validator('image')
    @classmethod
    def must_be_data_url(cls, v: str) -> str:
        if not v.startswith("data:image/"):
            raise ValueError("Ожидается изображение в формате data URL")
        return v

class ImageUploadResult(BaseModel):
    url: str
    image_id: Optional[str] = None

class ImageMetadata(BaseModel):
    alt_text: Optional[str] = None
    tags: List[str] = []
    width: Optional[int] = None
    height: Optional[int] = None
    linked_id: Optional[str] = None
    linked_table: Optional[str] = None
    linked_page: Optional[str] = None
    image_type: Optional[str] = None
