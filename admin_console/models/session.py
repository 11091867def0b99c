# admin_console/models/session.py
from pydantic import BaseModel
from typing import List, Optional

class AdminAccount(BaseModel):
    admin_id: str
    admin_name: str = ""
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    access_pages: List[str] = []
    created_at: Optional[str] = None

class SessionCheckRequest(BaseModel):
    """Что консоль хранит локально после входа."""
    admin_id: Optional[str] = None
    access_pages: List[str] = []
    path: str

class SessionCheckResponse(BaseModel):
    authorized: bool
    # причина отказа: no_session | deleted | permissions_changed | no_pages | forbidden
    reason: Optional[str] = None
    redirect_to: Optional[str] = None
    allowed_paths: List[str] = []
