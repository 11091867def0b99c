# admin_console/models/notification.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Literal

NotificationStatus = Literal["read", "unread"]
CommentStatus = Literal["pending", "approved", "rejected", "hidden"]

class Notification(BaseModel):
    notification_id: str
    message: str = ""
    created_at: str = ""
    type: str = ""
    status: NotificationStatus = "unread"
    source_table: Optional[str] = None
    # для product_comment это id комментария
    source_id: Optional[str] = None
    order_id: Optional[str] = None
    sku: Optional[str] = None
    user: Optional[str] = None
    meta_status: Optional[CommentStatus] = None

class NotificationFeed(BaseModel):
    notifications: List[Notification] = []
    unread: int = 0
    # вкладки-источники, доступные текущему администратору
    sources: List[str] = []
    comment_statuses: Dict[str, CommentStatus] = {}
    # непрочитанные по вкладкам, "all" = все доступные
    tab_counts: Dict[str, int] = {}

class MarkReadPayload(BaseModel):
    ids: List[str] = Field(..., min_length=1)

class MarkReadResult(BaseModel):
    marked: List[str] = []
    failed: List[str] = []

class CommentModerationPayload(BaseModel):
    status: CommentStatus

class CommentModerationResult(BaseModel):
    comment_id: str
    status: CommentStatus
    marked_read: List[str] = []
