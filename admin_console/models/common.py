# admin_console/models/common.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Any

class IdsPayload(BaseModel):
    """Список выбранных строк таблицы (массовые операции)."""
    ids: List[str] = Field(..., min_length=1)

    @field_validator('ids', mode='before')
    @classmethod
    def stringify_ids(cls, v):
        if isinstance(v, list):
            return [str(x) for x in v if str(x).strip()]
        return v

class BulkResult(BaseModel):
    """Итог массовой операции: сколько прошло, сколько упало."""
    ok: int = 0
    failed: int = 0
    failed_ids: List[str] = []
    message: Optional[str] = None

class OperationResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
