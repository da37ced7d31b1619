from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuditEventResponse(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    action: str
    actor: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
