from pydantic import BaseModel
from typing import Optional


class ScopeRef(BaseModel):
    """Ссылка на область ротации: сектор и (для ротации службы) служба"""
    sector_id: int
    service_id: Optional[int] = None


class ScopeInfo(ScopeRef):
    site_id: int
