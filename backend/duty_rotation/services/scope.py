from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Scope:
    """
    Область ротации: пара (сектор, служба) с площадкой для хранения.
    
    Без службы - ротация инженеров сектора, со службой - ротация
    сотрудников службы.
    """
    site_id: int
    sector_id: int
    service_id: Optional[int] = None
    
    @property
    def is_service_level(self) -> bool:
        return self.service_id is not None
    
    @property
    def key(self) -> Tuple[int, int, Optional[int]]:
        return (self.site_id, self.sector_id, self.service_id)
    
    @property
    def label(self) -> str:
        if self.service_id is None:
            return f"site={self.site_id}/sector={self.sector_id}"
        return f"site={self.site_id}/sector={self.sector_id}/service={self.service_id}"
    
    def as_dict(self) -> Dict[str, Any]:
        return {
            "site_id": self.site_id,
            "sector_id": self.sector_id,
            "service_id": self.service_id,
        }
