from typing import List, Optional
from pydantic import BaseModel, Field


class Catalog(BaseModel):
    items: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.error is None

    def __len__(self) -> int:
        return len(self.items)


class CatalogError(ValueError):
    pass


class CatalogEmpty(CatalogError):
    def __init__(self, path: str):
        super().__init__(f"Disease catalog {path} is empty")


class CatalogUnavailable(CatalogError):
    def __init__(self, reason: str):
        super().__init__(f"Disease catalog unavailable: {reason}")
        self.reason = reason
