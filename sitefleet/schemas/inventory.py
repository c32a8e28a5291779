from typing import Optional

from .common import CamelModel


class MaterialIn(CamelModel):
    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    stock_qty: Optional[float] = None


class ToolIn(CamelModel):
    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    quantity_available: Optional[int] = None
