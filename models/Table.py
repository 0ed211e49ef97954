from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TableZone(str, Enum):
    INSIDE = "inside"
    GARDEN = "garden"
    ROOM = "room"
    MEZZ = "mezz"


class Table(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    number: str
    capacity: int = Field(gt=0)
    zone: TableZone = TableZone.INSIDE
    active: bool = True


class TableUpdate(BaseModel):
    number: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    zone: Optional[TableZone] = None
    active: Optional[bool] = None
