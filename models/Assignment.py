from datetime import date as Date
from typing import List, Optional

from pydantic import BaseModel


class AssignTablesRequest(BaseModel):
    table_ids: List[int]
    date: Date
    start_time: str
    end_time: Optional[str] = None
