from pydantic import BaseModel
from typing import Any


# Every endpoint answers {"message": ..., "data": ...}; errors carry data=[]
class Envelope(BaseModel):
    message: str
    data: Any = None
