"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional


class Operator(BaseModel):
    """Back-office operator, as asserted by a verified access token"""
    username: str
    full_name: Optional[str] = None
    disabled: bool = False

    class Config:
        from_attributes = True
