"""Domain Entities - Operators"""
from pydantic import BaseModel
from typing import Optional


class Operator(BaseModel):
    """Front-desk staff member; the name is stamped on check-in, check-out and acknowledgements"""
    username: str
    full_name: str
    role: str = "front-desk"
    email: Optional[str] = None
    disabled: bool = False

    class Config:
        from_attributes = True


class OperatorInDB(Operator):
    hashed_password: str
