from typing import Literal

from pydantic import BaseModel


class Notification(BaseModel):
    level: Literal["success", "error"]
    message: str
    code: str | None = None
