from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    message: str
    code: str
    detail: dict = Field(default_factory=dict)


class HealthOut(BaseModel):
    status: str
