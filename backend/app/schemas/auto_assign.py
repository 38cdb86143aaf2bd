from pydantic import BaseModel, Field


class AutoAssignIn(BaseModel):
    program_pid: str = Field(min_length=1, max_length=50)
    semester_id: str = Field(min_length=1, max_length=100)


class AutoAssignOut(BaseModel):
    program_pid: str
    semester_id: str
    requested: int
    assigned: int
    unfilled: int
    version_id: str | None

    model_config = {"from_attributes": True}
