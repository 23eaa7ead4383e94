from uuid import UUID

from pydantic import BaseModel, Field

from eduhouse.schemas.common import BaseSchema


class SchoolMemberUpsert(BaseModel):
    is_teaching_staff: bool = True
    is_active: bool = True
    class_assigned: str | None = Field(default=None, max_length=100)


class SchoolMemberOut(BaseSchema):
    school_id: int
    school_code: str
    user_id: UUID
    is_teaching_staff: bool
    is_active: bool
    class_assigned: str | None


class SchoolMemberUpsertOut(BaseModel):
    created: bool
    member: SchoolMemberOut
