from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict

from eduhouse.core.dates import as_utc


UTCDateTime = Annotated[datetime, AfterValidator(as_utc)]


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PaginationMeta(BaseModel):
    page: int
    page_size: int
    total: int
