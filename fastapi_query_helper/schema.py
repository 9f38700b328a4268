"""Settings schemas for query building."""
from typing import List, Optional

from pydantic import BaseModel, Field


class StatusDefault(BaseModel):
    """Value used for the status field when the request has no value for it."""

    field: Optional[str] = None
    state: Optional[str] = None


class QueryDefaults(BaseModel):
    """
    Caller defaults.

    :param relations: relations always loaded, appended after requested ones.
    :param sorts: sorts in `field|order` notation used when request has no `sort`.
    :param status: status field fallback.
    """

    relations: List[str] = Field(default_factory=list)
    sorts: List[str] = Field(default_factory=list)
    status: StatusDefault = Field(default_factory=StatusDefault)


class CompileOptions(BaseModel):
    """
    Parameter categories processed on a `prepare_sql_query` call.

    `filter` is accepted for compatibility, where conditions are always applied.
    """

    sort: bool = True
    relations: bool = True
    q: bool = True
    filter: bool = True
