"""FastAPI dependencies."""
from typing import Iterable, Optional, Union

from fastapi import Request

from fastapi_query_helper.querystring import QueryStringManager
from fastapi_query_helper.schema import QueryDefaults


class QueryStringDependency:
    """
    Build a configured `QueryStringManager` for the current request.

    Usage::

        users_query = QueryStringDependency(search_fields=["name", "email"], where_keys=["status"])

        @router.get("/users")
        async def get_users(qs: QueryStringManager = Depends(users_query)):
            ...
    """

    def __init__(
        self,
        search_fields: Iterable[str] = (),
        where_keys: Iterable[str] = (),
        defaults: Union[QueryDefaults, dict, None] = None,
    ):
        self.search_fields = list(search_fields)
        self.where_keys = list(where_keys)
        self.defaults = defaults

    def __call__(self, request: Request) -> QueryStringManager:
        qs = QueryStringManager.from_request(request, defaults=self.defaults)
        return qs.set_search_fields(self.search_fields).set_where_keys(self.where_keys)
