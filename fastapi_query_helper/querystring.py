"""Helper to deal with querystring parameters used to build list queries."""
import logging
import re
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Union,
)
from urllib.parse import unquote

from starlette.datastructures import QueryParams

from fastapi_query_helper.compiler import QueryBuilder, compile_query
from fastapi_query_helper.parsing import SortItem
from fastapi_query_helper.schema import CompileOptions, QueryDefaults

if TYPE_CHECKING:
    from fastapi import Request

log = logging.getLogger(__name__)

ParameterValue = Union[str, Dict[str, Optional[str]]]

DEFAULT_LIMIT = 20
DEFAULT_WHERE_KEYS = ("created_at", "updated_at")

ITEM_KEY_RE = re.compile(r"^(?P<name>[^\[\]]+)\[(?P<item>[^\[\]]*)\]$")


class RequestReader(Protocol):
    """Anything able to tell if a querystring parameter exists and to return it."""

    def has(self, key: str) -> bool:
        ...

    def get(self, key: str) -> Optional[ParameterValue]:
        ...


class QueryParamsReader:
    """
    Reader over starlette query params.

    `name=value` gives a plain value, `name[op]=value` items are gathered into a dict::

        ?created_at[gte]=2024-01-01&created_at[lt]=2025-01-01
        reader.get("created_at")
        {'gte': '2024-01-01', 'lt': '2025-01-01'}
    """

    def __init__(self, query_params: QueryParams) -> None:
        self.qs: QueryParams = query_params

    def _get_item_values(self, name: str) -> Dict[str, Optional[str]]:
        results = {}

        for raw_key, value in self.qs.multi_items():
            match = ITEM_KEY_RE.match(unquote(raw_key))
            if match is None or match.group("name") != name:
                continue

            results[match.group("item")] = value or None

        return results

    def has(self, key: str) -> bool:
        return key in self.qs or bool(self._get_item_values(key))

    def get(self, key: str) -> Optional[ParameterValue]:
        if item_values := self._get_item_values(key):
            return item_values
        return self.qs.get(key)


def is_filled(value: Any) -> bool:
    """Empty strings and strings of whitespaces count as not filled."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


class QueryStringManager:
    """Querystring parser for list queries."""

    managed_keys = ("sort", "limit", "relations", "q", "trans_status", "ids")

    def __init__(
        self,
        reader: RequestReader,
        defaults: Union[QueryDefaults, dict, None] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize instance.

        :param reader: request reader.
        :param defaults: caller defaults, see `QueryDefaults`.
        :param config: settings, usually `app.config`.
        """
        self.reader: RequestReader = reader
        self.config: Dict[str, Any] = config or {}
        self.DEFAULT_LIMIT: int = self.config.get("DEFAULT_LIMIT", DEFAULT_LIMIT)
        self.MAX_LIMIT: Optional[int] = self.config.get("MAX_LIMIT")
        self.DEFAULT_SORT_FIELD: str = self.config.get("DEFAULT_SORT_FIELD", "updated_at")
        self.DEFAULT_SORT_ORDER: str = self.config.get("DEFAULT_SORT_ORDER", "desc")

        self.search_fields: List[str] = []
        self.where_keys: List[str] = list(DEFAULT_WHERE_KEYS)
        self.defaults: QueryDefaults = QueryDefaults()

        self._parameters: Mapping[str, ParameterValue] = MappingProxyType(self._extract_parameters())

        if defaults is not None:
            self.set_defaults(defaults)

    @classmethod
    def from_request(
        cls,
        request: "Request",
        defaults: Union[QueryDefaults, dict, None] = None,
    ) -> "QueryStringManager":
        return cls(
            reader=QueryParamsReader(request.query_params),
            defaults=defaults,
            config=getattr(request.app, "config", {}),
        )

    def _extract_parameters(self) -> Dict[str, ParameterValue]:
        parameters = {}
        for key in self.managed_keys:
            value = self.get_by_key(key)
            if value is not None:
                parameters[key] = value
        return parameters

    @property
    def parameters(self) -> Mapping[str, ParameterValue]:
        """
        Return managed parameters present in the request.

        :return: read only mapping, e.g. ``{'sort': 'name|asc', 'limit': '50'}``
        """
        return self._parameters

    def get(self) -> Mapping[str, ParameterValue]:
        return self._parameters

    def get_parameter(self, key: str) -> Optional[ParameterValue]:
        return self._parameters.get(key)

    def get_by_key(self, key: str) -> Optional[ParameterValue]:
        """
        Return request value for any key if it exists and is filled.

        Looked up against the request on each call.
        """
        if not self.reader.has(key):
            return None

        value = self.reader.get(key)
        if not is_filled(value):
            return None

        return value

    def get_limit(self) -> int:
        """
        Return items limit.

        Falls back to `DEFAULT_LIMIT` if limit is missing or is not a positive integer.
        The result never exceeds `MAX_LIMIT`.
        """
        raw_limit = self.get_parameter("limit")
        if raw_limit is None:
            return self._clamp_limit(self.DEFAULT_LIMIT)

        try:
            limit = int(raw_limit)
        except (TypeError, ValueError):
            log.debug("Limit %r is not an integer, use default %s", raw_limit, self.DEFAULT_LIMIT)
            return self._clamp_limit(self.DEFAULT_LIMIT)

        if limit <= 0:
            log.debug("Limit %r is not positive, use default %s", raw_limit, self.DEFAULT_LIMIT)
            return self._clamp_limit(self.DEFAULT_LIMIT)

        return self._clamp_limit(limit)

    def _clamp_limit(self, limit: int) -> int:
        if self.MAX_LIMIT and limit > self.MAX_LIMIT:
            return self.MAX_LIMIT
        return limit

    @property
    def limit(self) -> int:
        return self.get_limit()

    def set_where_keys(self, keys: Iterable[str] = ()) -> "QueryStringManager":
        """Add keys you can use in `where` condition."""
        for key in keys:
            if key not in self.where_keys:
                self.where_keys.append(key)
        return self

    def set_search_fields(self, fields: Iterable[str] = ()) -> "QueryStringManager":
        """Set database fields you want to search on."""
        self.search_fields = list(fields)
        return self

    def set_defaults(self, defaults: Union[QueryDefaults, dict]) -> "QueryStringManager":
        """
        Set default relations, sorts and status.

        Empty values don't override current defaults.
        """
        if not isinstance(defaults, QueryDefaults):
            defaults = QueryDefaults(**defaults)

        if defaults.relations:
            self.defaults.relations = list(defaults.relations)
        if defaults.sorts:
            self.defaults.sorts = list(defaults.sorts)
        if defaults.status.field:
            self.defaults.status = defaults.status.model_copy()

        return self

    def prepare_sql_query(
        self,
        builder: QueryBuilder,
        options: Union[CompileOptions, dict, None] = None,
    ) -> QueryBuilder:
        """
        Apply sorts, relations, search, ids and where conditions to a query builder.

        :param builder: query builder to fill.
        :param options: categories to process, see `CompileOptions`.
        :return: the same builder.
        """
        return compile_query(
            builder=builder,
            qs=self,
            search_fields=self.search_fields,
            where_fields=self.where_keys,
            defaults=self.defaults,
            options=options,
            default_sort=SortItem(field=self.DEFAULT_SORT_FIELD, order=self.DEFAULT_SORT_ORDER),
        )
