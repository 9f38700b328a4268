"""Turn querystring parameters into query builder calls."""

import logging
from contextlib import contextmanager
from typing import (
    TYPE_CHECKING,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
)

from fastapi_query_helper.exceptions import BadRequest
from fastapi_query_helper.parsing import (
    SortItem,
    get_operator,
    parse_ids,
    parse_name_list,
    parse_search,
    parse_sort_list,
)
from fastapi_query_helper.schema import CompileOptions, QueryDefaults
from fastapi_query_helper.splitter import SPLIT_LIST, has_symbol

if TYPE_CHECKING:
    from fastapi_query_helper.querystring import QueryStringManager

log = logging.getLogger(__name__)

ID_FIELD = "id"
DEFAULT_SORT = SortItem(field="updated_at", order="desc")


class QueryBuilder(Protocol):
    """Operations a query has to support to be prepared from querystring."""

    def order_by(self, field: str, order: str) -> None:
        ...

    def include(self, relation: str) -> None:
        ...

    def where_equals(self, field: str, value: str) -> None:
        ...

    def where_op(self, field: str, operator: str, value: str) -> None:
        ...

    def where_like(self, field: str, pattern: str) -> None:
        ...

    def where_in(self, field: str, values: List[str]) -> None:
        ...

    def where_group_or(self, pairs: List[Tuple[str, str]]) -> None:
        """Add one condition: `field_1 LIKE pattern_1 OR field_2 LIKE pattern_2 ...`"""


def get_string_parameter(qs: "QueryStringManager", key: str) -> Optional[str]:
    value = qs.get_parameter(key)
    if value is not None and not isinstance(value, str):
        log.warning("Skip %s parameter given as %s", key, type(value).__name__)
        return None
    return value


@contextmanager
def error_source(parameter: str) -> Iterator[None]:
    """Point builder errors at the querystring parameter they come from."""
    try:
        yield
    except BadRequest as ex:
        raise ex.with_parameter(parameter) from ex


def like_pattern(term: str) -> str:
    return f"%{term}%"


def apply_sorts(
    builder: QueryBuilder,
    raw_sort: Optional[str],
    defaults: QueryDefaults,
    default_sort: SortItem,
) -> None:
    sorts = parse_sort_list(raw_sort) if raw_sort is not None else []
    if not sorts and defaults.sorts:
        sorts = parse_sort_list(SPLIT_LIST.join(defaults.sorts))
    if not sorts:
        sorts = [default_sort]

    for sort in sorts:
        log.debug("Order by %s %s", sort.field, sort.order)
        builder.order_by(sort.field, sort.order)


def apply_relations(builder: QueryBuilder, raw_relations: Optional[str], defaults: QueryDefaults) -> None:
    relations = parse_name_list(raw_relations) if raw_relations is not None else []
    relations.extend(defaults.relations)

    for relation in relations:
        log.debug("Include %s", relation)
        builder.include(relation)


def apply_search(builder: QueryBuilder, raw_search: Optional[str], search_fields: Sequence[str]) -> None:
    if raw_search is None or not search_fields:
        return

    token = parse_search(raw_search)
    if token.field == ID_FIELD:
        # ids are never partially matched
        builder.where_equals(token.field, token.term)
    elif token.field is not None:
        builder.where_like(token.field, like_pattern(token.term))
    elif len(search_fields) > 1:
        builder.where_group_or([(field, like_pattern(token.term)) for field in search_fields])
    else:
        builder.where_like(search_fields[0], like_pattern(token.term))


def apply_ids(builder: QueryBuilder, raw_ids: Optional[str]) -> None:
    if raw_ids is None:
        return

    if has_symbol(raw_ids, SPLIT_LIST):
        builder.where_in(ID_FIELD, parse_ids(raw_ids))
    else:
        builder.where_equals(ID_FIELD, raw_ids)


def apply_where_fields(
    builder: QueryBuilder,
    qs: "QueryStringManager",
    where_fields: Sequence[str],
    defaults: QueryDefaults,
) -> None:
    status = defaults.status
    for field in where_fields:
        value = qs.get_by_key(field)

        if value is None and status.field == field:
            log.debug("No %s in request, use default state %r", field, status.state)
            value = status.state

        if value is None:
            continue

        with error_source(field):
            if isinstance(value, Mapping):
                for op_key, op_value in value.items():
                    if op_value is not None:
                        builder.where_op(field, get_operator(op_key), op_value)
            else:
                builder.where_equals(field, value)


def compile_query(
    builder: QueryBuilder,
    qs: "QueryStringManager",
    search_fields: Sequence[str] = (),
    where_fields: Sequence[str] = ("created_at", "updated_at"),
    defaults: Union[QueryDefaults, dict, None] = None,
    options: Union[CompileOptions, dict, None] = None,
    default_sort: SortItem = DEFAULT_SORT,
) -> QueryBuilder:
    """
    Apply querystring parameters to a query builder.

    Order of the applied directives is fixed: sorts, relations, search, ids, where fields.

    :param builder: query builder to fill.
    :param qs: querystring manager of the current request.
    :param search_fields: fields used by free text search.
    :param where_fields: fields which can be used in where conditions.
    :param defaults: caller defaults.
    :param options: categories to process. `filter` doesn't disable where fields.
    :param default_sort: sort used when the request and defaults have none.
    :return: the same builder.
    """
    if defaults is None:
        defaults = QueryDefaults()
    elif not isinstance(defaults, QueryDefaults):
        defaults = QueryDefaults(**defaults)

    if options is None:
        options = CompileOptions()
    elif not isinstance(options, CompileOptions):
        options = CompileOptions(**options)

    if options.sort:
        with error_source("sort"):
            apply_sorts(builder, get_string_parameter(qs, "sort"), defaults, default_sort)

    if options.relations:
        with error_source("relations"):
            apply_relations(builder, get_string_parameter(qs, "relations"), defaults)

    if options.q:
        with error_source("q"):
            apply_search(builder, get_string_parameter(qs, "q"), search_fields)

    with error_source("ids"):
        apply_ids(builder, get_string_parameter(qs, "ids"))

    apply_where_fields(builder, qs, where_fields, defaults)

    return builder
