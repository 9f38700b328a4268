"""Parsers for compound querystring values."""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from fastapi_query_helper.splitter import (
    SPLIT_LIST,
    SPLIT_PAIR,
    SPLIT_SEARCH,
    has_symbol,
)

log = logging.getLogger(__name__)

DEFAULT_SORT_ORDER = "asc"

OPERATORS = {
    "gte": ">=",
    "lte": "<=",
    "lt": "<",
    "gt": ">",
}
DEFAULT_OPERATOR = "="


class SortItem(BaseModel):
    """One `field|order` entry of the sort parameter."""

    model_config = ConfigDict(frozen=True)

    field: str
    order: str = DEFAULT_SORT_ORDER


class SearchToken(BaseModel):
    """
    Search directive.

    `field` is None for a free text term which is applied to every search field.
    """

    model_config = ConfigDict(frozen=True)

    field: Optional[str] = None
    term: str


def _split_list(raw: str) -> List[str]:
    return [token for token in raw.split(SPLIT_LIST) if token]


def parse_sort_list(raw: str) -> List[SortItem]:
    """
    Parse sort parameter.

    Example::

        parse_sort_list("name|asc,age|desc")
        [SortItem(field='name', order='asc'), SortItem(field='age', order='desc')]

    Order is optional and defaults to `asc`, the order token itself is kept as is.
    Entries without a field name are dropped.
    """
    sorts = []
    for token in _split_list(raw):
        field, _, order = token.partition(SPLIT_PAIR)
        if not field:
            log.warning("Skip sort entry %r without field name", token)
            continue

        sorts.append(SortItem(field=field, order=order or DEFAULT_SORT_ORDER))

    return sorts


def parse_name_list(raw: str) -> List[str]:
    """Parse comma separated list of names, used for relations."""
    return _split_list(raw)


def parse_search(raw: str) -> SearchToken:
    """
    Parse search parameter.

    `title:foo` targets a single field, anything after the first colon is the term.
    A value without field name (`:foo`) is a free text term.
    """
    if not has_symbol(raw, SPLIT_SEARCH):
        return SearchToken(term=raw)

    field, _, term = raw.partition(SPLIT_SEARCH)
    if not field:
        return SearchToken(term=term)

    return SearchToken(field=field, term=term)


def parse_ids(raw: str) -> List[str]:
    return _split_list(raw)


def get_operator(symbol: Optional[str]) -> str:
    """
    Convert operator from querystring notation to sql notation.

    Unknown operators fall back to equality.
    """
    return OPERATORS.get(symbol, DEFAULT_OPERATOR)
