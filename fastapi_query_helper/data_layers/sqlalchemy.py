"""Query builder filling a sqlalchemy select statement."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from sqlalchemy import or_, select
from sqlalchemy.orm import joinedload, selectinload
from sqlalchemy.orm.attributes import InstrumentedAttribute
from sqlalchemy.orm.relationships import RelationshipProperty

from fastapi_query_helper.data_typing import TypeModel
from fastapi_query_helper.exceptions import InvalidFilters, InvalidInclude, InvalidSort
from fastapi_query_helper.splitter import SPLIT_REL

if TYPE_CHECKING:
    from sqlalchemy.sql import Select

log = logging.getLogger(__name__)

# sql operator -> column method
COLUMN_OPERATORS = {
    "=": "__eq__",
    ">=": "__ge__",
    "<=": "__le__",
    "<": "__lt__",
    ">": "__gt__",
}

SORT_ORDERS = ("asc", "desc")


def get_type_cast(field_type: type) -> Callable[..., Any]:
    try:
        return TypeAdapter(field_type).validate_python
    except PydanticSchemaGenerationError:
        return field_type


class SqlalchemyQueryBuilder:
    """
    Sqlalchemy implementation of the query builder.

    Usage::

        builder = SqlalchemyQueryBuilder(User)
        qs.prepare_sql_query(builder)
        result = await session.execute(builder.query.limit(qs.limit))
    """

    def __init__(
        self,
        model: type[TypeModel],
        query: Select | None = None,
        auto_convert_values: bool = True,
    ):
        """
        Initialize an instance of SqlalchemyQueryBuilder.

        :param model: the model to select.
        :param query: prepared query, `select(model)` by default.
        :param auto_convert_values: convert filter values to the python type of the column.
        """
        self.model = model
        self.query: Select = query if query is not None else select(model)
        self.auto_convert_values = auto_convert_values

    def _get_column(self, field: str, exc_class: type[InvalidFilters | InvalidSort]) -> InstrumentedAttribute:
        column = getattr(self.model, field, None)
        if not isinstance(column, InstrumentedAttribute) or isinstance(column.property, RelationshipProperty):
            msg = f"{self.model.__name__} has no attribute {field}"
            raise exc_class(msg)
        return column

    def prepare_value(self, column: InstrumentedAttribute, value: Any) -> Any:
        """
        Convert value to the python type declared on the SQLA column.

        :param column:
        :param value:
        :return:
        """
        if not self.auto_convert_values:
            return value

        try:
            py_type = column.type.python_type
        except NotImplementedError:
            return value

        if isinstance(value, py_type):
            return value

        try:
            return get_type_cast(py_type)(value)
        except (TypeError, ValueError, ValidationError):
            msg = f"Can't cast value {value!r} of {column.key!r} to {py_type.__name__}"
            raise InvalidFilters(msg)

    def order_by(self, field: str, order: str) -> None:
        column = self._get_column(field, InvalidSort)
        order = order.lower()
        if order not in SORT_ORDERS:
            msg = f"Sort order {order!r} of {field!r} must be one of {SORT_ORDERS}"
            raise InvalidSort(msg)

        self.query = self.query.order_by(getattr(column, order)())

    def include(self, relation: str) -> None:
        """
        Use eagerload feature of sqlalchemy for a relation.

        Nested relations are separated by dot: `posts.comments`.
        """
        relation_load_object = None
        current_model = self.model

        for relation_name in relation.split(SPLIT_REL):
            field_to_load = getattr(current_model, relation_name, None)
            if not isinstance(field_to_load, InstrumentedAttribute) or not isinstance(
                field_to_load.property,
                RelationshipProperty,
            ):
                msg = f"{current_model.__name__} has no relationship {relation_name}"
                raise InvalidInclude(msg)

            is_many = field_to_load.property.uselist
            if relation_load_object is None:
                relation_load_object = selectinload(field_to_load) if is_many else joinedload(field_to_load)
            elif is_many:
                relation_load_object = relation_load_object.selectinload(field_to_load)
            else:
                relation_load_object = relation_load_object.joinedload(field_to_load)

            current_model = field_to_load.property.mapper.class_

        self.query = self.query.options(relation_load_object)

    def where_equals(self, field: str, value: Any) -> None:
        self.where_op(field, "=", value)

    def where_op(self, field: str, operator: str, value: Any) -> None:
        column = self._get_column(field, InvalidFilters)
        try:
            method = COLUMN_OPERATORS[operator]
        except KeyError:
            msg = f"Field {field!r} has no operator {operator!r}"
            raise InvalidFilters(msg)

        value = self.prepare_value(column, value)
        self.query = self.query.where(getattr(column, method)(value))

    def where_like(self, field: str, pattern: str) -> None:
        column = self._get_column(field, InvalidFilters)
        self.query = self.query.where(column.like(pattern))

    def where_in(self, field: str, values: list[Any]) -> None:
        column = self._get_column(field, InvalidFilters)
        self.query = self.query.where(column.in_([self.prepare_value(column, value) for value in values]))

    def where_group_or(self, pairs: list[tuple[str, str]]) -> None:
        conditions = [self._get_column(field, InvalidFilters).like(pattern) for field, pattern in pairs]
        if not conditions:
            log.warning("Skip empty or condition for %s", self.model.__name__)
            return

        self.query = self.query.where(or_(*conditions))
