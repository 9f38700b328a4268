"""Querystring helpers to build list queries."""
from pathlib import Path

from fastapi import FastAPI

from fastapi_query_helper.compiler import QueryBuilder, compile_query
from fastapi_query_helper.dependencies import QueryStringDependency
from fastapi_query_helper.exceptions import BadRequest
from fastapi_query_helper.exceptions.handlers import base_exception_handler
from fastapi_query_helper.exceptions.json_api import HTTPException
from fastapi_query_helper.querystring import QueryParamsReader, QueryStringManager
from fastapi_query_helper.schema import CompileOptions, QueryDefaults, StatusDefault

__version__ = Path(__file__).parent.joinpath("VERSION").read_text().strip()

__all__ = [
    "init",
    "BadRequest",
    "CompileOptions",
    "QueryBuilder",
    "QueryDefaults",
    "QueryParamsReader",
    "QueryStringDependency",
    "QueryStringManager",
    "StatusDefault",
    "compile_query",
]


def init(app: FastAPI):
    """
    Init the app.

    Registers default exception handler for exceptions defined
    in "fastapi_query_helper.exceptions" module.
    """
    app.add_exception_handler(HTTPException, base_exception_handler)
