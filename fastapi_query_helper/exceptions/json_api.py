"""JSON API exceptions schemas."""

from http import HTTPStatus
from typing import Optional

from fastapi import HTTPException as FastApiHttpException
from fastapi import status


class HTTPException(FastApiHttpException):
    """Base HTTP Exception class customized for json_api exceptions."""

    title: str = ""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    parameter: str = ""

    def __init__(
        self,
        detail: str = "",
        parameter: str = "",
        title: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        """
        Init base HTTP exception.

        :param detail: a human-readable explanation specific to this occurrence of the problem
        :param parameter: a string indicating which URI query parameter caused the error
        :param status_code: the HTTP status code applicable to this problem
        :param title: a short, human-readable summary of the problem
        """
        if status_code is not None:
            self.status_code = status_code

        if title is not None:
            self.title = title

        self.status_code = int(self.status_code)
        self.title = self.title or HTTPStatus(self.status_code).phrase
        self._detail = detail

        parameter = parameter or self.parameter
        self.source = {"parameter": parameter} if parameter else None

        super().__init__(self.status_code, {"errors": [self.as_dict]})

    @property
    def as_dict(self):
        data = {
            "status_code": self.status_code,
            "source": self.source,
            "title": self.title,
            "detail": self._detail,
        }
        return {key: value for key, value in data.items() if value}

    def with_parameter(self, parameter: str) -> "HTTPException":
        """Same error pointing at another querystring parameter."""
        return self.__class__(
            detail=self._detail,
            parameter=parameter,
            title=self.title,
            status_code=self.status_code,
        )


class BadRequest(HTTPException):
    """
    Bad request HTTP exception class customized for json_api exceptions.

    Init bad request HTTP exception.
    """

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidSort(BadRequest):
    """Customized Exception for invalid sort."""

    title = "Invalid sort querystring parameter."
    parameter: str = "sort"


class InvalidFilters(BadRequest):
    """
    Customized Exception for invalid filters.

    Raised for search, ids and where conditions, the parameter is set by the caller.
    """

    title = "Invalid filters querystring parameter."


class InvalidInclude(BadRequest):
    """
    Customized Exception for invalid include.

    Invalid relations querystring parameter.
    """

    title = "Invalid relations querystring parameter."
    parameter: str = "relations"
