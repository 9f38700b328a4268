from typing import TypeVar

TypeModel = TypeVar("TypeModel")
