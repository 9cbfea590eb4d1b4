"""Base use case."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


class BaseUseCase(ABC, Generic[RequestT, ResultT]):
    """Base use case orchestrating domain services for one request."""

    @abstractmethod
    async def execute(self, request: RequestT) -> ResultT:
        pass
