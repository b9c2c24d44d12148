"""Abstract interface every harness test case implements."""

from abc import ABC, abstractmethod
from typing import Any, Callable

from flask import Flask


class TestCaseContract(ABC):
    """Operations the concerns rely on each other to provide."""

    @abstractmethod
    def call(self, method: str, uri: str, data: Any = None, headers: Any = None, **kwargs) -> Any:
        ...

    @abstractmethod
    def be(self, user: Any, fresh: bool = True) -> Any:
        ...

    @abstractmethod
    def seed(self, *seeders: Any) -> Any:
        ...

    @abstractmethod
    def run_command(self, command: str, *args: Any, **options: Any) -> int:
        ...

    @abstractmethod
    def create_application(self) -> Any:
        ...

    @abstractmethod
    def get_environment_set_up(self, app: Flask) -> None:
        ...

    @abstractmethod
    def after_application_created(self, callback: Callable[[], Any]) -> None:
        ...

    @abstractmethod
    def before_application_destroyed(self, callback: Callable[[], Any]) -> None:
        ...
