"""Register and replace services on the application under test."""

from typing import Any

from flask_testbench.facades import Facade


class InteractsWithContainer:

    def instance(self, name: str, obj: Any) -> Any:
        """
        Bind ``obj`` as the ``name`` service of the current application.

        Any facade root cached for ``name`` is dropped so the next facade call
        resolves the new object.
        """
        self.app.instance(name, obj)
        Facade.clear_resolved_instance(name)
        return obj

    def swap(self, name: str, obj: Any) -> Any:
        return self.instance(name, obj)

    def resolve(self, name: str) -> Any:
        return self.app[name]
