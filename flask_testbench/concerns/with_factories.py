"""factory_boy integration: bind SQLAlchemy model factories to the test's session."""

from typing import Any, Optional

from flask_testbench.database import get_database


class WithFactories:

    def with_factories(self, *factory_classes: type) -> 'WithFactories':
        """
        Bind ``SQLAlchemyModelFactory`` subclasses to the application's session.

        Binding happens once the application exists (immediately when called
        from a test body) and is undone before the application is destroyed.
        """
        def bind() -> None:
            session = get_database(self.app.flask_app).session
            for factory_class in factory_classes:
                factory_class._meta.sqlalchemy_session = session

        def unbind() -> None:
            for factory_class in factory_classes:
                factory_class._meta.sqlalchemy_session = None

        self.after_application_created(bind)
        self.before_application_destroyed(unbind)
        return self

    def factory(self, factory_class: Any, count: Optional[int] = None, **attributes: Any) -> Any:
        """Create one model, or ``count`` models, through ``factory_class``."""
        if count is None:
            return factory_class.create(**attributes)
        return factory_class.create_batch(count, **attributes)
