"""
Minimal component registry for the window layout.

Components are registered by name once during application wiring and
mounted into a container widget on demand.
"""

import logging
from typing import Any, Callable

log = logging.getLogger("editor_chatbot")

ComponentFactory = Callable[[Any], Any]


class LayoutHost:
    """Maps component names to factories that build a widget in a container."""

    def __init__(self) -> None:
        self._factories: dict[str, ComponentFactory] = {}
        self.mounted: dict[str, Any] = {}

    def register_component(self, name: str, factory: ComponentFactory) -> None:
        if name in self._factories:
            raise ValueError(f"Component {name!r} is already registered.")
        self._factories[name] = factory
        log.debug("[APP] Registered layout component %r", name)

    def is_registered(self, name: str) -> bool:
        return name in self._factories

    def mount(self, name: str, container: Any) -> Any:
        """Build component *name* inside *container* and return it."""
        try:
            factory = self._factories[name]
        except KeyError:
            raise KeyError(f"Unknown layout component {name!r}") from None
        component = factory(container)
        self.mounted[name] = component
        return component
