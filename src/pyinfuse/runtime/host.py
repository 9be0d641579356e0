from typing import Any, Callable, Optional, Union

from bs4 import Tag

from pyinfuse.core import dom
from pyinfuse.runtime.infuse import Infuser

TemplateSource = Union[Tag, Callable[[], Tag], None]


class Host:
    """Base class for objects that render a template into an element.

    Subclasses set ``template`` to a parsed ``<template>`` element, or to a
    callable returning one::

        class Counter(Host):
            template = counter_template

            def __init__(self, element, infuser):
                super().__init__(element, infuser)
                self.count = 0

    ``connect()`` infuses the template with the host object as ``host`` and
    appends the result to the element; ``disconnect()`` releases everything
    allocated for the element, its descendants and the host itself.
    """

    template: TemplateSource = None

    def __init__(self, element: Tag, infuser: Infuser, data: Any = None) -> None:
        self.element = element
        self.infuser = infuser
        self.data = data
        self.connected = False

    def resolve_template(self) -> Optional[Tag]:
        template = self.template
        if template is None or dom.is_element(template):
            return template
        if callable(template):
            return template()
        raise TypeError(f"Invalid template for {type(self).__name__}: {template!r}")

    def connect(self) -> Tag:
        template = self.resolve_template()
        if template is not None:
            fragment = self.infuser.infuse(self, template, self.data)
            dom.append_fragment(self.element, fragment)
        self.connected = True
        return self.element

    def disconnect(self) -> None:
        self.infuser.sweep(self.element)
        # Watches on the host are registered on the host object itself.
        self.infuser.sweep(self)
        self.connected = False

    def dispatch(self, event_type: str, detail: Any = None) -> None:
        self.infuser.dispatch(self, event_type, detail)
