from typing import Any, Optional


class InfuseSyntaxError(Exception):
    """Raised when directive markup cannot be compiled."""

    def __init__(
        self,
        message: str,
        element: Any = None,
        line: Optional[int] = None,
    ) -> None:
        self.message = message
        self.element = element
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        where = ""
        name = getattr(self.element, "name", None)
        if name:
            where = f" (in <{name}>)"
        if self.line is not None:
            where += f" at generated line {self.line}"
        return f"{self.message}{where}"
