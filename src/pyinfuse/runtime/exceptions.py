PART_SYNTAX_HELP = (
    "Make sure the part name is spelled correctly. If it's a property, it must "
    "start with a dot, if it's a boolean attribute, it must end with a question mark."
)


class InfuseRuntimeError(Exception):
    """Base class for errors raised while infusing elements."""

    pass


class InvalidPartError(InfuseRuntimeError, TypeError):
    """Raised when a requested part has no compiled callback."""

    def __init__(self, part: object) -> None:
        self.part = part
        super().__init__(f"Invalid part: {part!r}. {PART_SYNTAX_HELP}")


class IterationError(InfuseRuntimeError, TypeError):
    """Raised when an iteration template has no usable collection."""

    pass


class NotInfusedError(InfuseRuntimeError, TypeError):
    """Raised when re-infusing an element that has no live context."""

    pass


class UnknownContextError(InfuseRuntimeError, KeyError):
    """Raised when a context or template id is missing from the registry."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""
