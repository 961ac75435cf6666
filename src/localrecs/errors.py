"""Exception types raised by the recommendation core."""


class LocalRecsError(Exception):
    """Base class for every error raised by localrecs."""


class InvalidArgumentError(LocalRecsError, ValueError):
    """
    A required input is missing, empty, mismatched or out of range.

    ``param_name`` identifies the offending parameter so callers can fix the
    call; the message always mentions it too.
    """

    def __init__(self, param_name: str, message: str = ""):
        self.param_name = param_name
        detail = message or "invalid value"
        super().__init__(f"{param_name}: {detail}")


class EmptyCollectionError(InvalidArgumentError):
    """A required collection was provided but holds no elements."""

    def __init__(self, param_name: str, message: str = ""):
        super().__init__(param_name, message or "collection cannot be empty")


def require(value, param_name: str):
    """Return ``value`` unchanged, raising InvalidArgumentError when it is None."""
    if value is None:
        raise InvalidArgumentError(param_name, "must not be None")
    return value
