"""
Exception types shared across flipwheel.
"""


class FlipWheelError(Exception):
    """Base class for all flipwheel errors."""


class AccessError(FlipWheelError):
    """The store could not be opened, read or written."""

    def __init__(self, path: str, message: str = "access denied"):
        self.path = path
        super().__init__(f"{path}: {message}")


class NotFoundError(AccessError):
    """A node or a named value does not exist."""

    def __init__(self, path: str, name: str = ""):
        self.name = name
        what = f"value {name!r} not found" if name else "key not found"
        super().__init__(path, what)


class ParseError(FlipWheelError):
    """A stored string could not be parsed."""


class MalformedDescriptor(ParseError):
    """A DeviceDesc string is not in '<driver>,<type>;<name>' form."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Malformed device descriptor: {raw!r}")


class InvalidStateError(FlipWheelError):
    """The wheel state cannot be used for the requested operation."""


class SelectionError(FlipWheelError):
    """The operator picked an index that does not name a device."""


class ConfigError(FlipWheelError):
    """The configuration file cannot be parsed."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
