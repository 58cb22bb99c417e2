"""Exceptions raised by the completion core and its collaborators."""


class PhpCompletorError(Exception):
    """Base class for all phpcompletor errors."""


class NoAccessorFound(PhpCompletorError):
    """No `->` or `::` token precedes the cursor."""

    def __init__(self, offset: int):
        super().__init__(f"Could not find an accessor token before offset {offset}")
        self.offset = offset


class NotFound(PhpCompletorError):
    """A class-like declaration or function could not be located."""

    def __init__(self, name: str):
        super().__init__(f'Declaration "{name}" not found')
        self.name = name


class ConfigError(PhpCompletorError):
    """The workspace configuration file could not be read."""


class CouldNotHelpWithSignature(PhpCompletorError):
    """The cursor is not inside the argument list of a known call."""

    def __init__(self, reason: str):
        super().__init__(f"Could not provide signature: {reason}")
        self.reason = reason
