class AskError(Exception):
    """Base class for all errors raised by askcli"""


class DuplicateNameError(AskError):
    def __init__(self, name: str):
        super().__init__(f"context with name '{name}' already exists")
        self.name = name


class NotFoundError(AskError, LookupError):
    def __init__(self, identifier: str, what: str = "context"):
        super().__init__(f"{what} not found: {identifier}")
        self.identifier = identifier


class ParseError(AskError, ValueError):
    """The stored state document is malformed"""


class StoreIOError(AskError, OSError):
    """The state document could not be read or written"""


class SetupError(AskError):
    pass


class CompletionError(AskError):
    pass


class TransportError(CompletionError):
    """The completion service could not be reached"""


class ServiceStatusError(CompletionError):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"API error ({status_code}): {message}")
        self.status_code = status_code


class EmptyResponseError(CompletionError):
    def __init__(self):
        super().__init__("no response from model")
