from __future__ import annotations


class RecordGateError(Exception):
    pass


class ActionConfigError(RecordGateError):
    """A route, action target or binding declaration is invalid."""


class MissingParameterError(RecordGateError, ValueError):
    def __init__(self, name: str, target: str) -> None:
        self.name = name
        self.target = target
        super().__init__(f"Missing or null required parameter '{name}' in {target}")


class ResponseBuilderError(RecordGateError):
    pass


class ResponseFormatterError(RecordGateError):
    pass


class HydrationNotSupportedError(RecordGateError, NotImplementedError):
    pass


class QueryModifierError(RecordGateError, ValueError):
    pass


class ViewConfigError(RecordGateError):
    pass


class CollectionFetchError(RecordGateError):
    pass
