from __future__ import annotations


class NotifierError(Exception):
    pass


class ConfigurationError(NotifierError):
    """Malformed endpoint or proxy address."""


class SerializationError(NotifierError):
    """Payload cannot be converted to the wire format."""


class InvalidTransition(NotifierError):
    pass


class ClientClosedError(NotifierError):
    pass
