"""
Errors raised by the serving layer.

Transports map them to protocol status codes:

    InvalidRequestError         HTTP 400   gRPC INVALID_ARGUMENT
    UnsupportedCapabilityError  HTTP 501   gRPC UNIMPLEMENTED
    SerializationError          HTTP 500   gRPC INTERNAL
    (any scoring model error)   HTTP 500   gRPC INTERNAL

ServerStartupError is fatal: it aborts serving before any request is accepted.
"""

from ranking.model import Capability


class ServingError(Exception):
    """Base class for serving errors."""


class InvalidRequestError(ServingError):
    """Request content cannot be handled (missing or malformed fields)."""


class UnsupportedCapabilityError(ServingError):
    """The loaded model does not implement the requested capability."""

    def __init__(self, capability: Capability):
        self.capability = capability
        super().__init__(f"Capability '{capability.value}' is not supported by the loaded model")


class ServerStartupError(ServingError):
    """A listener failed to bind or to load its TLS certificate."""
