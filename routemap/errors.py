"""
Error taxonomy for the route map kernel.

Every error is raised synchronously to the immediate caller of the mutating
operation. Nothing here is retried; retry policy belongs to whoever feeds
points in.
"""


class RouteMapError(Exception):
    """Base class for all kernel errors."""
    pass


class InvalidPoint(RouteMapError, ValueError):
    """Raised when a point has a missing, non-numeric or non-finite field."""
    pass


class OutOfOrderPoint(RouteMapError, ValueError):
    """Raised when a point's timestamp precedes the entity's last point."""

    def __init__(self, identity: str, ts: float, last_ts: float):
        super().__init__(
            f"Point at ts={ts} precedes last point at ts={last_ts} "
            f"for entity {identity}"
        )
        self.identity = identity
        self.ts = ts
        self.last_ts = last_ts


class InvalidIdentity(RouteMapError, ValueError):
    """Raised when identifying fields cannot be serialized into an identity."""
    pass


class NotInitialized(RouteMapError, RuntimeError):
    """Raised when the registry is used before a map surface is attached."""
    pass
