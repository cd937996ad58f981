from __future__ import annotations


class SentinelError(Exception):
    """Base class for failures while tracking the Sentinel master."""


class TransportError(SentinelError):
    """Connection or protocol failure while talking to Sentinel."""


class InvalidResponse(SentinelError):
    """Sentinel replied to a query with something we cannot parse."""


class MalformedNotification(SentinelError):
    """A `+switch-master` message is missing tokens or has bad fields."""


class ProducerFailure(Exception):
    """A detection thread kept dying after its restart budget ran out."""
