from __future__ import annotations


class DiagnosticsError(Exception):
    """Base class for OS lookups that could not be answered."""


class HostnameLookupError(DiagnosticsError):
    pass


class GatewayDiscoveryError(DiagnosticsError):
    pass


class ProcessListingError(DiagnosticsError):
    pass
