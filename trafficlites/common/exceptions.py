class TrafficlitesError(Exception):
    """Base exception for all trafficlites errors."""
    pass

class ValidationError(TrafficlitesError):
    """Raised when a report or query carries malformed coordinates or status."""
    pass

class ClusterNotFoundError(TrafficlitesError):
    """Raised when no intersection cluster exists near a queried point."""
    pass

class ConcurrentUpdateError(TrafficlitesError):
    """Raised when a cluster row was modified by another writer mid-transaction."""
    pass

class DirectionsError(TrafficlitesError):
    """Base error for the external directions provider."""
    pass

class DirectionsUnavailableError(DirectionsError):
    """Raised when the directions provider cannot be reached or fails."""
    pass

class NoRouteFoundError(DirectionsError):
    """Raised when the directions provider reports no route."""
    pass

class ConfigurationError(TrafficlitesError):
    """Raised when configuration is invalid."""
    pass
