from .route_table import RouteTable

__all__ = ["RouteTable"]
