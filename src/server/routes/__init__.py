"""Route handlers for the relay server."""
from src.server.routes.admin import create_admin_router
from src.server.routes.health import create_health_router
from src.server.routes.rooms import create_rooms_router
from src.server.routes.socket import create_socket_router
__all__ = [
    "create_admin_router",
    "create_health_router",
    "create_rooms_router",
    "create_socket_router",
]
