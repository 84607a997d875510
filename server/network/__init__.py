"""
Network layer for the Connect6 game server.

Provides the WebSocket server, connection management, and message handling.
"""

from server.network.connection_manager import ConnectionManager, PlayerConnection, WebSocketSink
from server.network.message_handler import MessageHandler, HandleResult
from server.network.server import Connect6Server, run_server


__all__ = [
    "ConnectionManager",
    "PlayerConnection",
    "WebSocketSink",
    "MessageHandler",
    "HandleResult",
    "Connect6Server",
    "run_server",
]
