"""
Client configuration settings.
"""

import os
from dataclasses import dataclass


@dataclass
class ClientSettings:
    """Client configuration."""
    
    # Server connection
    server_host: str = "localhost"
    server_port: int = 8765
    
    # Seconds to wait for the server to answer a request
    request_timeout: float = 10.0
    
    @property
    def server_url(self) -> str:
        return f"ws://{self.server_host}:{self.server_port}"


def load_settings() -> ClientSettings:
    """Load settings from environment variables."""
    return ClientSettings(
        server_host=os.getenv("CONNECT6_SERVER_HOST", "localhost"),
        server_port=int(os.getenv("CONNECT6_SERVER_PORT", "8765")),
        request_timeout=float(os.getenv("CONNECT6_REQUEST_TIMEOUT", "10.0")),
    )


settings = load_settings()
