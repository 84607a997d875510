"""
Server configuration loaded from environment variables.
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Server configuration."""

    # Server settings
    HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("SERVER_PORT", "8765"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Connection handling
    REGISTER_TIMEOUT: float = float(os.getenv("REGISTER_TIMEOUT", "30"))  # seconds to send REGISTER
    PING_INTERVAL: float = float(os.getenv("PING_INTERVAL", "30"))
    PING_TIMEOUT: float = float(os.getenv("PING_TIMEOUT", "10"))
    FLUSH_TIMEOUT: float = float(os.getenv("FLUSH_TIMEOUT", "5"))  # seconds to drain a closing sink


config = Config()
settings = config
