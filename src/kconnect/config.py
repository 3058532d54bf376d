"""Configuration and environment handling for the kconnect CLI.

The client library itself never reads the environment; only the CLI builds
a client from this configuration.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Config:
    """Central configuration object."""

    def __init__(self, env_file: Optional[Path] = None):
        # Load .env file if it exists
        env_path = env_file or Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        # Kafka Connect worker
        self.url: str = os.getenv("KCONNECT_URL", "http://localhost:8083")
        self.username: Optional[str] = os.getenv("KCONNECT_USERNAME")
        self.password: Optional[str] = os.getenv("KCONNECT_PASSWORD")

        # Timeouts
        self.connect_timeout_s: float = float(os.getenv("KCONNECT_CONNECT_TIMEOUT_S", "10"))
        self.read_timeout_s: float = float(os.getenv("KCONNECT_READ_TIMEOUT_S", "30"))

        # Logging
        self.log_level: str = os.getenv("KCONNECT_LOG_LEVEL", "WARNING")


# Global config instance
config = Config()
