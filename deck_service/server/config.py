# deck_service/server/config.py

import os
from dataclasses import dataclass

from deck_service.common.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_DB_PATH
from deck_service.common.logging_utils import LOG_LEVEL


@dataclass
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    db_path: str = DEFAULT_DB_PATH
    log_level: str = LOG_LEVEL

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        DECK_HOST, DECK_PORT, DECK_DB and LOG_LEVEL override the defaults.
        """
        return cls(
            host=os.getenv("DECK_HOST", DEFAULT_HOST),
            port=int(os.getenv("DECK_PORT", str(DEFAULT_PORT))),
            db_path=os.getenv("DECK_DB", DEFAULT_DB_PATH),
            log_level=os.getenv("LOG_LEVEL", LOG_LEVEL).upper(),
        )
