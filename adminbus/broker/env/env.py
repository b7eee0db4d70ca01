from __future__ import annotations
from pydantic import BaseModel, StrictStr, StrictInt
from typing import Callable, Dict, Literal, Union

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]


class Env(BaseModel):
    NODE_URL: StrictStr | None = None
    INSTANCE_COUNT: StrictInt = 1

    ADMIN_MESSAGE_TOPIC: StrictStr | None = None
    ADMIN_MESSAGE_JWT: StrictStr | None = None
    ADMIN_MESSAGE_ENDPOINT: StrictStr = "/admin/messages"
    ADMIN_MESSAGE_ACCESS_TOKEN_PARAM: StrictStr = "access_token"
    ADMIN_MESSAGE_PROTOCOL: StrictStr = "http"
    ADMIN_MESSAGE_MAX_SIZE: StrictInt = 256 * 1024

    # Subscription cleanup
    ADMIN_MESSAGE_CLEANUP_DELAY: StrictStr = "10m"
    ADMIN_MESSAGE_CLEANUP_RELEASE_GRACE: StrictStr = "1m"
    ADMIN_MESSAGE_LIVENESS_TIMEOUT: StrictStr = "2s"

    ADMIN_MESSAGE_LOG_LEVEL: Literal["trace", "debug", "info", "warn", "error", "critical", "fatal"] = "info"
    ADMIN_MESSAGE_LOG_PATH: StrictStr | None = None

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "NODE_URL": str,
            "INSTANCE_COUNT": int,
            "ADMIN_MESSAGE_TOPIC": str,
            "ADMIN_MESSAGE_JWT": str,
            "ADMIN_MESSAGE_ENDPOINT": str,
            "ADMIN_MESSAGE_ACCESS_TOKEN_PARAM": str,
            "ADMIN_MESSAGE_PROTOCOL": str,
            "ADMIN_MESSAGE_MAX_SIZE": int,
            "ADMIN_MESSAGE_CLEANUP_DELAY": str,
            "ADMIN_MESSAGE_CLEANUP_RELEASE_GRACE": str,
            "ADMIN_MESSAGE_LIVENESS_TIMEOUT": str,
            "ADMIN_MESSAGE_LOG_LEVEL": str,
            "ADMIN_MESSAGE_LOG_PATH": str,
        }

    def get_cleanup_config(self) -> dict:
        """Get subscription cleanup timings, in seconds, from environment settings."""
        parser = TimeParser()

        return {
            'base_delay': parser.parse(self.ADMIN_MESSAGE_CLEANUP_DELAY),
            'release_grace': parser.parse(self.ADMIN_MESSAGE_CLEANUP_RELEASE_GRACE),
            'cluster_size': self.INSTANCE_COUNT,
        }

    def get_liveness_timeout(self) -> float:
        return TimeParser().parse(self.ADMIN_MESSAGE_LIVENESS_TIMEOUT)
