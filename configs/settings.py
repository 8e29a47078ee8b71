from __future__ import annotations

import os
from typing import List

from dotenv import load_dotenv

from core.polling.delay_schedule import DEFAULT_DELAY_SECONDS, DelaySchedule


load_dotenv()


class Settings:
    """
    Central configuration for the inquiry relay.

    Values are loaded once from environment variables (with sensible defaults)
    and then exposed via typed properties. The polling delay schedule is
    parsed here, once, so request handling never has to initialize it.
    """

    def __init__(self) -> None:
        # External inquiry API
        self._inquiry_api_base_url = os.getenv(
            "INQUIRY_API_BASE_URL",
            "https://jsonplaceholder.typicode.com",
        )
        self._inquiry_api_start_path = os.getenv("INQUIRY_API_START_PATH", "/posts")
        self._inquiry_api_status_path = os.getenv(
            "INQUIRY_API_STATUS_PATH",
            "/todos/{attempt}",
        )
        self._inquiry_api_timeout = float(
            os.getenv("INQUIRY_API_TIMEOUT_SECONDS", "10")
        )

        # Polling
        self._polling_intervals_text = os.getenv("RELAY_POLLING_INTERVALS", "5,10,20,30")
        self._default_poll_delay = int(
            os.getenv("RELAY_DEFAULT_POLL_DELAY", str(DEFAULT_DELAY_SECONDS))
        )
        self._delay_schedule = DelaySchedule.parse(
            self._polling_intervals_text,
            default=self._default_poll_delay,
        )

        # HTTP surface
        self._cors_origins = [
            origin.strip()
            for origin in os.getenv(
                "RELAY_CORS_ORIGINS",
                "http://localhost:5173,http://localhost:3000",
            ).split(",")
            if origin.strip()
        ]
        self._log_level = os.getenv("RELAY_LOG_LEVEL", "INFO").upper()

    # ------------------------------------------------------------------
    # External inquiry API
    # ------------------------------------------------------------------

    @property
    def inquiry_api_base_url(self) -> str:
        return self._inquiry_api_base_url

    @property
    def inquiry_api_start_path(self) -> str:
        return self._inquiry_api_start_path

    @property
    def inquiry_api_status_path(self) -> str:
        return self._inquiry_api_status_path

    @property
    def inquiry_api_timeout(self) -> float:
        return self._inquiry_api_timeout

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    @property
    def polling_intervals_text(self) -> str:
        return self._polling_intervals_text

    @property
    def default_poll_delay(self) -> int:
        return self._default_poll_delay

    @property
    def delay_schedule(self) -> DelaySchedule:
        return self._delay_schedule

    # ------------------------------------------------------------------
    # HTTP surface / logging
    # ------------------------------------------------------------------

    @property
    def cors_origins(self) -> List[str]:
        return list(self._cors_origins)

    @property
    def log_level(self) -> str:
        return self._log_level


settings = Settings()
