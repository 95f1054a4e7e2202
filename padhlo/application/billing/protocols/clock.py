from datetime import datetime
from typing import Protocol


class ClockProtocol(Protocol):
    def now(self) -> datetime:
        """Current instant as a timezone-aware datetime."""
        ...
