"""Screen wake-hold endpoints, acquired while the session is active."""

from abc import ABC, abstractmethod

from ..logging.config import get_effect_logger


class WakeHold(ABC):
    """Keeps the screen awake between acquire() and release()."""

    def __init__(self, name: str):
        self.name = name
        self.logger = get_effect_logger(f"wake_hold.{name}")
        self.held = False

    @abstractmethod
    def acquire(self) -> None:
        pass

    @abstractmethod
    def release(self) -> None:
        pass


class LogWakeHold(WakeHold):
    """Records the hold in the log; for hosts without a wake-lock API."""

    def __init__(self, name: str = "log"):
        super().__init__(name)
        self.acquire_count = 0

    def acquire(self) -> None:
        self.held = True
        self.acquire_count += 1
        self.logger.info("Wake hold acquired")

    def release(self) -> None:
        if not self.held:
            return
        self.held = False
        self.logger.info("Wake hold released")
