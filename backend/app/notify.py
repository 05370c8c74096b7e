"""
User-facing notices.

Pure transitions return Notice descriptors; stores hand them to a Notifier.
"""
import logging
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterable, Protocol

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    severity: Severity = Severity.INFO

    def to_dict(self) -> dict:
        return {**asdict(self), "severity": self.severity.value}


class Notifier(Protocol):
    def notify(self, title: str, description: str, severity: Severity = Severity.INFO) -> None: ...


class NoticeCollector:
    """Gathers the notices raised while serving one request and mirrors them to the log."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, title: str, description: str, severity: Severity = Severity.INFO) -> None:
        self.notices.append(Notice(title, description, severity))
        logger.log(_LOG_LEVELS[severity], "%s: %s", title, description)

    def as_dicts(self) -> list[dict]:
        return [n.to_dict() for n in self.notices]


def dispatch(notifier: Notifier, notices: Iterable[Notice]) -> None:
    for n in notices:
        notifier.notify(n.title, n.description, n.severity)
