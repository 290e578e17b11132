from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Tuple

from trench_map.core.models import GpsFix

log = logging.getLogger(__name__)

FixCallback = Callable[[GpsFix], None]
ErrorCallback = Callable[[str], None]


class GpsSource(ABC):
    """A push stream of position fixes (or errors)."""

    @abstractmethod
    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> int:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, token: int) -> None:
        raise NotImplementedError


class FanOutSource(GpsSource):
    """Keeps subscribers and hands every fix/error to all of them."""

    def __init__(self) -> None:
        self._subs: Dict[int, Tuple[FixCallback, ErrorCallback]] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, on_fix: FixCallback, on_error: ErrorCallback) -> int:
        token = next(self._tokens)
        self._subs[token] = (on_fix, on_error)
        return token

    def unsubscribe(self, token: int) -> None:
        self._subs.pop(token, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def _emit_fix(self, fix: GpsFix) -> None:
        for on_fix, _ in list(self._subs.values()):
            on_fix(fix)

    def _emit_error(self, message: str) -> None:
        log.warning("GPS error: %s", message)
        for _, on_error in list(self._subs.values()):
            on_error(message)
