"""Discard forecast results that were superseded while in flight.

Every load takes a ticket recording what was asked for (city, view) and a
generation number. Starting a new load cancels the previous ticket; when the
old request finally returns, its commit is refused and the newer state stays.
Transport calls are not interrupted; their results are simply dropped.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from tedder import config
from tedder.data_sources import WeatherDataSource
from tedder.domain import ForecastView, WeatherModel
from tedder.forecast_service import get_weather
from tedder.projections import project
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="request_guard")

T = TypeVar("T")


@dataclass(frozen=True)
class RequestTicket:
    city: str
    view: ForecastView
    generation: int
    cancelled: threading.Event = field(default_factory=threading.Event, compare=False, repr=False)

    def cancel(self) -> None:
        self.cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled.is_set()


class RequestGuard(Generic[T]):
    """Holds the latest committed value and the ticket allowed to replace it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._current: Optional[RequestTicket] = None
        self._value: Optional[T] = None

    def begin(self, city: str, view: ForecastView | str) -> RequestTicket:
        """Issue a ticket for a new request, cancelling whatever was in flight."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._generation += 1
            ticket = RequestTicket(city=city, view=ForecastView(view), generation=self._generation)
            self._current = ticket
            return ticket

    def is_current(self, ticket: RequestTicket) -> bool:
        with self._lock:
            return self._is_current(ticket)

    def _is_current(self, ticket: RequestTicket) -> bool:
        return (
            not ticket.is_cancelled
            and self._current is not None
            and self._current.generation == ticket.generation
        )

    def commit(self, ticket: RequestTicket, value: T) -> bool:
        """Store ``value`` if ``ticket`` is still the latest request; otherwise drop it."""
        with self._lock:
            if not self._is_current(ticket):
                logger.debug(
                    "Discarding stale response",
                    extra={"city": ticket.city, "view": ticket.view.value, "generation": ticket.generation},
                )
                return False
            self._value = value
            return True

    @property
    def value(self) -> Optional[T]:
        with self._lock:
            return self._value


class ForecastViewLoader:
    """Load a projected forecast view, keeping only the most recent request's result."""

    def __init__(
        self,
        data_source: WeatherDataSource | None = None,
        fallback_source: WeatherDataSource | None = None,
        *,
        settings: config.Settings | None = None,
        guard: RequestGuard[WeatherModel] | None = None,
    ) -> None:
        self.data_source = data_source
        self.fallback_source = fallback_source
        self.settings = settings or config.settings
        self.guard: RequestGuard[WeatherModel] = guard or RequestGuard()

    @property
    def current(self) -> Optional[WeatherModel]:
        return self.guard.value

    def load(
        self,
        city: str,
        view: ForecastView | str = ForecastView.TODAY,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Optional[WeatherModel]:
        """Return the projected model, or None if a newer load superseded this one."""
        ticket = self.guard.begin(city, view)
        model = get_weather(
            city,
            latitude=latitude,
            longitude=longitude,
            data_source=self.data_source,
            fallback_source=self.fallback_source,
            settings=self.settings,
        )
        if ticket.is_cancelled:
            logger.debug("Load superseded before projection", extra={"city": city, "view": ticket.view.value})
            return None

        projected = project(model, ticket.view)
        if not self.guard.commit(ticket, projected):
            return None
        return projected
