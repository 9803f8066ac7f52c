"""
Business logic for events.

The central piece is :class:`EventFeed`, the list of events as seen by
one viewer.  A fetch selects every event, looks up which of them the
viewer is registered for and counts the registrations of each event
(all counts run concurrently), then merges the results into
``EventRead`` models.  Mutations (create, register, unregister) perform
a single write, report the outcome as a toast and refetch the whole
list on success.  There is no optimistic update and no request
coalescing: when two fetches overlap, whichever finishes last wins.

A failed fetch never clears the feed.  The error is logged, a toast is
emitted and the previously loaded events stay in place, which is why
feeds are kept per viewer by :class:`EventFeedRegistry`.

The module also holds the pure helpers used to present events: list
filtering, status counts and the state of the register button on an
event card.
"""

import asyncio
import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError

from ..core.backend import BackendClient, BackendError
from ..schemas.event import (
    ALL,
    EventAction,
    EventCard,
    EventCounts,
    EventCreate,
    EventRead,
)
from ..schemas.notification import Toast, failure, success


logger = logging.getLogger(__name__)

EVENTS_TABLE = "events"
REGISTRATIONS_TABLE = "event_registrations"

# Message the backend reports when the (event_id, user_id) unique
# constraint rejects a second registration.
DUPLICATE_REGISTRATION_MESSAGE = (
    'duplicate key value violates unique constraint "event_registrations_event_id_user_id_key"'
)
ALREADY_REGISTERED = "You are already registered for this event"


class EventNotFoundError(ValueError):
    """Raised when an event is not part of the viewer's feed."""


class ActionDisabledError(ValueError):
    """Raised when the event card action is not available."""


class EventFeed:
    """Events annotated for one viewer, with the mutations a viewer can run.

    ``user`` is the authenticated user as returned by the security
    dependencies (a dict with at least ``id``) or ``None`` for an
    anonymous viewer.  Mutations are silently skipped for anonymous
    viewers.
    """

    def __init__(self, backend: BackendClient, user: Optional[Dict[str, Any]] = None) -> None:
        self.backend = backend
        self.user = user
        self.events: List[EventRead] = []
        self.loading = True
        self.notifications: List[Toast] = []

    @property
    def user_id(self) -> Optional[str]:
        return self.user.get("id") if self.user else None

    def notify(self, toast: Toast) -> Toast:
        self.notifications.append(toast)
        return toast

    def drain_notifications(self) -> List[Toast]:
        """Return and forget the toasts emitted so far."""
        toasts, self.notifications = self.notifications, []
        return toasts

    def find(self, event_id: str) -> Optional[EventRead]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------
    async def _registration_count(self, event_id: str) -> int:
        count, error = await self.backend.count(REGISTRATIONS_TABLE, filters={"event_id": event_id})
        if error:
            raise error
        return count or 0

    async def _registered_event_ids(self) -> Set[str]:
        if not self.user_id:
            return set()
        rows, error = await self.backend.select(
            REGISTRATIONS_TABLE, "event_id", filters={"user_id": self.user_id}
        )
        if error:
            raise error
        return {str(row["event_id"]) for row in rows or []}

    async def fetch_events(self) -> List[EventRead]:
        """Reload the feed.

        Returns the current list of events: the fresh one on success,
        the previous one on failure.
        """
        self.loading = True
        try:
            rows, error = await self.backend.select(EVENTS_TABLE, "*", order="date", ascending=True)
            if error:
                raise error
            rows = rows or []
            registered = await self._registered_event_ids()
            counts = await asyncio.gather(*(self._registration_count(row["id"]) for row in rows))
            self.events = [
                EventRead.model_validate(
                    {
                        **row,
                        "registrations": count,
                        "is_registered": str(row["id"]) in registered,
                    }
                )
                for row, count in zip(rows, counts)
            ]
        except (BackendError, ValidationError) as exc:
            logger.error("Error fetching events: %s", exc)
            self.notify(failure("Error", "Failed to load events"))
        finally:
            self.loading = False
        return self.events

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create_event(self, data: EventCreate) -> Optional[Toast]:
        if not self.user_id:
            return None
        try:
            row = data.model_dump(mode="json")
            row["created_by"] = self.user_id
            _, error = await self.backend.insert(EVENTS_TABLE, [row])
            if error:
                raise error
        except BackendError as exc:
            logger.error("Error creating event '%s': %s", data.title, exc)
            return self.notify(failure("Error", exc.message))
        logger.info("User %s created event '%s'", self.user_id, data.title)
        toast = self.notify(success("Success", "Event created successfully!"))
        await self.fetch_events()
        return toast

    async def register_for_event(self, event_id: str) -> Optional[Toast]:
        if not self.user_id:
            return None
        try:
            _, error = await self.backend.insert(
                REGISTRATIONS_TABLE, [{"event_id": event_id, "user_id": self.user_id}]
            )
            if error:
                raise error
        except BackendError as exc:
            logger.error("Error registering %s for event %s: %s", self.user_id, event_id, exc)
            if exc.message == DUPLICATE_REGISTRATION_MESSAGE:
                return self.notify(failure("Error", ALREADY_REGISTERED))
            return self.notify(failure("Error", exc.message))
        toast = self.notify(success("Success", "Successfully registered for event!"))
        await self.fetch_events()
        return toast

    async def unregister_from_event(self, event_id: str) -> Optional[Toast]:
        if not self.user_id:
            return None
        try:
            _, error = await self.backend.delete(
                REGISTRATIONS_TABLE, filters={"event_id": event_id, "user_id": self.user_id}
            )
            if error:
                raise error
        except BackendError as exc:
            logger.error("Error unregistering %s from event %s: %s", self.user_id, event_id, exc)
            return self.notify(failure("Error", exc.message))
        toast = self.notify(success("Success", "Successfully unregistered from event"))
        await self.fetch_events()
        return toast

    async def toggle_registration(self, event_id: str) -> Optional[Toast]:
        """Run the event card action: unregister when registered, else register.

        The event is looked up in the feed (fetching it first if it is
        not there yet).  Raises ``EventNotFoundError`` for unknown events
        and ``ActionDisabledError`` when the card action is disabled.
        """
        event = self.find(event_id)
        if event is None:
            await self.fetch_events()
            event = self.find(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        action = describe_action(event, signed_in=self.user_id is not None)
        if action.disabled:
            raise ActionDisabledError(f"'{action.label}' is not available for event {event_id}")
        if event.is_registered:
            return await self.unregister_from_event(event_id)
        return await self.register_for_event(event_id)


class EventFeedRegistry:
    """Keeps one :class:`EventFeed` per viewer.

    Anonymous viewers share the feed stored under ``None``.  The backend
    client and user payload are refreshed on every lookup because they
    carry the caller's current access token.

    At most ``max_feeds`` feeds are kept; looking a feed up marks it as
    recently used and the least recently used one is dropped when the
    limit is exceeded.
    """

    def __init__(self, max_feeds: int = 1000) -> None:
        if max_feeds < 1:
            raise ValueError("max_feeds must be at least 1")
        self.max_feeds = max_feeds
        self._feeds: "OrderedDict[Optional[str], EventFeed]" = OrderedDict()

    def feed_for(self, backend: BackendClient, user: Optional[Dict[str, Any]]) -> EventFeed:
        key = user.get("id") if user else None
        feed = self._feeds.get(key)
        if feed is None:
            feed = EventFeed(backend, user)
            self._feeds[key] = feed
            while len(self._feeds) > self.max_feeds:
                evicted, _ = self._feeds.popitem(last=False)
                logger.debug("Evicted event feed of viewer %s", evicted)
        else:
            feed.backend = backend
            feed.user = user
            self._feeds.move_to_end(key)
        return feed

    def __contains__(self, user_id: Optional[str]) -> bool:
        return user_id in self._feeds

    def discard(self, user_id: Optional[str]) -> None:
        self._feeds.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._feeds)


# ----------------------------------------------------------------------
# Presentation helpers
# ----------------------------------------------------------------------
def filter_events(
    events: Iterable[EventRead],
    search_term: str = "",
    category: str = ALL,
    status: str = ALL,
) -> List[EventRead]:
    """Filter events the way the events page does.

    The search term is matched case-insensitively against the title and
    the description (a missing description counts as empty).  ``All``
    disables the category or status filter.
    """
    term = (search_term or "").lower()
    result = []
    for event in events:
        matches_search = term in event.title.lower() or term in (event.description or "").lower()
        matches_category = category == ALL or event.category == category
        matches_status = status == ALL or event.status == status
        if matches_search and matches_category and matches_status:
            result.append(event)
    return result


def count_by_status(events: Iterable[EventRead]) -> EventCounts:
    counts = EventCounts()
    for event in events:
        counts.total += 1
        setattr(counts, event.status, getattr(counts, event.status) + 1)
    return counts


def registration_percentage(event: EventRead) -> float:
    if event.max_registrations <= 0:
        return 0.0
    return event.registrations / event.max_registrations * 100


def describe_action(event: EventRead, signed_in: bool) -> EventAction:
    """Label and availability of the register button on an event card."""
    if event.status == "completed":
        label = "View Results"
    elif event.status == "ongoing":
        label = "Leave Event" if event.is_registered else "Join Now"
    else:
        label = "Unregister" if event.is_registered else "Register"

    full = event.registrations >= event.max_registrations
    disabled = (
        not signed_in
        or event.status == "completed"
        or (not event.is_registered and full)
    )
    return EventAction(
        label=label,
        disabled=disabled,
        registration_percentage=registration_percentage(event),
    )


def to_card(event: EventRead, signed_in: bool) -> EventCard:
    return EventCard(**event.model_dump(), action=describe_action(event, signed_in))
