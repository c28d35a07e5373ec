# hrfe/services/sync_incidents.py

import logging
from dataclasses import asdict, dataclass, field
from typing import Awaitable, Callable, List, Optional, Protocol

from .incident_store import IncidentStore, StoreError
from .parse_incident import ParseError, parse_incident
from .timeline import SourceError, TimelineMessage

log = logging.getLogger(__name__)

FORWARD = "forward"
BACKWARD = "backward"


class MessageSource(Protocol):
    async def fetch_since(self, after_id: Optional[int]) -> List[TimelineMessage]: ...

    async def fetch_until(self, before_id: Optional[int]) -> List[TimelineMessage]: ...


class SyncAborted(RuntimeError):
    """
    A pass stopped on the first failure. The cause is chained.

    phase is one of 'fetch', 'parse' or 'store'; message_id is None for
    fetch failures.
    """

    def __init__(self, direction: str, phase: str, message_id: Optional[int] = None):
        self.direction = direction
        self.phase = phase
        self.message_id = message_id
        where = f" tweet id={message_id}" if message_id is not None else ""
        super().__init__(f"{direction} pass aborted during {phase}{where}")


@dataclass
class PassReport:
    direction: str
    pages: int = 0
    fetched: int = 0
    inserted: int = 0
    skipped: int = 0
    boundary: Optional[int] = None


@dataclass
class SyncReport:
    passes: List[PassReport] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return sum(p.inserted for p in self.passes)

    @property
    def skipped(self) -> int:
        return sum(p.skipped for p in self.passes)

    def to_dict(self) -> dict:
        return {
            "inserted": self.inserted,
            "skipped": self.skipped,
            "passes": [asdict(p) for p in self.passes],
        }


def store_page(
    store: IncidentStore,
    page: List[TimelineMessage],
    report: PassReport,
) -> None:
    """
    Parse and store every message of one page, in page order.
    """
    for msg in page:
        try:
            incident = parse_incident(msg.text)
        except ParseError as e:
            raise SyncAborted(report.direction, "parse", msg.id) from e

        try:
            inserted = store.insert_if_absent(msg, incident)
        except StoreError as e:
            raise SyncAborted(report.direction, "store", msg.id) from e

        if inserted:
            report.inserted += 1
            log.info(
                "[Sync] stored tweet %s: %s createdAt: %s",
                msg.id,
                incident,
                msg.created_at.isoformat(),
            )
        else:
            report.skipped += 1
            log.debug("[Sync] tweet %s already stored", msg.id)


async def _run_pass(
    direction: str,
    store: IncidentStore,
    boundary: Optional[int],
    fetch: Callable[[Optional[int]], Awaitable[List[TimelineMessage]]],
    advance: Callable[[Optional[int], List[TimelineMessage]], int],
) -> PassReport:
    report = PassReport(direction=direction, boundary=boundary)

    while True:
        try:
            page = await fetch(report.boundary)
        except SourceError as e:
            raise SyncAborted(direction, "fetch") from e
        report.pages += 1

        if not page:
            break

        report.fetched += len(page)
        store_page(store, page, report)
        report.boundary = advance(report.boundary, page)

    log.info(
        "[Sync] %s pass done: %d pages, %d inserted, %d skipped, boundary=%s",
        direction,
        report.pages,
        report.inserted,
        report.skipped,
        report.boundary,
    )
    return report


def _newest(boundary: Optional[int], page: List[TimelineMessage]) -> int:
    newest = max(msg.id for msg in page)
    return newest if boundary is None else max(boundary, newest)


def _oldest(boundary: Optional[int], page: List[TimelineMessage]) -> int:
    oldest = min(msg.id for msg in page)
    return oldest if boundary is None else min(boundary, oldest)


async def forward_pass(source: MessageSource, store: IncidentStore) -> PassReport:
    """
    Fetch everything newer than the newest stored message, page by page,
    until the source returns an empty page.
    """
    try:
        boundary = store.max_external_id()
    except StoreError as e:
        raise SyncAborted(FORWARD, "store") from e

    return await _run_pass(FORWARD, store, boundary, source.fetch_since, _newest)


async def backward_pass(source: MessageSource, store: IncidentStore) -> PassReport:
    """
    Fetch everything older than the oldest stored message, page by page,
    until the source returns an empty page.
    """
    try:
        boundary = store.min_external_id()
    except StoreError as e:
        raise SyncAborted(BACKWARD, "store") from e

    async def fetch_older(before: Optional[int]) -> List[TimelineMessage]:
        # max_id is inclusive upstream
        return await source.fetch_until(before - 1 if before is not None else None)

    return await _run_pass(BACKWARD, store, boundary, fetch_older, _oldest)


async def run_sync(
    source: MessageSource,
    store: IncidentStore,
    directions=(FORWARD, BACKWARD),
) -> SyncReport:
    """
    Run the requested passes in order. Forward first by default; the final
    coverage is the same either way.
    """
    passes = {FORWARD: forward_pass, BACKWARD: backward_pass}

    report = SyncReport()
    for direction in directions:
        report.passes.append(await passes[direction](source, store))

    print(
        f"[sync_incidents] Inserted {report.inserted} new incidents, "
        f"skipped {report.skipped} already-stored tweets."
    )
    return report
