from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional, Set

from gemwatch.api.client import GemClient, UpstreamError
from gemwatch.models import (
    ITEM_TYPE_LIVE,
    ITEM_TYPE_MEDIA,
    STATUS_LIVE,
    STATUS_REPLAY,
    STATUS_UPCOMING,
    TIER_MEMBER,
    TIER_PREMIUM,
    CatalogPage,
    Lineup,
    LineupItem,
    StreamDescriptor,
)

logger = logging.getLogger(__name__)

_STREAM_TYPES = (ITEM_TYPE_LIVE, ITEM_TYPE_MEDIA)

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))",
    re.ASCII,
)


def parse_air_date(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp.

    Basic ISO forms (``20240726T140000Z``), ``+0000`` offsets and values
    without an offset are rejected. A lowercase ``t`` or ``z`` is accepted.
    """
    m = _RFC3339.fullmatch(value or "")
    if m is None:
        return None
    year, month, day, hour, minute, second = (int(g) for g in m.group(1, 2, 3, 4, 5, 6))
    micros = int((m.group(7) or "0")[:6].ljust(6, "0"))
    try:
        if m.group(8):
            tz = timezone.utc
        else:
            offset = timedelta(hours=int(m.group(10)), minutes=int(m.group(11)))
            tz = timezone(-offset if m.group(9) == "-" else offset)
        dt = datetime(year, month, day, hour, minute, second, micros, tzinfo=tz)
    except ValueError:
        return None
    return dt.astimezone(timezone.utc)


def classify_status(item: LineupItem, now: datetime) -> str:
    aired = parse_air_date(item.effective_air_date)
    is_past = aired is not None and aired < now
    if not item.is_vod_enabled and is_past:
        return STATUS_LIVE
    if item.is_vod_enabled:
        return STATUS_REPLAY
    return STATUS_UPCOMING


def convert_lineups(
    lineups: Iterable[Lineup],
    seen_ids: Set[str],
    *,
    now: Optional[datetime] = None,
) -> List[StreamDescriptor]:
    """Flatten lineups into descriptors, skipping ids already in ``seen_ids``.

    ``seen_ids`` is updated in place so the same set can be threaded
    through every page of one fetch.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    out: List[StreamDescriptor] = []
    for lineup in lineups:
        for item in lineup.items:
            if item.item_type not in _STREAM_TYPES:
                continue

            stream_id = item.identity
            if stream_id in seen_ids:
                continue
            seen_ids.add(stream_id)

            out.append(
                StreamDescriptor(
                    id=stream_id,
                    title=item.title,
                    description=item.description,
                    sport=lineup.title,
                    status=classify_status(item, now),
                    start_time=item.effective_air_date,
                    end_time=None,
                    thumbnail_url=item.thumbnail_url,
                    stream_url=item.url,
                    requires_auth=item.tier in (TIER_MEMBER, TIER_PREMIUM),
                    is_premium=item.tier == TIER_PREMIUM,
                )
            )
    return out


class CatalogAggregator:
    def __init__(
        self,
        client: GemClient,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.client = client
        self._clock = clock

    def fetch_page(self, page_number: int) -> CatalogPage:
        r = self.client.catalog_page(page_number)
        if not (200 <= r.status_code < 300):
            raise UpstreamError(f"Catalog API returned status {r.status_code}", status=r.status_code)
        try:
            return CatalogPage.from_dict(r.json())
        except (ValueError, TypeError, KeyError) as exc:
            raise UpstreamError(f"Failed to parse catalog response: {exc}") from exc

    def fetch_catalog(self) -> List[StreamDescriptor]:
        page_size = self.client.settings.page_size
        max_pages = self.client.settings.max_pages

        streams: List[StreamDescriptor] = []
        seen_ids: Set[str] = set()
        now = self._clock()

        for page_number in range(1, max_pages + 1):
            page = self.fetch_page(page_number)
            batch = convert_lineups(page.lineups, seen_ids, now=now)
            logger.debug(
                f"[CATALOG] page {page_number}: {len(page.lineups)} lineups, {len(batch)} new streams"
            )
            streams.extend(batch)

            if len(page.lineups) < page_size:
                break
        else:
            logger.info(f"[CATALOG] Stopping at page limit ({max_pages})")

        logger.info(f"[CATALOG] Fetched {len(streams)} streams")
        return streams
