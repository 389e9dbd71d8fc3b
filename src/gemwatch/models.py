from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional

STATUS_LIVE = "live"
STATUS_REPLAY = "replay"
STATUS_UPCOMING = "upcoming"

ITEM_TYPE_LIVE = "Live"
ITEM_TYPE_MEDIA = "Media"

TIER_MEMBER = "Member"
TIER_PREMIUM = "Premium"


def _require_str(raw: Dict[str, Any], name: str) -> str:
    value = raw.get(name)
    if not isinstance(value, str):
        raise ValueError(f"missing or invalid field {name!r}")
    return value


def _optional_str(raw: Dict[str, Any], name: str) -> Optional[str]:
    value = raw.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"invalid field {name!r}")
    return value


def _image_url(images: Dict[str, Any], name: str) -> Optional[str]:
    image = images.get(name)
    if image is None:
        return None
    if not isinstance(image, dict):
        raise ValueError(f"invalid image {name!r}")
    return _require_str(image, "url")


@dataclass
class LineupItem:
    """One entry of a catalog lineup as published by the portal.

    Only ``title``, ``url`` and ``type`` are required on the wire. Absent
    strings become "", ``isVodEnabled`` becomes False and the remaining
    fields stay None.
    """

    title: str
    url: str
    item_type: str
    key: str = ""
    description: str = ""
    tier: str = ""
    is_vod_enabled: bool = False
    id_media: Optional[int] = None
    card_url: Optional[str] = None
    background_url: Optional[str] = None
    air_date: Optional[str] = None
    air_date_alt: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> LineupItem:
        if not isinstance(raw, dict):
            raise ValueError("lineup item is not an object")
        images = raw.get("images") or {}
        if not isinstance(images, dict):
            raise ValueError("invalid field 'images'")
        id_media = raw.get("idMedia")
        if id_media is not None:
            if isinstance(id_media, bool) or not isinstance(id_media, int):
                raise ValueError("invalid field 'idMedia'")
        is_vod_enabled = raw.get("isVodEnabled")
        if is_vod_enabled is not None and not isinstance(is_vod_enabled, bool):
            raise ValueError("invalid field 'isVodEnabled'")
        return cls(
            title=_require_str(raw, "title"),
            url=_require_str(raw, "url"),
            item_type=_require_str(raw, "type"),
            key=_optional_str(raw, "key") or "",
            description=_optional_str(raw, "description") or "",
            tier=_optional_str(raw, "tier") or "",
            is_vod_enabled=bool(is_vod_enabled),
            id_media=id_media,
            card_url=_image_url(images, "card"),
            background_url=_image_url(images, "background"),
            air_date=_optional_str(raw, "air_date"),
            air_date_alt=_optional_str(raw, "airDate"),
        )

    @property
    def identity(self) -> str:
        if self.id_media is not None:
            return str(self.id_media)
        return self.key

    @property
    def thumbnail_url(self) -> str:
        return self.card_url or self.background_url or ""

    @property
    def effective_air_date(self) -> str:
        if self.air_date is not None:
            return self.air_date
        return self.air_date_alt or ""


@dataclass
class Lineup:
    title: str
    items: List[LineupItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Lineup:
        if not isinstance(raw, dict):
            raise ValueError("lineup is not an object")
        items = raw.get("items") or []
        if not isinstance(items, list):
            raise ValueError("invalid field 'items'")
        return cls(
            title=_require_str(raw, "title"),
            items=[LineupItem.from_dict(item) for item in items],
        )


@dataclass
class CatalogPage:
    lineups: List[Lineup]

    @classmethod
    def from_dict(cls, raw: Any) -> CatalogPage:
        if not isinstance(raw, dict):
            raise ValueError("catalog page is not an object")
        lineups = raw.get("lineups")
        if not isinstance(lineups, dict):
            raise ValueError("missing field 'lineups'")
        results = lineups.get("results")
        if not isinstance(results, list):
            raise ValueError("missing field 'lineups.results'")
        return cls(lineups=[Lineup.from_dict(r) for r in results])


@dataclass
class StreamDescriptor:
    id: str
    title: str
    description: str
    sport: str
    status: str
    start_time: str
    end_time: Optional[str]
    thumbnail_url: str
    stream_url: str
    requires_auth: bool
    is_premium: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> StreamDescriptor:
        return cls(
            id=str(raw["id"]),
            title=str(raw["title"]),
            description=str(raw.get("description") or ""),
            sport=str(raw.get("sport") or ""),
            status=str(raw["status"]),
            start_time=str(raw.get("start_time") or ""),
            end_time=raw.get("end_time"),
            thumbnail_url=str(raw.get("thumbnail_url") or ""),
            stream_url=str(raw["stream_url"]),
            requires_auth=bool(raw.get("requires_auth")),
            is_premium=bool(raw.get("is_premium")),
        )


@dataclass
class Bitrate:
    bitrate: int
    width: int
    height: int
    lines: str

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Bitrate:
        return cls(
            bitrate=int(raw["bitrate"]),
            width=int(raw["width"]),
            height=int(raw["height"]),
            lines=str(raw["lines"]),
        )


@dataclass
class Manifest:
    url: str
    error_code: int
    message: Optional[str] = None
    bitrates: List[Bitrate] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.error_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> Manifest:
        return cls(
            url=str(raw["url"]),
            error_code=int(raw["error_code"]),
            message=raw.get("message"),
            bitrates=[Bitrate.from_dict(b) for b in raw.get("bitrates") or []],
        )

    @classmethod
    def from_validation(cls, raw: Any) -> Manifest:
        """Parse a validation endpoint body (camelCase ``errorCode``)."""
        if not isinstance(raw, dict):
            raise ValueError("validation response is not an object")
        code = raw.get("errorCode")
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError("missing or invalid field 'errorCode'")
        bitrates = raw.get("bitrates") or []
        if not isinstance(bitrates, list):
            raise ValueError("invalid field 'bitrates'")
        return cls(
            url=_require_str(raw, "url"),
            error_code=code,
            message=_optional_str(raw, "message"),
            bitrates=[Bitrate.from_dict(b) for b in bitrates],
        )
