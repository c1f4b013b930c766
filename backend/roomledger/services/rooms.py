"""Room identifier resolution for QR scans and manual room selection."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

from roomledger.services.errors import RoomRequired

_PREFIXED = re.compile(r"^room[\s:_\-#]*(?P<room>[A-Za-z0-9\-]+)$", re.IGNORECASE)
_PLAIN = re.compile(r"^[A-Za-z0-9\-]+$")


def resolve_room_id(raw: Optional[str]) -> str:
    """Return the room id encoded in a QR payload or typed by staff.

    Accepted forms: ``"204"``, ``"room:204"``, ``"Room 204"``, ``"ROOM-204"``
    and URLs carrying ``?room=204`` (or ``?roomId=204``).
    """
    if raw is None:
        raise RoomRequired()
    value = raw.strip()
    if not value:
        raise RoomRequired()

    if "://" in value:
        query = parse_qs(urlparse(value).query)
        for key in ("room", "roomId", "room_id"):
            if query.get(key) and query[key][0].strip():
                return resolve_room_id(query[key][0])
        raise RoomRequired(f"No room id found in '{value}'")

    match = _PREFIXED.match(value)
    if match:
        return match.group("room")
    if _PLAIN.match(value):
        return value
    raise RoomRequired(f"Unrecognised room id '{value}'")
