# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Pixora Tools Developers

"""Build the text that goes into a QR code for each kind of content.

These are pure string functions.  Phones and scanner apps recognise the
prefixes (``mailto:``, ``tel:``, ``WIFI:``...) and offer to act on them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping
from urllib.parse import quote

from pixora.pixora_exceptions import EmptyContentError, InvalidInputError


class ContentType(Enum):
    URL = "url"
    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    SMS = "sms"
    WIFI = "wifi"
    VCARD = "vcard"
    EVENT = "event"
    LOCATION = "location"


class WifiSecurity(Enum):
    WPA = "WPA"
    WEP = "WEP"
    NOPASS = "nopass"


def wifi_content(
    ssid: str,
    password: str = "",
    security: WifiSecurity | str = WifiSecurity.WPA,
    hidden: bool = False,
) -> str:
    """Network details in the ``WIFI:`` format phones understand.

    Raises:
        EmptyContentError: no network name.
    """
    if not ssid or not ssid.strip():
        raise EmptyContentError("WiFi SSID cannot be empty")
    if isinstance(security, WifiSecurity):
        security = security.value
    return f"WIFI:T:{security};S:{ssid};P:{password};H:{'true' if hidden else 'false'};;"


def vcard_content(
    first_name: str | None = None,
    last_name: str | None = None,
    organization: str | None = None,
    phone: str | None = None,
    email: str | None = None,
    url: str | None = None,
    address: str | None = None,
) -> str:
    """A version 3.0 vCard with a line for each field that is given."""
    lines = ["BEGIN:VCARD", "VERSION:3.0"]
    if first_name or last_name:
        lines.append(f"FN:{first_name or ''} {last_name or ''}".strip())
    if organization:
        lines.append(f"ORG:{organization}")
    if phone:
        lines.append(f"TEL:{phone}")
    if email:
        lines.append(f"EMAIL:{email}")
    if url:
        lines.append(f"URL:{url}")
    if address:
        lines.append(f"ADR:;;{address};;;;")
    lines.append("END:VCARD")
    return "\n".join(lines)


def event_timestamp(date: str) -> str:
    """Squash an ISO-ish local datetime such as ``2024-12-01T10:00``.

    Dashes, colons and the ``T`` go and ``00Z`` is appended, so the
    local time is read as UTC.
    """
    return date.replace("-", "").replace(":", "").replace("T", "", 1) + "00Z"


def event_content(
    title: str,
    start_date: str,
    location: str | None = None,
    end_date: str | None = None,
    description: str | None = None,
) -> str:
    """A calendar event as a bare VEVENT block.

    Raises:
        EmptyContentError: no title.
    """
    if not title or not title.strip():
        raise EmptyContentError("Event title cannot be empty")
    lines = ["BEGIN:VEVENT", f"SUMMARY:{title}"]
    if location:
        lines.append(f"LOCATION:{location}")
    lines.append(f"DTSTART:{event_timestamp(start_date)}")
    if end_date:
        lines.append(f"DTEND:{event_timestamp(end_date)}")
    if description:
        lines.append(f"DESCRIPTION:{description}")
    lines.append("END:VEVENT")
    return "\n".join(lines)


def email_content(address: str, subject: str | None = None, body: str | None = None) -> str:
    query = []
    if subject:
        query.append(f"subject={quote(subject)}")
    if body:
        query.append(f"body={quote(body)}")
    s = f"mailto:{address}"
    return s + "?" + "&".join(query) if query else s


def phone_content(number: str) -> str:
    return f"tel:{number}"


def sms_content(number: str, message: str | None = None) -> str:
    if message:
        return f"sms:{number}?body={quote(message)}"
    return f"sms:{number}"


def location_content(latitude: float | str, longitude: float | str) -> str:
    """A ``geo:`` URI.

    Raises:
        InvalidInputError: not numbers, or out of range.
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except ValueError:
        raise InvalidInputError(
            f"Invalid location: {latitude}, {longitude}"
        ) from None
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        raise InvalidInputError(f"Location out of range: {lat}, {lon}")
    return f"geo:{str(latitude).strip()},{str(longitude).strip()}"


def format_content(content_type: ContentType | str, content: str | Mapping[str, Any]) -> str:
    """Turn user input into QR code text according to its type.

    Args:
        content_type: a :class:`ContentType` or its string value.
        content: a string for url, text, email, phone and sms (the
            number) and location (``"lat, lon"``).  For wifi, vcard
            and event, a mapping of the keyword arguments of
            :func:`wifi_content`, :func:`vcard_content` or
            :func:`event_content`.

    Raises:
        InvalidInputError: unknown type or content of the wrong shape.
        EmptyContentError: a required field is empty.
    """
    if not isinstance(content_type, ContentType):
        try:
            content_type = ContentType(str(content_type).casefold())
        except ValueError:
            raise InvalidInputError(f'Unknown QR content type "{content_type}"') from None

    builders = {
        ContentType.WIFI: wifi_content,
        ContentType.VCARD: vcard_content,
        ContentType.EVENT: event_content,
    }
    if content_type in builders:
        if not isinstance(content, Mapping):
            raise InvalidInputError(f"{content_type.value} content must be a mapping of fields")
        try:
            return builders[content_type](**content)
        except TypeError as err:
            raise InvalidInputError(f"Bad {content_type.value} fields: {err}") from err

    if not isinstance(content, str):
        raise InvalidInputError(f"{content_type.value} content must be a string")
    if content_type is ContentType.EMAIL:
        return email_content(content)
    if content_type is ContentType.PHONE:
        return phone_content(content)
    if content_type is ContentType.SMS:
        return sms_content(content)
    if content_type is ContentType.LOCATION:
        try:
            lat, lon = content.split(",")
        except ValueError:
            raise InvalidInputError(f'Location must be "lat, lon", not "{content}"') from None
        return location_content(lat.strip(), lon.strip())
    return content
