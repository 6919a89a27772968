"""Conversion between action ids ("login-window") and display names ("Login Window").

The round trip is only faithful for single-capitalization words:
"USB Port" -> "usb-port" -> "Usb Port".
"""

from __future__ import annotations


def id_to_name(action_id: str) -> str:
    """Title-case each hyphen-separated segment and join with spaces."""
    return " ".join(segment[:1].upper() + segment[1:] for segment in action_id.split("-"))


def name_to_id(name: str) -> str:
    """Replace spaces with hyphens and lowercase everything."""
    return name.replace(" ", "-").lower()


def looks_like_name(value: str) -> bool:
    """True when the value carries any uppercase character."""
    return any(ch.isupper() for ch in value)
