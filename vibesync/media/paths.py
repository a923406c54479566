"""Blob path layout for event media.

    event_images/<event id>/<event id>_<index>.jpg
    guest_images/<event id>/<guest id>_0.jpg

Both folders together form an event's media namespace.
"""

import re

EVENT_IMAGES_FOLDER = "event_images"
GUEST_IMAGES_FOLDER = "guest_images"

_INDEX_PATTERN = re.compile(r"_(\d+)\.[A-Za-z0-9]+$")


def blob_name(name_id: str, index: int) -> str:
    return f"{str(name_id).strip().lower()}_{index}.jpg"


def event_images_folder(entity_id: str) -> str:
    return f"{EVENT_IMAGES_FOLDER}/{str(entity_id).strip().lower()}"


def guest_images_folder(entity_id: str) -> str:
    return f"{GUEST_IMAGES_FOLDER}/{str(entity_id).strip().lower()}"


def media_prefixes(entity_id: str) -> list[str]:
    """Every prefix under which an event's blobs may live."""
    return [
        f"{event_images_folder(entity_id)}/",
        f"{guest_images_folder(entity_id)}/",
    ]


def image_index(path: str) -> int | None:
    """Upload index encoded in a blob path, if any."""
    match = _INDEX_PATTERN.search(path)
    return int(match.group(1)) if match else None
