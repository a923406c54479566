"""Tolerant decoding of raw store records into domain objects."""

from vibesync.parsing.event_parser import (
    EventParser,
    ParseFailure,
    ParseResult,
    parse_decimal,
    parse_uuid,
)

__all__ = [
    "EventParser",
    "ParseFailure",
    "ParseResult",
    "parse_decimal",
    "parse_uuid",
]
