# src/taskline/tasks/codec.py

"""
Codec registry: variant code -> (encode, decode) function pairs.

A record payload is the task's fields joined by FIELD_DELIM; the variant
code itself is written by the store, in front of RECORD_DELIM. Tag lists
are joined by TAG_DELIM, with NO_TAGS standing in for an empty list.

The format does not escape anything. Instead, encoding refuses free text
that contains one of the reserved tokens or a line break, so a written
line always splits back into exactly the fields it was built from.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from .errors import TagAlreadyExistsError
from .task_models import Deadline, Event, Tag, Task, Todo

logger = logging.getLogger(__name__)

RECORD_DELIM = "<DELIMITER>"
FIELD_DELIM = "<SERIALIZATION_DELIMITER>"
TAG_DELIM = "<TAG_DELIMITER>"
NO_TAGS = "<NO_TAGS>"

RESERVED_TOKENS = (RECORD_DELIM, FIELD_DELIM, TAG_DELIM, NO_TAGS)
LINE_BREAKS = ("\r", "\n")

Encoder = Callable[[Task], list[str]]
Decoder = Callable[[list[str]], Task]


class CodecError(Exception):
    pass


class DuplicateTagError(CodecError):
    pass


class UnknownTagError(CodecError):
    pass


class MalformedRecordError(CodecError):
    pass


class UnencodableFieldError(CodecError, ValueError):
    pass


def check_encodable(text: str) -> str:
    for token in RESERVED_TOKENS:
        if token in text:
            raise UnencodableFieldError(f"'{text}' contains the reserved sequence {token}")
    if any(ch in text for ch in LINE_BREAKS):
        raise UnencodableFieldError(f"{text!r} contains a line break")
    return text


# ---- field helpers ----


def _bool_to_str(value: bool) -> str:
    return "true" if value else "false"


def _str_to_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise MalformedRecordError(f"expected 'true' or 'false', got '{raw}'")


def _str_to_datetime(raw: str) -> datetime:
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise MalformedRecordError(f"invalid ISO-8601 date-time '{raw}'") from e


def encode_tags(tags: tuple[Tag, ...] | list[Tag]) -> str:
    if not tags:
        return NO_TAGS
    return TAG_DELIM.join(check_encodable(t.name) for t in tags)


def decode_tags(raw: str) -> list[Tag]:
    if raw == NO_TAGS:
        return []
    try:
        return [Tag(name) for name in raw.split(TAG_DELIM)]
    except ValueError as e:
        raise MalformedRecordError(str(e)) from e


# ---- per-variant codecs ----


def encode_todo(task: Task) -> list[str]:
    return [check_encodable(task.name), _bool_to_str(task.done), encode_tags(task.tags)]


def decode_todo(fields: list[str]) -> Task:
    name, done, tags = fields
    return Todo(name, done=_str_to_bool(done), tags=decode_tags(tags))


def encode_deadline(task: Task) -> list[str]:
    if not isinstance(task, Deadline):
        raise TypeError(f"expected a Deadline, got {type(task).__name__}")
    return [
        check_encodable(task.name),
        _bool_to_str(task.done),
        task.due_at.isoformat(),
        _bool_to_str(task.due_has_time),
        encode_tags(task.tags),
    ]


def decode_deadline(fields: list[str]) -> Task:
    name, done, due_at, due_has_time, tags = fields
    return Deadline(
        name,
        _str_to_datetime(due_at),
        _str_to_bool(due_has_time),
        done=_str_to_bool(done),
        tags=decode_tags(tags),
    )


def encode_event(task: Task) -> list[str]:
    if not isinstance(task, Event):
        raise TypeError(f"expected an Event, got {type(task).__name__}")
    return [
        check_encodable(task.name),
        _bool_to_str(task.done),
        task.start_at.isoformat(),
        _bool_to_str(task.start_has_time),
        task.end_at.isoformat(),
        _bool_to_str(task.end_has_time),
        encode_tags(task.tags),
    ]


def decode_event(fields: list[str]) -> Task:
    name, done, start_at, start_has_time, end_at, end_has_time, tags = fields
    return Event(
        name,
        _str_to_datetime(start_at),
        _str_to_datetime(end_at),
        start_has_time=_str_to_bool(start_has_time),
        end_has_time=_str_to_bool(end_has_time),
        done=_str_to_bool(done),
        tags=decode_tags(tags),
    )


# ---- registry ----


@dataclass(frozen=True, slots=True)
class Codec:
    code: str
    field_count: int | None
    encode: Encoder
    decode: Decoder


class CodecRegistry:
    def __init__(self) -> None:
        self._codecs: dict[str, Codec] = {}

    def register(
        self,
        code: str,
        encode: Encoder,
        decode: Decoder,
        *,
        field_count: int | None = None,
    ) -> None:
        if not code or not code.strip():
            raise ValueError("code is required")
        check_encodable(code)
        if code in self._codecs:
            raise DuplicateTagError(f"Attempted to add Tag {code} which already exists")
        self._codecs[code] = Codec(code=code, field_count=field_count, encode=encode, decode=decode)
        logger.debug("Codec registered code=%s fields=%s", code, field_count)

    def _lookup(self, code: str) -> Codec:
        codec = self._codecs.get(code)
        if codec is None:
            raise UnknownTagError(f"No codec registered for tag '{code}'")
        return codec

    def encode(self, task: Task) -> str:
        codec = self._lookup(task.code)
        return FIELD_DELIM.join(codec.encode(task))

    def decode(self, code: str, payload: str) -> Task:
        codec = self._lookup(code)
        fields = payload.split(FIELD_DELIM)
        if codec.field_count is not None and len(fields) != codec.field_count:
            raise MalformedRecordError(
                f"tag '{code}' expects {codec.field_count} fields, got {len(fields)}"
            )
        try:
            return codec.decode(fields)
        except MalformedRecordError:
            raise
        except (ValueError, TagAlreadyExistsError) as e:
            # empty name, start after end, repeated tag, ...
            raise MalformedRecordError(str(e)) from e


def default_registry() -> CodecRegistry:
    registry = CodecRegistry()
    registry.register(Todo.code, encode_todo, decode_todo, field_count=3)
    registry.register(Deadline.code, encode_deadline, decode_deadline, field_count=5)
    registry.register(Event.code, encode_event, decode_event, field_count=7)
    return registry
