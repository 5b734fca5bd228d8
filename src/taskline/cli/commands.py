# src/taskline/cli/commands.py

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from ..core.state import AppState
from ..tasks.codec import UnencodableFieldError
from ..tasks.errors import (
    IndexOutOfRangeError,
    TagAlreadyExistsError,
    TagNotFoundError,
    TaskAlreadyDoneError,
    TaskNotDoneError,
    TaskStoreError,
)
from ..tasks.task_models import Deadline, Event, Tag, Todo
from .router import CommandRouter

Fields = dict[str, str | None]
CommandHandler = Callable[[AppState, Fields], str]

logger = logging.getLogger(__name__)

FAREWELL = "Bye. Hope to see you again soon!"
UNRECOGNIZED = "UNRECOGNIZED COMMAND: Please try again."
AMBIGUOUS = "ERROR: User Input matched multiple entries.\nTerminating app..."


class CommandTag(StrEnum):
    BYE = "bye"
    LIST = "list"
    MARK = "mark"
    UNMARK = "unmark"
    TODO = "todo"
    DEADLINE = "deadline"
    EVENT = "event"
    DELETE = "delete"
    FIND = "find"
    TAG = "tag"
    UNTAG = "untag"


class ErrorCategory(StrEnum):
    MISSING_ARGUMENTS = "MISSING ARGUMENTS"
    ILLEGAL_ARGUMENTS = "ILLEGAL ARGUMENTS"
    MISSING_FLAGS = "MISSING FLAGS"
    ILLEGAL_FLAGS = "ILLEGAL FLAGS"
    DISALLOWED = "DISALLOWED"


class CommandInputError(Exception):
    """Raised by handlers for user-correctable input; rendered with the usage line."""

    def __init__(self, category: ErrorCategory, message: str) -> None:
        super().__init__(message)
        self.category = category
        self.message = message


@dataclass(frozen=True, slots=True)
class Command:
    tag: CommandTag
    handler: CommandHandler
    usage: str


def format_error(usage: str, category: ErrorCategory, message: str) -> str:
    return f"EXPECTED FORMAT: {usage}\n{category.value}: {message}"


def format_internal_error(exc: BaseException) -> str:
    return f"INTERNAL ERROR: An internal error occurred: {exc}"


class Dispatcher:
    """
    Routes one input line to one command handler and always answers with text.

    - no route      -> "unrecognized" + usage list
    - several routes -> session is terminated (state.alive = False)
    - one route     -> handler; domain errors become categorized messages
    """

    def __init__(self) -> None:
        self._router: CommandRouter[CommandTag] = CommandRouter()
        self._commands: dict[CommandTag, Command] = {}

    def register(
        self,
        tag: CommandTag,
        pattern: re.Pattern[str] | str,
        handler: CommandHandler,
        usage: str,
    ) -> None:
        if tag in self._commands:
            raise ValueError(f"Command {tag} is already registered")
        self._router.register(pattern, tag)
        self._commands[tag] = Command(tag=tag, handler=handler, usage=usage)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for command in self._commands.values():
            lines.append(f"  {command.usage}")
        return "\n".join(lines)

    def handle(self, state: AppState, line: str) -> str:
        matches = self._router.match(line)
        if not matches:
            return f"{UNRECOGNIZED}\n{self.build_help()}"
        if len(matches) > 1:
            logger.error(
                "Input %r matched multiple commands %s; terminating session.",
                line,
                [m.tag.value for m in matches],
            )
            state.alive = False
            return AMBIGUOUS

        match = matches[0]
        command = self._commands[match.tag]
        logger.debug("Dispatching %s", command.tag.value)
        try:
            return command.handler(state, match.fields)
        except CommandInputError as e:
            return format_error(command.usage, e.category, e.message)
        except (
            IndexOutOfRangeError,
            TaskAlreadyDoneError,
            TaskNotDoneError,
            TagAlreadyExistsError,
            TagNotFoundError,
        ) as e:
            return format_error(command.usage, ErrorCategory.DISALLOWED, str(e))
        except UnencodableFieldError as e:
            return format_error(command.usage, ErrorCategory.ILLEGAL_ARGUMENTS, str(e))
        except TaskStoreError as e:
            logger.error("Storage failure while handling %s.", command.tag.value, exc_info=True)
            return format_internal_error(e)
        except Exception as e:
            logger.exception("Command handler crashed (%s).", command.tag.value)
            return format_internal_error(e)


# ---- input helpers ----

INDEX_REGEX = re.compile(r"[0-9]+")
TAG_SPLIT_REGEX = re.compile(r"\s*,\s*")


def _no_argument(fields: Fields, command: str) -> None:
    if fields.get("arg") is not None:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_ARGUMENTS,
            f"Command '{command}' does not accept any arguments.",
        )


def _require_index(fields: Fields, command: str) -> int:
    raw = fields.get("index")
    if raw is None or not raw.strip():
        raise CommandInputError(
            ErrorCategory.MISSING_ARGUMENTS, f"Command '{command}' expects argument 'index'."
        )
    raw = raw.strip()
    if not INDEX_REGEX.fullmatch(raw):
        raise CommandInputError(
            ErrorCategory.ILLEGAL_ARGUMENTS,
            f"Command '{command}' expects argument 'index' to be a positive integer, got '{raw}'",
        )
    return int(raw)


def _require_text(fields: Fields, key: str, command: str) -> str:
    raw = fields.get(key)
    if raw is None or not raw.strip():
        raise CommandInputError(
            ErrorCategory.MISSING_ARGUMENTS, f"Command '{command}' expects argument '{key}'."
        )
    return raw.strip()


def _build_datetime(fields: Fields, prefix: str, default_hour: int, default_minute: int):
    """
    Build a datetime from `<prefix>year`, `<prefix>month`, ... groups.

    Returns (value, has_time). has_time is True only when the clock time was typed.
    """
    hour = fields.get(f"{prefix}hour")
    minute = fields.get(f"{prefix}minute")
    has_time = hour is not None and minute is not None
    try:
        value = datetime(
            int(fields[f"{prefix}year"] or 0),
            int(fields[f"{prefix}month"] or 0),
            int(fields[f"{prefix}day"] or 0),
            int(hour) if hour is not None else default_hour,
            int(minute) if minute is not None else default_minute,
        )
    except ValueError as e:
        raise CommandInputError(ErrorCategory.ILLEGAL_ARGUMENTS, str(e)) from e
    return value, has_time


def _parse_tag_names(fields: Fields, command: str) -> list[Tag]:
    if fields.get("names_field") is None:
        raise CommandInputError(
            ErrorCategory.MISSING_FLAGS, f"Command '{command}' expects flag '-names'."
        )
    names = fields.get("names")
    if names is None:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_FLAGS,
            f"Command '{command}' flag '-names' expects at least one tag name.",
        )
    return [Tag(name) for name in TAG_SPLIT_REGEX.split(names.strip())]


# ---- handlers ----


def cmd_bye(state: AppState, fields: Fields) -> str:
    _no_argument(fields, "bye")
    state.alive = False
    return FAREWELL


def cmd_list(state: AppState, fields: Fields) -> str:
    _no_argument(fields, "list")
    return f"Task List:\n{state.tasks.render()}"


def cmd_mark(state: AppState, fields: Fields) -> str:
    index = _require_index(fields, "mark")
    return f"Marked:\n{state.tasks.mark(index)}"


def cmd_unmark(state: AppState, fields: Fields) -> str:
    index = _require_index(fields, "unmark")
    return f"Unmarked:\n{state.tasks.unmark(index)}"


def cmd_todo(state: AppState, fields: Fields) -> str:
    name = _require_text(fields, "name", "todo")
    todo = state.tasks.add(Todo(name))
    return f"Todo added:\n{todo}"


def cmd_deadline(state: AppState, fields: Fields) -> str:
    if fields.get("by_field") is None:
        raise CommandInputError(ErrorCategory.MISSING_FLAGS, "Command 'deadline' expects flag '-by'.")
    if fields.get("by") is None:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_FLAGS,
            "Command 'deadline' flag '-by' expects date and time in the specified format.",
        )
    name = _require_text(fields, "name", "deadline")

    due_at, has_time = _build_datetime(fields, "", 23, 59)
    deadline = state.tasks.add(Deadline(name, due_at, has_time))
    return f"Deadline added:\n{deadline}"


def cmd_event(state: AppState, fields: Fields) -> str:
    if fields.get("from_field") is None:
        raise CommandInputError(ErrorCategory.MISSING_FLAGS, "Command 'event' expects flag '-from'.")
    if fields.get("from_when") is None:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_FLAGS, "Command 'event' flag '-from' expects a valid date/time."
        )
    if fields.get("to_field") is None:
        raise CommandInputError(ErrorCategory.MISSING_FLAGS, "Command 'event' expects flag '-to'.")
    if fields.get("to_when") is None:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_FLAGS, "Command 'event' flag '-to' expects a valid date/time."
        )
    name = _require_text(fields, "name", "event")

    start_at, start_has_time = _build_datetime(fields, "from_", 0, 0)
    end_at, end_has_time = _build_datetime(fields, "to_", 23, 59)
    if end_at < start_at:
        raise CommandInputError(
            ErrorCategory.ILLEGAL_ARGUMENTS,
            f"Event end ({end_at.isoformat()}) is before its start ({start_at.isoformat()}).",
        )
    event = state.tasks.add(
        Event(
            name,
            start_at,
            end_at,
            start_has_time=start_has_time,
            end_has_time=end_has_time,
        )
    )
    return f"Event added:\n{event}"


def cmd_delete(state: AppState, fields: Fields) -> str:
    index = _require_index(fields, "delete")
    task = state.tasks.remove(index)
    remaining = state.tasks.size
    return f"Deleted:\n{task}\n{remaining} {'tasks' if remaining > 1 else 'task'} remaining"


def cmd_find(state: AppState, fields: Fields) -> str:
    keyword = _require_text(fields, "keyword", "find")
    found = state.tasks.find(keyword)
    if not found:
        return "No matching tasks found."
    lines = ["Here are the matching tasks:"]
    lines.extend(f"{i}. {task}" for i, task in found)
    return "\n".join(lines)


def cmd_tag(state: AppState, fields: Fields) -> str:
    tags = _parse_tag_names(fields, "tag")
    index = _require_index(fields, "tag")
    return f"Tagged:\n{state.tasks.add_tags(index, *tags)}"


def cmd_untag(state: AppState, fields: Fields) -> str:
    tags = _parse_tag_names(fields, "untag")
    index = _require_index(fields, "untag")
    return f"Untagged:\n{state.tasks.remove_tags(index, *tags)}"


# ---- grammar ----

_DATE = r"(?P<{p}year>\d{{4}})-(?P<{p}month>\d{{1,2}})-(?P<{p}day>\d{{1,2}})"
_TIME = r"(?:\s*,\s*(?P<{p}hour>\d{{1,2}}):(?P<{p}minute>\d{{1,2}}))?"


def _when(prefix: str) -> str:
    return _DATE.format(p=prefix) + _TIME.format(p=prefix)


BYE_PATTERN = re.compile(r"^\s*bye\b(?:\s+(?P<arg>.*))?\s*$")
LIST_PATTERN = re.compile(r"^\s*list\b(?:\s+(?P<arg>.*))?\s*$")
MARK_PATTERN = re.compile(r"^\s*mark\b(?:\s+(?P<index>.*))?\s*$")
UNMARK_PATTERN = re.compile(r"^\s*unmark\b(?:\s+(?P<index>.*))?\s*$")
TODO_PATTERN = re.compile(r"^\s*todo\b(?:\s+(?P<name>.*))?\s*$")
DEADLINE_PATTERN = re.compile(
    r"""
    ^\s*deadline\b
    (?P<by_field>\s+-by\b
        (?P<by>\s+ """ + _when("") + r""")?
    )?
    (?:\s+(?P<name>.*))?\s*$
    """,
    re.VERBOSE,
)
EVENT_PATTERN = re.compile(
    r"""
    ^\s*event\b
    (?P<from_field>\s+-from\b
        (?P<from_when>\s+ """ + _when("from_") + r""")?
    )?
    (?P<to_field>\s+-to\b
        (?P<to_when>\s+ """ + _when("to_") + r""")?
    )?
    (?:\s+(?P<name>.*))?\s*$
    """,
    re.VERBOSE,
)
DELETE_PATTERN = re.compile(r"^\s*delete\b(?:\s+(?P<index>.*))?\s*$")
FIND_PATTERN = re.compile(r"^\s*find\b(?:\s+(?P<keyword>.*))?\s*$")
TAG_PATTERN = re.compile(
    r"""
    ^\s*tag\b
    (?P<names_field>\s+-names\b
        (?P<names>\s+[a-zA-Z0-9]+(?:\s*,\s*[a-zA-Z0-9]+)*)?
    )?
    (?:\s+(?P<index>.*))?\s*$
    """,
    re.VERBOSE,
)
UNTAG_PATTERN = re.compile(
    r"""
    ^\s*untag\b
    (?P<names_field>\s+-names\b
        (?P<names>\s+[a-zA-Z0-9]+(?:\s*,\s*[a-zA-Z0-9]+)*)?
    )?
    (?:\s+(?P<index>.*))?\s*$
    """,
    re.VERBOSE,
)


def register_default_commands(d: Dispatcher) -> Dispatcher:
    d.register(CommandTag.BYE, BYE_PATTERN, cmd_bye, "bye")
    d.register(CommandTag.LIST, LIST_PATTERN, cmd_list, "list")
    d.register(CommandTag.MARK, MARK_PATTERN, cmd_mark, "mark <index>")
    d.register(CommandTag.UNMARK, UNMARK_PATTERN, cmd_unmark, "unmark <index>")
    d.register(CommandTag.TODO, TODO_PATTERN, cmd_todo, "todo <name>")
    d.register(
        CommandTag.DEADLINE,
        DEADLINE_PATTERN,
        cmd_deadline,
        "deadline -by <year>-<month>-<day>[,<hour>:<minute>] <name>",
    )
    d.register(
        CommandTag.EVENT,
        EVENT_PATTERN,
        cmd_event,
        "event -from <year>-<month>-<day>[,<hour>:<minute>] "
        "-to <year>-<month>-<day>[,<hour>:<minute>] <name>",
    )
    d.register(CommandTag.DELETE, DELETE_PATTERN, cmd_delete, "delete <index>")
    d.register(CommandTag.FIND, FIND_PATTERN, cmd_find, "find <keyword>")
    d.register(CommandTag.TAG, TAG_PATTERN, cmd_tag, "tag -names <name1,name2,...> <index>")
    d.register(CommandTag.UNTAG, UNTAG_PATTERN, cmd_untag, "untag -names <name1,name2,...> <index>")
    return d


dispatcher = register_default_commands(Dispatcher())
