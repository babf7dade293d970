"""Broker wire protocol: request decoding and response encoding.

The broker sends exactly one JSON object per invocation:

    {"request": "trigger", "version": 1, "event_type": "push" | "patch", ...}

and expects exactly two JSON objects back: a ``triggered`` acknowledgement
carrying the run id, then a terminal ``finished`` response (or an error-shaped
``finished`` response when the event could not be handled).

decode() is pure: it either returns a fully typed event or raises
ProtocolError, never a partially filled one.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from radci_core.aggregate import workflow_label
from radci_core.errors import ProtocolError
from radci_core.models import AggregateOutcome, WorkflowResult

TRIGGER_REQUEST = "trigger"
DEFAULT_PROTOCOL_VERSION = 1
SUPPORTED_PROTOCOL_VERSIONS = frozenset({1})

EVENT_TYPE_PUSH = "push"
EVENT_TYPE_PATCH = "patch"


@dataclass
class Author:
    id: str = ""
    alias: str = ""


@dataclass
class Repository:
    id: str = ""
    name: str = ""
    description: str = ""
    private: bool = False
    default_branch: str = ""
    delegates: list[str] = field(default_factory=list)


@dataclass
class Revision:
    id: str = ""
    author: Author = field(default_factory=Author)
    description: str = ""
    base: str = ""
    oid: str = ""
    timestamp: int = 0


@dataclass
class PatchConflict:
    revision_id: str = ""
    oid: str = ""


@dataclass
class PatchState:
    status: str = ""
    conflicts: list[PatchConflict] = field(default_factory=list)


@dataclass
class Patch:
    id: str = ""
    author: Author = field(default_factory=Author)
    title: str = ""
    state: PatchState = field(default_factory=PatchState)
    before: str = ""
    after: str = ""
    commits: list[str] = field(default_factory=list)
    target: str = ""
    labels: list[str] = field(default_factory=list)
    assignees: list[str] = field(default_factory=list)
    revisions: list[Revision] = field(default_factory=list)


@dataclass
class PushEvent:
    pusher: Author
    before: str
    after: str
    commits: list[str]
    repository: Repository
    version: int = DEFAULT_PROTOCOL_VERSION

    @property
    def repo(self) -> str:
        return self.repository.id

    @property
    def commit(self) -> str:
        return self.after


@dataclass
class PatchEvent:
    action: str
    patch: Patch
    repository: Repository
    version: int = DEFAULT_PROTOCOL_VERSION

    @property
    def repo(self) -> str:
        return self.repository.id

    @property
    def commit(self) -> str:
        return self.patch.after

    @property
    def latest_revision(self) -> Revision | None:
        """Comments attach to the newest revision; None when the patch carries none."""
        return self.patch.revisions[-1] if self.patch.revisions else None


RequestEvent = Union[PushEvent, PatchEvent]


# --------------------------------------------------------------------------- #
# Field readers                                                               #
# --------------------------------------------------------------------------- #


def _field(obj: dict, key: str, kind: type, default: Any, where: str) -> Any:
    value = obj.get(key)
    if value is None:
        return default
    # bool is an int subclass; a JSON true must not pass as a number.
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ProtocolError(f"{where}.{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _str(obj: dict, key: str, where: str) -> str:
    return _field(obj, key, str, "", where)


def _obj(obj: dict, key: str, where: str) -> dict:
    return _field(obj, key, dict, {}, where)


def _str_list(obj: dict, key: str, where: str) -> list[str]:
    items = _field(obj, key, list, [], where)
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise ProtocolError(f"{where}.{key}[{i}]: expected str, got {type(item).__name__}")
    return list(items)


def _obj_list(obj: dict, key: str, where: str) -> list[dict]:
    items = _field(obj, key, list, [], where)
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ProtocolError(f"{where}.{key}[{i}]: expected object, got {type(item).__name__}")
    return items


def _author(d: dict, where: str) -> Author:
    return Author(id=_str(d, "id", where), alias=_str(d, "alias", where))


def _repository(d: dict) -> Repository:
    where = "repository"
    return Repository(
        id=_str(d, "id", where),
        name=_str(d, "name", where),
        description=_str(d, "description", where),
        private=_field(d, "private", bool, False, where),
        default_branch=_str(d, "default_branch", where),
        delegates=_str_list(d, "delegates", where),
    )


def _revision(d: dict, where: str) -> Revision:
    return Revision(
        id=_str(d, "id", where),
        author=_author(_obj(d, "author", where), f"{where}.author"),
        description=_str(d, "description", where),
        base=_str(d, "base", where),
        oid=_str(d, "oid", where),
        timestamp=_field(d, "timestamp", int, 0, where),
    )


def _patch(d: dict) -> Patch:
    where = "patch"
    state = _obj(d, "state", where)
    return Patch(
        id=_str(d, "id", where),
        author=_author(_obj(d, "author", where), f"{where}.author"),
        title=_str(d, "title", where),
        state=PatchState(
            status=_str(state, "status", f"{where}.state"),
            conflicts=[
                PatchConflict(
                    revision_id=_str(c, "revision_id", f"{where}.state.conflicts"),
                    oid=_str(c, "oid", f"{where}.state.conflicts"),
                )
                for c in _obj_list(state, "conflicts", f"{where}.state")
            ],
        ),
        before=_str(d, "before", where),
        after=_str(d, "after", where),
        commits=_str_list(d, "commits", where),
        target=_str(d, "target", where),
        labels=_str_list(d, "labels", where),
        assignees=_str_list(d, "assignees", where),
        revisions=[
            _revision(r, f"{where}.revisions[{i}]") for i, r in enumerate(_obj_list(d, "revisions", where))
        ],
    )


# --------------------------------------------------------------------------- #
# Public interface                                                            #
# --------------------------------------------------------------------------- #


def decode(raw: str | bytes) -> RequestEvent:
    """Parse one broker request into a PushEvent or PatchEvent.

    Raises ProtocolError for invalid JSON, a request other than "trigger",
    an unsupported protocol version, or an unknown event type.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"request is not valid UTF-8: {e}") from e
    text = raw.replace("\n", "")

    try:
        message = json.loads(text)
    except json.JSONDecodeError as e:
        raise ProtocolError(f"could not parse request message: {e}") from e
    if not isinstance(message, dict):
        raise ProtocolError("request message must be a JSON object")

    request = message.get("request")
    if request != TRIGGER_REQUEST:
        raise ProtocolError(f"not supported message request: {request!r}")

    version = message.get("version", DEFAULT_PROTOCOL_VERSION)
    if isinstance(version, bool) or not isinstance(version, int) or version not in SUPPORTED_PROTOCOL_VERSIONS:
        raise ProtocolError(f"not supported message protocol version: {version!r}")

    event_type = message.get("event_type")
    if event_type == EVENT_TYPE_PUSH:
        return PushEvent(
            pusher=_author(_obj(message, "pusher", "push"), "pusher"),
            before=_str(message, "before", "push"),
            after=_str(message, "after", "push"),
            commits=_str_list(message, "commits", "push"),
            repository=_repository(_obj(message, "repository", "push")),
            version=version,
        )
    if event_type == EVENT_TYPE_PATCH:
        return PatchEvent(
            action=_str(message, "action", "patch event"),
            patch=_patch(_obj(message, "patch", "patch event")),
            repository=_repository(_obj(message, "repository", "patch event")),
            version=version,
        )
    raise ProtocolError(f"not supported event type: {event_type!r}")


def triggered_response(run_id: str) -> dict:
    return {"response": "triggered", "run_id": {"id": run_id}}


def workflow_details(result: WorkflowResult) -> dict:
    return {
        "workflow_id": result.id,
        "workflow_name": result.name,
        "workflow_result": workflow_label(result),
        "workflow_artifacts": [
            {"id": a.id, "name": a.name, "url": a.url, "api_url": a.api_url} for a in result.artifacts
        ],
    }


def finished_response(outcome: AggregateOutcome) -> dict:
    return {
        "response": outcome.kind.value,
        "result": outcome.result.value,
        "result_details": [workflow_details(w) for w in outcome.workflows],
    }


def error_response(message: str) -> dict:
    return {"response": "finished", "result": {"error": message}}
