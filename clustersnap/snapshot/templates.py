"""Declarative request definitions for the cluster snapshot API.

Each definition is a frozen value. Rendering builds a new ``RenderedRequest``
from a parameter mapping supplied per call, so definitions are never mutated
and can be shared freely.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Callable, Mapping

from clustersnap.snapshot.errors import MissingParameter

PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


@dataclass(frozen=True, slots=True)
class RequestDefinition:
    method: str
    path_template: str
    body_template: str | None = None


@dataclass(frozen=True, slots=True)
class RenderedRequest:
    method: str
    path: str
    body: str | None = None


def placeholders(template: str | None) -> set[str]:
    """Return the placeholder names referenced by ``template``."""

    if not template:
        return set()
    return set(PLACEHOLDER.findall(template))


def json_escape(value: str) -> str:
    """Escape ``value`` for use inside a JSON string literal."""

    return json.dumps(str(value))[1:-1]


def substitute(template: str, params: Mapping[str, str], escape: Callable[[str], str] = str) -> str:
    """Replace every ``{{name}}`` token in ``template`` with ``escape(params[name])``."""

    missing = placeholders(template) - set(params)
    if missing:
        raise MissingParameter(missing)
    return PLACEHOLDER.sub(lambda match: escape(str(params[match.group(1)])), template)


def render(definition: RequestDefinition, params: Mapping[str, str]) -> RenderedRequest:
    """Produce a concrete request from ``definition`` and ``params``.

    Body templates are JSON, so values substituted there are JSON-escaped;
    path values are inserted as given. Raises ``MissingParameter`` naming
    every unresolved placeholder across both path and body.
    """

    missing = (placeholders(definition.path_template) | placeholders(definition.body_template)) - set(params)
    if missing:
        raise MissingParameter(missing)
    path = substitute(definition.path_template, params)
    body = substitute(definition.body_template, params, json_escape) if definition.body_template is not None else None
    return RenderedRequest(method=definition.method, path=path, body=body)


CREATE_REPO_BODY = """{
    "type": "s3",
    "settings": {
        "bucket": "{{bucket_name}}",
        "base_path": "{{base_path}}",
        "region": "{{region}}"
    }
}"""

CHECK_REPO = RequestDefinition("GET", "_snapshot/{{repo_name}}")
CREATE_REPO = RequestDefinition("PUT", "_snapshot/{{repo_name}}", CREATE_REPO_BODY)
CREATE_SNAPSHOT = RequestDefinition("PUT", "_snapshot/{{repo_name}}/{{snapshot_name}}?wait_for_completion=true")
LIST_SNAPSHOTS = RequestDefinition("GET", "_snapshot/{{repo_name}}/_all")
RESTORE_SNAPSHOT = RequestDefinition("POST", "_snapshot/{{repo_name}}/{{snapshot_name}}/_restore")
DELETE_SNAPSHOT = RequestDefinition("DELETE", "_snapshot/{{repo_name}}/{{snapshot_name}}")

# Master election lookup
LOCAL_NODE = RequestDefinition("GET", "_nodes/_local")
MASTER_NODE = RequestDefinition("GET", "_cluster/state/master_node")


__all__ = [
    "RequestDefinition",
    "RenderedRequest",
    "placeholders",
    "substitute",
    "json_escape",
    "render",
    "CHECK_REPO",
    "CREATE_REPO",
    "CREATE_SNAPSHOT",
    "LIST_SNAPSHOTS",
    "RESTORE_SNAPSHOT",
    "DELETE_SNAPSHOT",
    "LOCAL_NODE",
    "MASTER_NODE",
]
