"""Operation classification and tag grouping.

:func:`classify` reduces an operation to the facts the emitters need: its
path parameters, its query parameters, its request body (if any) and the
shape of its success payload. :func:`group_operations` applies the active
profile's tag filter and partitions what is left by primary tag.

Response payloads follow the ``{data: ...}`` envelope convention. If the
success schema (or, for ``allOf`` schemas, any of its parts) has a ``data``
property, the payload is that property; otherwise the whole schema is the
payload. Both branches are kept, since real descriptions mix enveloped and
bare responses.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from apibind.casing import member_access, string_literal
from apibind.exceptions import EmptyProfile, NoSuccessResponse
from apibind.models import (
    APIOperation,
    APIParameter,
    HTTPMethod,
    ParameterLocation,
    ProfileSelection,
    ResponseInfo,
)
from apibind.schema.nodes import (
    ArrayNode,
    ComposedNode,
    ObjectNode,
    OpaqueNode,
    SchemaNode,
)
from apibind.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r"\{([^}]+)\}")
_WHITESPACE = re.compile(r"\s+")

JSON_CONTENT = "application/json"
MULTIPART_CONTENT = "multipart/form-data"


class BodyKind(str, enum.Enum):
    """How a request body is serialized by the generated function."""

    JSON = "json"
    MULTIPART = "multipart"


_BODY_CONTENT_TYPES = (
    (JSON_CONTENT, BodyKind.JSON),
    (MULTIPART_CONTENT, BodyKind.MULTIPART),
)


class ResponseKind(str, enum.Enum):
    """Shape of a success payload.

    * ``opaque`` -- nothing usable was declared; rendered as ``any``.
    * ``object`` -- an object or ``allOf`` schema, declared as a class.
    * ``sequence`` -- an array; ``payload`` is the item schema.
    * ``passthrough`` -- a reference, enum or primitive used as-is.
    """

    OPAQUE = "opaque"
    OBJECT = "object"
    SEQUENCE = "sequence"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class ResponseShape:
    kind: ResponseKind
    payload: SchemaNode = field(default_factory=OpaqueNode)


OPAQUE_RESPONSE = ResponseShape(ResponseKind.OPAQUE)


@dataclass(frozen=True)
class RequestBody:
    """The selected request body of an operation.

    ``needs_dto`` is set for inline object and ``allOf`` bodies, which get a
    generated ``<Fn>DTO`` class; any other schema is used through its
    resolved type.
    """

    kind: BodyKind
    schema: SchemaNode
    needs_dto: bool


@dataclass(frozen=True)
class OperationShape:
    """Everything the emitters need to know about one operation."""

    operation: APIOperation
    path_params: tuple[str, ...] = ()
    query_params: tuple[APIParameter, ...] = ()
    query_nodes: tuple[SchemaNode, ...] = ()
    body: Optional[RequestBody] = None
    response: ResponseShape = OPAQUE_RESPONSE

    @property
    def path(self) -> str:
        return self.operation.path

    @property
    def method(self) -> HTTPMethod:
        return self.operation.method

    @property
    def is_query(self) -> bool:
        return self.operation.method is HTTPMethod.GET

    @property
    def has_path_params(self) -> bool:
        return bool(self.path_params)

    @property
    def has_query_params(self) -> bool:
        return bool(self.query_params)

    @property
    def has_body(self) -> bool:
        return self.body is not None

    @property
    def body_content_kind(self) -> Optional[BodyKind]:
        return self.body.kind if self.body is not None else None


@dataclass
class TagGroup:
    """Operations emitted into one module, keyed by primary tag."""

    tag: str
    operations: list[APIOperation] = field(default_factory=list)

    @property
    def module_name(self) -> str:
        return self.tag.lower()


# ---------------------------------------------------------------------------
# Parameters and bodies
# ---------------------------------------------------------------------------


def path_params(path: str) -> list[str]:
    """Names of the ``{param}`` placeholders in *path*, in order."""
    return _PATH_PARAM.findall(path)


def query_params(operation: APIOperation) -> list[APIParameter]:
    """Query parameters of a GET operation; empty for every other method."""
    if operation.method is not HTTPMethod.GET:
        return []
    return [p for p in operation.parameters if p.location == ParameterLocation.QUERY]


def select_request_body(
    operation: APIOperation,
) -> Optional[tuple[BodyKind, dict[str, Any]]]:
    """Pick the request body schema, preferring JSON over multipart.

    Returns ``None`` for methods without a body, for operations that declare
    none, and for bodies whose only content types are unsupported or carry
    no schema.
    """
    if not operation.method.has_body or operation.request_body is None:
        return None
    content = operation.request_body.content
    for content_type, kind in _BODY_CONTENT_TYPES:
        schema = content.get(content_type)
        if schema:
            return kind, schema
    return None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def select_success_response(operation: APIOperation) -> ResponseInfo:
    """Return the ``200`` response, else ``201``, else the first ``2xx``.

    Raises:
        NoSuccessResponse: If the operation declares no 2xx response.
    """
    for code in ("200", "201"):
        response = operation.response_for(code)
        if response is not None:
            return response
    for response in operation.responses:
        if response.status_code.startswith("2"):
            return response
    raise NoSuccessResponse(
        f"{operation.method.value.upper()} {operation.path} declares no 2xx response"
    )


def response_shape(node: SchemaNode, registry: SchemaRegistry) -> ResponseShape:
    """Locate the payload of a success response schema.

    * object with a ``data`` property: the payload is ``data``;
    * ``allOf``: every part (references followed) is searched for ``data``
      and the last one found wins;
    * otherwise the whole schema is the payload.
    """
    target = registry.follow(node)

    if isinstance(target, ObjectNode):
        data = target.get_property("data")
        if data is not None:
            return payload_shape(data)

    elif isinstance(target, ComposedNode):
        data = None
        for part in target.parts:
            part_target = registry.follow(part)
            if isinstance(part_target, ObjectNode) and part_target.get_property("data") is not None:
                data = part_target.get_property("data")
        if data is not None:
            return payload_shape(data)

    return payload_shape(node)


def payload_shape(node: SchemaNode) -> ResponseShape:
    # A bare ``{type: object}`` has nothing to declare.
    if isinstance(node, ObjectNode) and not node.properties:
        return OPAQUE_RESPONSE
    if isinstance(node, (ObjectNode, ComposedNode)):
        return ResponseShape(ResponseKind.OBJECT, node)
    if isinstance(node, ArrayNode):
        return ResponseShape(ResponseKind.SEQUENCE, node.items)
    if isinstance(node, OpaqueNode):
        return OPAQUE_RESPONSE
    return ResponseShape(ResponseKind.PASSTHROUGH, node)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(operation: APIOperation, registry: SchemaRegistry) -> OperationShape:
    """Classify one operation.

    Every schema the operation uses is parsed through *registry*, so a
    dangling ``$ref`` in a parameter, body or response is fatal.

    A missing success response is not: it is logged and the response shape
    degrades to ``opaque``.
    """
    where = f"{operation.method.value.upper()} {operation.path}"

    queries = query_params(operation)
    query_nodes = tuple(
        registry.parse(param.schema_, where=f"{where} query '{param.name}'")
        for param in queries
    )

    body: Optional[RequestBody] = None
    selected = select_request_body(operation)
    if selected is not None:
        kind, raw = selected
        node = registry.parse(raw, where=f"{where} requestBody")
        needs_dto = isinstance(node, ComposedNode) or (
            isinstance(node, ObjectNode) and bool(node.properties)
        )
        body = RequestBody(kind=kind, schema=node, needs_dto=needs_dto)

    try:
        response = select_success_response(operation)
    except NoSuccessResponse as exc:
        logger.debug("%s; using an opaque response type", exc)
        shape = OPAQUE_RESPONSE
    else:
        raw_response = response.json_schema
        if raw_response:
            node = registry.parse(raw_response, where=f"{where} response {response.status_code}")
            shape = response_shape(node, registry)
        else:
            shape = OPAQUE_RESPONSE

    return OperationShape(
        operation=operation,
        path_params=tuple(path_params(operation.path)),
        query_params=tuple(queries),
        query_nodes=query_nodes,
        body=body,
        response=shape,
    )


# ---------------------------------------------------------------------------
# Grouping and cache keys
# ---------------------------------------------------------------------------


def is_selected(operation: APIOperation, selection: ProfileSelection) -> bool:
    """Whether *operation* belongs to the run of *selection*.

    An operation is kept when any of its tags is in the allow-list, or when
    its second tag names the profile (``App`` for profile ``app``).
    """
    if any(tag in selection.allow_list for tag in operation.tags):
        return True
    return operation.owner_tag is not None and operation.owner_tag == selection.owner_marker


def group_operations(
    operations: list[APIOperation], selection: ProfileSelection
) -> list[TagGroup]:
    """Filter *operations* for the active profile and group them by primary tag.

    Groups appear in order of first occurrence; operations keep document
    order within their group.

    Raises:
        EmptyProfile: If no operation survives the filter.
    """
    groups: dict[str, TagGroup] = {}
    skipped = 0
    for operation in operations:
        if not is_selected(operation, selection):
            skipped += 1
            continue
        tag = operation.primary_tag
        if tag not in groups:
            groups[tag] = TagGroup(tag)
        groups[tag].operations.append(operation)

    logger.debug(
        "Profile %s: kept %d operation(s) in %d group(s), skipped %d",
        selection.name,
        len(operations) - skipped,
        len(groups),
        skipped,
    )
    if not groups:
        raise EmptyProfile(selection.name, selection.allow_list)
    return list(groups.values())


def cache_label(operation: APIOperation) -> str:
    """Summary (or operationId) lower-cased with whitespace runs as ``_``."""
    label = operation.summary or operation.operation_id or "unknown"
    return _WHITESPACE.sub("_", label.lower())


def cache_key(operation: APIOperation) -> list[str]:
    """The query key of a GET binding, as TypeScript expressions.

    ``['<tag>', '<label>', pathParams.<p>..., queryParams?.<q>...]``
    """
    parts = [
        string_literal(operation.primary_tag.lower()),
        string_literal(cache_label(operation)),
    ]
    parts.extend(member_access("pathParams", name) for name in path_params(operation.path))
    parts.extend(
        member_access("queryParams", param.name, optional=True)
        for param in query_params(operation)
    )
    return parts


def invalidation_keys(operation: APIOperation) -> list[str]:
    """One lower-cased tag literal per operation tag (``default`` if untagged)."""
    tags = operation.tags or ["default"]
    return [string_literal(tag.lower()) for tag in tags]
