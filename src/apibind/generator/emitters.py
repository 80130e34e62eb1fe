"""Render TypeScript modules from the classified operation model.

Three artifacts are produced:

* ``types.ts`` -- every enum of the run, then one declaration per named
  schema (:func:`render_type_module`).
* ``<tag>.ts`` -- one module per tag group (:func:`render_group_module`),
  emitted in three phases: per-operation types, request functions, and
  react-query hooks.
* ``index.ts`` -- re-exports of the above (:func:`render_index`).

Each phase of a group module names its operations with its own
:class:`~apibind.generator.naming.NameRegistry`. The phase functions
(:func:`emit_operation_types`, :func:`emit_functions`, :func:`emit_hooks`)
take the registry as an argument so they can be exercised one at a time.

Text layout lives in the Jinja2 templates next to this module; the code here
only builds the view objects the templates iterate over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from apibind.casing import (
    enum_member,
    is_identifier,
    member_access,
    string_literal,
)
from apibind.generator.classifier import (
    OperationShape,
    ResponseKind,
    TagGroup,
    cache_key,
    classify,
    invalidation_keys,
)
from apibind.generator.context import GenerationContext
from apibind.generator.naming import GeneratedIdentifier, NameRegistry, claim_function_name
from apibind.models import DEFAULT_RUNTIME_MODULE
from apibind.schema.nodes import (
    ComposedNode,
    ObjectNode,
    SchemaNode,
)
from apibind.schema.resolver import TypeResolver

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

VALIDATOR_IMPORTS = (
    "IsString",
    "IsNumber",
    "IsBoolean",
    "IsArray",
    "IsObject",
    "IsOptional",
    "IsEnum",
    "ValidateNested",
)


# ---------------------------------------------------------------------------
# View objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldView:
    name: str
    type: str
    validator: str
    optional: bool = False


@dataclass(frozen=True)
class Declaration:
    """A class (``fields``/``extends``) or a type alias (``alias``)."""

    name: str
    fields: tuple[FieldView, ...] = ()
    extends: tuple[str, ...] = ()
    alias: Optional[str] = None


@dataclass(frozen=True)
class EnumView:
    name: str
    members: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class FunctionView:
    name: str
    title: str
    signature: str
    payload: str
    url: str
    http_method: str
    body_kind: Optional[str] = None
    has_query: bool = False


@dataclass(frozen=True)
class HookView:
    name: str
    title: str
    signature: str
    function_name: str
    is_query: bool
    call_args: tuple[str, ...] = ()
    mutation_params: tuple[str, ...] = ()
    query_key: tuple[str, ...] = ()
    invalidates: tuple[str, ...] = ()


@dataclass
class GroupModule:
    """A rendered tag group module plus the names it exports."""

    group: TagGroup
    text: str
    function_names: list[str] = field(default_factory=list)
    hook_names: list[str] = field(default_factory=list)

    @property
    def artifact_name(self) -> str:
        return f"{self.group.module_name}.ts"


# ---------------------------------------------------------------------------
# Jinja2 environment
# ---------------------------------------------------------------------------


def create_environment() -> Environment:
    """Create the Jinja2 environment for the ``.ts.j2`` templates.

    Autoescape is disabled for TypeScript output. Block trimming and lstrip
    are enabled so block tags do not leave blank lines behind.
    """
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("ts.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def _property_name(name: str) -> str:
    return name if is_identifier(name) else string_literal(name)


def object_fields(
    node: ObjectNode, resolver: TypeResolver, qualified: bool
) -> tuple[FieldView, ...]:
    """One field per property; optional unless listed in ``required``."""
    fields = []
    for name, prop in node.properties:
        resolved = resolver.resolve(prop, qualified)
        fields.append(
            FieldView(
                name=_property_name(name),
                type=resolved.expr,
                validator=resolved.validator,
                optional=not node.is_required(name),
            )
        )
    return tuple(fields)


def declare(
    name: str, node: SchemaNode, resolver: TypeResolver, qualified: bool
) -> Declaration:
    """Declare *node* under *name*.

    Objects become classes. ``allOf`` schemas become classes extending their
    reference parts, with the fields of the final inline object. Anything
    else becomes a type alias.
    """
    if isinstance(node, ObjectNode):
        return Declaration(name, fields=object_fields(node, resolver, qualified))
    if isinstance(node, ComposedNode):
        own = node.own_fields
        return Declaration(
            name,
            fields=object_fields(own, resolver, qualified) if own is not None else (),
            extends=tuple(resolver.qualify(target, qualified) for target in node.supertypes),
        )
    return Declaration(name, alias=resolver.type_of(node, qualified))


def _is_declarable(node: SchemaNode) -> bool:
    return isinstance(node, ComposedNode) or (
        isinstance(node, ObjectNode) and bool(node.properties)
    )


# ---------------------------------------------------------------------------
# Shared type module
# ---------------------------------------------------------------------------


def _enum_members(values: tuple[str, ...] | list[str]) -> tuple[tuple[str, str], ...]:
    """Member key and literal per value; clashing keys get a numeric suffix."""
    members: list[tuple[str, str]] = []
    taken: set[str] = set()
    for value in values:
        base = key = enum_member(value)
        suffix = 0
        while key in taken:
            suffix += 1
            key = f"{base}{suffix}"
        taken.add(key)
        members.append((key, string_literal(value)))
    return tuple(members)


def render_type_module(context: GenerationContext, env: Optional[Environment] = None) -> str:
    """Render ``types.ts`` for every named schema and enum of the run."""
    env = env or create_environment()
    enums = [
        EnumView(
            name=descriptor.name,
            members=_enum_members(descriptor.values),
        )
        for descriptor in context.enums
    ]
    declarations = [
        declare(name, node, context.resolver, qualified=False)
        for name, node in context.schemas.items()
    ]
    return env.get_template("types.ts.j2").render(
        validators=VALIDATOR_IMPORTS,
        enums=enums,
        declarations=declarations,
    )


# ---------------------------------------------------------------------------
# Group module phases
# ---------------------------------------------------------------------------


def _claim(shape: OperationShape, registry: NameRegistry) -> GeneratedIdentifier:
    return claim_function_name(shape.path, shape.method, shape.operation, registry)


def _payload_type(shape: OperationShape, ident: GeneratedIdentifier, resolver: TypeResolver) -> str:
    """The concrete payload type a request function resolves to."""
    response = shape.response
    if response.kind is ResponseKind.OPAQUE:
        return "any"
    if response.kind is ResponseKind.OBJECT:
        return ident.response_type_name
    if response.kind is ResponseKind.SEQUENCE:
        if _is_declarable(response.payload):
            return f"{ident.response_item_type_name}[]"
        return f"{resolver.type_of(response.payload)}[]"
    return resolver.type_of(response.payload)


def _body_type(shape: OperationShape, ident: GeneratedIdentifier, resolver: TypeResolver) -> Optional[str]:
    if shape.body is None:
        return None
    if shape.body.needs_dto:
        return ident.dto_type_name
    return resolver.type_of(shape.body.schema)


def emit_operation_types(
    shapes: list[OperationShape], context: GenerationContext, registry: NameRegistry
) -> list[Declaration]:
    """Phase 1: ``PathParams``, ``QueryParams``, ``DTO`` and response types."""
    resolver = context.resolver
    declarations: list[Declaration] = []
    for shape in shapes:
        ident = _claim(shape, registry)

        if shape.has_path_params:
            declarations.append(
                Declaration(
                    ident.path_params_type_name,
                    fields=tuple(
                        FieldView(_property_name(name), "string", "@IsString()")
                        for name in shape.path_params
                    ),
                )
            )

        if shape.has_query_params:
            fields = []
            for param, node in zip(shape.query_params, shape.query_nodes):
                resolved = resolver.resolve(node)
                fields.append(
                    FieldView(
                        name=_property_name(param.name),
                        type=resolved.expr,
                        validator=resolved.validator,
                        optional=not param.required,
                    )
                )
            declarations.append(Declaration(ident.query_params_type_name, fields=tuple(fields)))

        if shape.body is not None and shape.body.needs_dto:
            declarations.append(declare(ident.dto_type_name, shape.body.schema, resolver, qualified=True))

        declarations.extend(_response_declarations(shape, ident, resolver))
    return declarations


def _response_declarations(
    shape: OperationShape, ident: GeneratedIdentifier, resolver: TypeResolver
) -> list[Declaration]:
    response = shape.response
    name = ident.response_type_name
    if response.kind is ResponseKind.OPAQUE:
        return [Declaration(name, alias="any")]
    if response.kind is ResponseKind.OBJECT:
        return [declare(name, response.payload, resolver, qualified=True)]
    if response.kind is ResponseKind.SEQUENCE and _is_declarable(response.payload):
        item = ident.response_item_type_name
        return [
            declare(item, response.payload, resolver, qualified=True),
            Declaration(name, alias=f"{item}[]"),
        ]
    return [Declaration(name, alias=_payload_type(shape, ident, resolver))]


def _url_expression(shape: OperationShape) -> str:
    if not shape.has_path_params:
        return string_literal(shape.path)
    url = shape.path
    for name in shape.path_params:
        url = url.replace("{%s}" % name, "${%s}" % member_access("pathParams", name))
    return f"`{url}`"


def _title(shape: OperationShape, fallback: str) -> str:
    title = shape.operation.summary or shape.operation.operation_id or fallback
    return title.replace("*/", "*\\/")


def emit_functions(
    shapes: list[OperationShape], context: GenerationContext, registry: NameRegistry
) -> list[FunctionView]:
    """Phase 2: one ``async`` request function per operation.

    Parameters come in a fixed order: ``pathParams``, ``data``,
    ``queryParams`` and ``noAuthorize``.
    """
    resolver = context.resolver
    functions: list[FunctionView] = []
    for shape in shapes:
        ident = _claim(shape, registry)
        params = []
        if shape.has_path_params:
            params.append(f"pathParams: {ident.path_params_type_name}")
        body_type = _body_type(shape, ident, resolver)
        if body_type is not None:
            params.append(f"data: {body_type}")
        if shape.has_query_params:
            params.append(f"queryParams?: {ident.query_params_type_name}")
        params.append("noAuthorize?: boolean")

        functions.append(
            FunctionView(
                name=ident.function_name,
                title=_title(shape, ident.function_name),
                signature=",\n".join(f"  {param}" for param in params),
                payload=_payload_type(shape, ident, resolver),
                url=_url_expression(shape),
                http_method=shape.method.value.upper(),
                body_kind=shape.body_content_kind.value if shape.body is not None else None,
                has_query=shape.has_query_params,
            )
        )
    return functions


def emit_hooks(
    shapes: list[OperationShape], context: GenerationContext, registry: NameRegistry
) -> list[HookView]:
    """Phase 3: ``useQuery`` hooks for GET, ``useMutation`` hooks otherwise."""
    resolver = context.resolver
    hooks: list[HookView] = []
    for shape in shapes:
        ident = _claim(shape, registry)
        response_type = f"HTTPResponse<{ident.response_type_name}>"
        params = []
        call_args = []
        if shape.has_path_params:
            params.append(f"pathParams: {ident.path_params_type_name}")
            call_args.append("pathParams")

        if shape.is_query:
            if shape.has_query_params:
                params.append(f"queryParams?: {ident.query_params_type_name}")
                call_args.append("queryParams")
            params.append(f"options?: UseQueryOptions<{response_type}, Error>")
            hooks.append(
                HookView(
                    name=ident.hook_name,
                    title=_title(shape, ident.hook_name),
                    signature=",\n".join(f"  {param}" for param in params),
                    function_name=ident.function_name,
                    is_query=True,
                    call_args=tuple(call_args),
                    query_key=tuple(cache_key(shape.operation)),
                )
            )
            continue

        body_type = _body_type(shape, ident, resolver)
        mutation_params: tuple[str, ...] = ()
        if body_type is not None:
            mutation_params = ("data",)
            call_args.append("data")
        params.append(
            f"options?: UseMutationOptions<{response_type}, Error, {body_type or 'any'}>"
        )
        hooks.append(
            HookView(
                name=ident.hook_name,
                title=_title(shape, ident.hook_name),
                signature=",\n".join(f"  {param}" for param in params),
                function_name=ident.function_name,
                is_query=False,
                call_args=tuple(call_args),
                mutation_params=mutation_params,
                invalidates=tuple(invalidation_keys(shape.operation)),
            )
        )
    return hooks


def render_group_module(
    group: TagGroup,
    context: GenerationContext,
    runtime_module: str = DEFAULT_RUNTIME_MODULE,
    env: Optional[Environment] = None,
) -> GroupModule:
    """Render one tag group module.

    Operations are classified once; each of the three phases then names
    them with a fresh :class:`~apibind.generator.naming.NameRegistry`.
    """
    env = env or create_environment()
    shapes = [classify(operation, context.schemas) for operation in group.operations]

    registry = NameRegistry()
    declarations = emit_operation_types(shapes, context, registry)
    registry.clear()
    functions = emit_functions(shapes, context, registry)
    registry.clear()
    hooks = emit_hooks(shapes, context, registry)

    text = env.get_template("group.ts.j2").render(
        runtime_module=runtime_module,
        validators=VALIDATOR_IMPORTS,
        declarations=declarations,
        functions=functions,
        hooks=hooks,
    )
    logger.debug(
        "Rendered group %s: %d operation(s), %d declaration(s)",
        group.tag,
        len(shapes),
        len(declarations),
    )
    return GroupModule(
        group=group,
        text=text,
        function_names=[fn.name for fn in functions],
        hook_names=[hook.name for hook in hooks],
    )


def render_index(module_names: list[str], env: Optional[Environment] = None) -> str:
    """Render ``index.ts`` re-exporting ``types`` and every group module."""
    env = env or create_environment()
    return env.get_template("index.ts.j2").render(modules=module_names)
