"""Operation compiler.

Walks every operation of a parsed spec, in path-then-method declaration
order, and compiles each into a :class:`MethodDescriptor`. Operations that
cannot be compiled become :class:`Skip` records; only a spec without a
``paths`` mapping is fatal.
"""

import asyncio

from api_client_gen.models.resolver import ModelsResolver, NoOpModelsResolver
from api_client_gen.parser.base import IssueSeverity, Param, SecurityScheme, ValidationIssue
from api_client_gen.parser.schema import is_generic
from api_client_gen.parser.security import (
    SecurityRequirement,
    effective_security,
    parse_security_requirements,
    parse_security_schemes,
)
from api_client_gen.parser.swagger import deref, get_paths, iter_operations, json_pointer

from .content import BODY_METHODS, has_request_body, plan_request_body
from .descriptor import (
    CompilationReport,
    MethodDescriptor,
    ParameterSpec,
    Skip,
    SkipReason,
)
from .naming import build_path_template, sanitize_method_name
from .parameters import (
    CollectedParameters,
    ParamKey,
    assign_arg_names,
    check_parameters,
    collect_parameters,
    degrade_parameter,
    merge_parameters,
    partition,
)
from .responses import classify_response
from .security import resolve_security
from .serializer import plan_encoding

PAGE_PARAM_NAMES = {"page", "offset"}
LIMIT_PARAM_NAMES = {"limit", "per_page", "page_size"}


def is_paginated(query_params: list[Param]) -> bool:
    """Both a page/offset and a limit/per_page/page_size parameter are present."""
    names = {p.name.lower() for p in query_params}
    return bool(names & PAGE_PARAM_NAMES) and bool(names & LIMIT_PARAM_NAMES)


class OperationCompiler:
    """Compiles spec operations into method descriptors.

    Args:
        resolver: Models resolver consulted for ``$ref`` bodies and
            responses. Defaults to :class:`NoOpModelsResolver`.
    """

    def __init__(self, resolver: ModelsResolver | None = None):
        self.resolver = resolver or NoOpModelsResolver()

    async def compile(self, doc: dict) -> CompilationReport:
        """Compile every supported operation of ``doc``.

        Raises:
            SpecError: ``doc`` has no ``paths`` mapping.
        """
        paths = get_paths(doc)
        report = CompilationReport()
        if not paths:
            report.issues.append(_warning("spec declares no paths", "/paths"))

        schemes = parse_security_schemes(doc)
        global_security = parse_security_requirements(doc.get("security"))
        path_level: dict[str, CollectedParameters] = {}

        for path, path_item, method, operation in iter_operations(doc):
            if path not in path_level:
                path_level[path] = collect_parameters(path_item.get("parameters"), doc)
                report.issues.extend(_collection_issues(path_level[path], json_pointer("paths", path)))

            pointer = json_pointer("paths", path, method)
            op_level = collect_parameters(operation.get("parameters"), doc)
            report.issues.extend(_collection_issues(op_level, pointer))

            result = await self.compile_operation(
                doc,
                path,
                method,
                operation,
                merge_parameters(path_level[path].params, op_level.params),
                schemes,
                effective_security(global_security, operation),
            )

            if isinstance(result, Skip):
                report.skipped.append(result)
                report.issues.append(_warning(f"operation skipped ({result.reason.value}): {result.detail}", pointer))
                continue

            report.methods.append(result)
            for import_path in await self._imports_for(result):
                if import_path not in report.imports:
                    report.imports.append(import_path)

        return report

    async def compile_operation(
        self,
        doc: dict,
        path: str,
        method: str,
        operation: dict,
        params: dict[ParamKey, Param],
        schemes: dict[str, SecurityScheme],
        security: list[SecurityRequirement],
    ) -> MethodDescriptor | Skip:
        """Compile one operation whose parameters are already merged."""

        def skip(reason: SkipReason, detail: str) -> Skip:
            return Skip(http_method=method.upper(), path=path, reason=reason, detail=detail)

        operation_id = operation.get("operationId")
        if not isinstance(operation_id, str) or not operation_id:
            return skip(SkipReason.MISSING_OPERATION_ID, "operation has no operationId")

        name = sanitize_method_name(operation_id)
        if name is None:
            return skip(SkipReason.INVALID_OPERATION_ID, f'"{operation_id}" is not a valid method name')

        problem = check_parameters(params)
        if problem is not None:
            return skip(*problem)

        named = assign_arg_names([degrade_parameter(p) for p in params.values()])
        groups = partition({p.key: p for p in named})

        template = build_path_template(path, groups["path"])
        if template is None:
            declared = ", ".join(p.name for p in groups["path"]) or "none"
            return skip(SkipReason.PATH_MISMATCH, f"placeholders in {path} do not match path parameters ({declared})")

        request_body_node = deref(doc, operation.get("requestBody"))
        has_body = has_request_body(request_body_node)
        if has_body and method not in BODY_METHODS:
            return skip(SkipReason.UNEXPECTED_REQUEST_BODY, f"{method.upper()} must not declare a request body")
        if method in BODY_METHODS and not has_body:
            return skip(SkipReason.MISSING_REQUEST_BODY, f"{method.upper()} requires a request body")

        request_body = None
        if has_body:
            request_body = await plan_request_body(request_body_node, self.resolver)

        response = await classify_response(operation.get("responses"), self.resolver, doc)
        security_plan = resolve_security(security, schemes, (p.name for p in groups["query"]))

        def specs(location: str) -> list[ParameterSpec]:
            return [
                ParameterSpec(param=p, encoding=plan_encoding(p), generic=is_generic(p.param_type))
                for p in groups[location]
            ]

        tags = operation.get("tags")
        return MethodDescriptor(
            name=name,
            operation_id=operation_id,
            http_method=method.upper(),
            path=template,
            path_params=specs("path"),
            query_params=specs("query"),
            header_params=specs("header"),
            cookie_params=specs("cookie"),
            request_body=request_body,
            response=response,
            security=security_plan,
            paginated=is_paginated(groups["query"]),
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            deprecated=operation.get("deprecated") is True,
        )

    async def _imports_for(self, descriptor: MethodDescriptor) -> list[str]:
        """Import paths of the response and request body model types, in that order."""
        model_types = [descriptor.response.model_type]
        if descriptor.request_body is not None:
            model_types.append(descriptor.request_body.model_type)

        imports = []
        for model_type in model_types:
            if model_type is None:
                continue
            import_path = await self.resolver.get_import_path(model_type)
            if import_path is not None:
                imports.append(import_path)
        return imports


def compile_spec(doc: dict, resolver: ModelsResolver | None = None) -> CompilationReport:
    """Synchronous wrapper around :meth:`OperationCompiler.compile`."""
    return asyncio.run(OperationCompiler(resolver).compile(doc))


def _collection_issues(collected: CollectedParameters, pointer: str) -> list[ValidationIssue]:
    issues = [
        _warning(f'parameter "{name}" has unsupported location "{location}" and was dropped', pointer)
        for name, location in collected.dropped
    ]
    issues += [
        _warning(f'path parameter "{name}" is declared required: false, treated as required', pointer)
        for name in collected.forced_required
    ]
    return issues


def _warning(message: str, path: str) -> ValidationIssue:
    return ValidationIssue(severity=IssueSeverity.WARNING, message=message, path=path)


def _text(value) -> str:
    return value if isinstance(value, str) else ""
