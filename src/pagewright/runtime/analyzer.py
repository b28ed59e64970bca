"""Schema analysis and structural validation.

- analyze_schema(): statistics and dependency lists in one traversal
- validate_schema(): structural checks reported all at once
- extract_data_dependencies(): data keys a schema reads through bindings
- compute_schema_hash(): stable content digest of a schema
"""

from __future__ import annotations

import hashlib
import re

from pagewright.runtime.results import (
    HandlerRef,
    SchemaAnalysis,
    ValidationIssue,
    ValidationResult,
)
from pagewright.runtime.schema import Binding, Schema
from pagewright.runtime.tree import iter_nodes
from pagewright.runtime.types import BindingType, parse_kind

__all__ = [
    "analyze_schema",
    "validate_schema",
    "extract_data_dependencies",
    "compute_schema_hash",
]

_SEMVER_PATTERN = re.compile(r"^\d+\.\d+\.\d+$")


def analyze_schema(schema: Schema) -> SchemaAnalysis:
    """Walk the schema once and summarize it.

    Args:
        schema: Schema to analyze. A schema without a root yields an empty
            analysis.

    Returns:
        SchemaAnalysis with distinct type tags (first-seen order), flattened
        bindings, handler references, conditional and loop node ids, the
        maximum depth (root = 0) and the total node count.
    """
    components: dict[str, None] = {}
    bindings: list[Binding] = []
    handlers: list[HandlerRef] = []
    conditional: list[str] = []
    loops: list[str] = []
    max_depth = 0
    total = 0

    if schema.root is not None:
        for visit in iter_nodes(schema.root):
            node = visit.node
            total += 1
            max_depth = max(max_depth, visit.depth)
            components.setdefault(node.type, None)
            bindings.extend(node.bindings)
            handlers.extend(HandlerRef(node.id, h.event, h) for h in node.events)
            if node.condition is not None:
                conditional.append(node.id)
            if node.loop is not None:
                loops.append(node.id)

    return SchemaAnalysis(
        component_dependencies=tuple(components),
        data_bindings=tuple(bindings),
        event_handlers=tuple(handlers),
        conditional_nodes=tuple(conditional),
        loop_nodes=tuple(loops),
        max_depth=max_depth,
        total_nodes=total,
    )


def validate_schema(schema: Schema) -> ValidationResult:
    """Check a schema's structure and report every problem found.

    Checks:
        - root, version and id are present
        - version has the form MAJOR.MINOR.PATCH
        - node ids are unique across the whole tree, slots included
    """
    errors: list[ValidationIssue] = []

    if schema.root is None:
        errors.append(ValidationIssue("missing_root", "Schema must have a root node"))
    if not schema.version:
        errors.append(ValidationIssue("missing_version", "Schema must have a version"))
    elif not _SEMVER_PATTERN.match(schema.version):
        errors.append(
            ValidationIssue(
                "invalid_version",
                f"Schema version '{schema.version}' must look like 1.0.0",
                "version",
            )
        )
    if not schema.id:
        errors.append(ValidationIssue("missing_id", "Schema must have an id"))

    if schema.root is not None:
        first_seen: dict[str, str] = {}
        for visit in iter_nodes(schema.root):
            node_id = visit.node.id
            if node_id in first_seen:
                errors.append(
                    ValidationIssue(
                        "duplicate_id",
                        f"Duplicate node ID: {node_id} "
                        f"(first used at {first_seen[node_id]})",
                        visit.path,
                    )
                )
            else:
                first_seen[node_id] = visit.path

    return ValidationResult(valid=not errors, errors=tuple(errors))


def extract_data_dependencies(schema: Schema) -> list[str]:
    """Return the data keys read by the schema's bindings, distinct and ordered.

    datasource bindings contribute their raw path, state bindings
    ``"state:<path>"`` and variable bindings ``"variable:<path>"``. Other
    binding kinds contribute nothing.
    """
    dependencies: dict[str, None] = {}
    if schema.root is None:
        return []
    for visit in iter_nodes(schema.root):
        for binding in visit.node.bindings:
            if not isinstance(binding.source, str):
                continue
            kind = parse_kind(BindingType, binding.type)
            if kind is BindingType.DATASOURCE:
                dependencies.setdefault(binding.source, None)
            elif kind is BindingType.STATE:
                dependencies.setdefault(f"state:{binding.source}", None)
            elif kind is BindingType.VARIABLE:
                dependencies.setdefault(f"variable:{binding.source}", None)
    return list(dependencies)


def compute_schema_hash(schema: Schema) -> str:
    """Return a SHA-256 hex digest of the schema's canonical JSON form."""
    return hashlib.sha256(schema.to_json().encode("utf-8")).hexdigest()
