"""Entity metadata inspection command for Strata CLI."""

from __future__ import annotations

import argparse
import importlib
import json
from typing import Any

from core.errors import StrataFormatError
from mapper.client import StrataClient
from schema.entity_metadata import EntityMetadata


def add_describe_command(subparsers: Any) -> None:
    """Register describe subcommand."""
    parser = subparsers.add_parser(
        "describe",
        help="Print the storage metadata of an entity type as JSON",
    )
    parser.add_argument("entity", help="Entity type reference in module:Type form")


def run_describe_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Extract and print entity metadata."""
    entity_type = load_entity_type(args.entity)
    metadata = client.schemas.metadata(entity_type)
    print(json.dumps(describe_metadata(metadata), indent=2))
    return 0


def load_entity_type(reference: str) -> type:
    """Import an entity type from a ``module:Type`` reference.

    Args:
        reference: Module path and attribute path separated by a colon.

    Returns:
        The referenced class.

    Raises:
        StrataFormatError: If the reference is malformed or cannot be imported.
    """
    module_name, separator, attribute_path = reference.partition(":")
    if not separator or not module_name or not attribute_path:
        raise StrataFormatError(
            f"Invalid entity reference '{reference}'. Use module:Type, e.g. shop.models:Item."
        )
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as error:
        raise StrataFormatError(
            f"Cannot import module {module_name}: {error}. Check PYTHONPATH and retry."
        ) from error
    for attribute in attribute_path.split("."):
        if not hasattr(target, attribute):
            raise StrataFormatError(f"Module {module_name} has no attribute {attribute_path}.")
        target = getattr(target, attribute)
    if not isinstance(target, type):
        raise StrataFormatError(f"Entity reference '{reference}' does not name a class.")
    return target


def describe_metadata(metadata: EntityMetadata) -> dict[str, Any]:
    """Render entity metadata as a JSON-compatible mapping."""
    return {
        "type": metadata.type_name,
        "key_field": metadata.key_field.name,
        "auto_key": metadata.auto_key,
        "file_fields": sorted(metadata.file_fields),
        "fields": [
            {"name": descriptor.name, "type": _type_label(descriptor.value_type)}
            for descriptor in metadata.fields
        ],
    }


def _type_label(value_type: Any) -> str:
    if isinstance(value_type, type):
        return value_type.__name__
    return str(value_type).replace("typing.", "")
