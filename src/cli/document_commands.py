"""Document inspection and removal commands for Strata CLI."""

from __future__ import annotations

import argparse
import json
from typing import Any

from cli.describe_command import load_entity_type
from core.errors import StrataExistenceError
from core.identifiers import clean_key
from core.types import DocumentSnapshot
from mapper.client import StrataClient
from query.selection import Selection


def add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Print one document as JSON")
    parser.add_argument("path", help="Collection path")
    parser.add_argument("key", help="Document key")


def add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    parser = subparsers.add_parser("list", help="Print documents of a collection as JSON lines")
    parser.add_argument("path", help="Collection path")
    parser.add_argument("--order-by", help="Field used to order documents")
    parser.add_argument(
        "--descending",
        action="store_true",
        help="Reverse the order given by --order-by",
    )
    parser.add_argument("--limit", type=int, help="Maximum number of documents")


def add_delete_command(subparsers: Any) -> None:
    """Register delete subcommand."""
    parser = subparsers.add_parser("delete", help="Delete one document")
    parser.add_argument("path", help="Collection path")
    parser.add_argument("key", help="Document key")
    parser.add_argument(
        "--entity",
        help="Entity type in module:Type form; also deletes the blobs of its file fields",
    )


def run_get_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Print one document, failing when it is absent."""
    collection = client.collection(args.path)
    key = clean_key(args.key)
    snapshot = collection.get(key)
    if snapshot is None:
        raise StrataExistenceError(f"Key {key} does not exist in collection {collection.path}.")
    print(_render(snapshot, indent=2))
    return 0


def run_list_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Print matching documents, one JSON object per line."""
    selection = Selection(client.collection(args.path))
    if args.order_by:
        selection.order_by(args.order_by, descending=args.descending)
    if args.limit is not None:
        selection.limit(args.limit)
    for snapshot in selection.documents():
        print(_render(snapshot))
    return 0


def run_delete_command(client: StrataClient, args: argparse.Namespace) -> int:
    """Delete one document, through a mapper when an entity type is given."""
    if args.entity:
        mapper = client.mapper(load_entity_type(args.entity), args.path)
        mapper.delete(args.key, required=True)
    else:
        collection = client.collection(args.path)
        key = clean_key(args.key)
        if not collection.exists(key):
            raise StrataExistenceError(
                f"Key {key} does not exist in collection {collection.path}."
            )
        collection.delete(key)
    print(f"deleted={args.path}/{args.key.strip()}")
    return 0


def _render(snapshot: DocumentSnapshot, indent: int | None = None) -> str:
    payload = {"key": snapshot.key, "data": snapshot.data}
    return json.dumps(payload, indent=indent, sort_keys=True, default=str)
