"""Unit tests for the schema registry caches."""

from __future__ import annotations

import threading
from dataclasses import dataclass

import pytest

from adapters.view import View
from core.errors import StrataSchemaError
from schema.markers import autokey_field, key_field
from schema.registry import SchemaRegistry


@dataclass
class Note:
    id: str | None = autokey_field()
    text: str = ""


@dataclass
class Broken:
    text: str = ""


@dataclass
class Tagged:
    code: str = key_field(default="")


class Plain(View):
    pass


def test_metadata_is_cached_per_type() -> None:
    """Repeated lookups should return the same metadata object."""
    registry = SchemaRegistry()

    first = registry.metadata(Note)
    second = registry.metadata(Note)

    assert first is second and Note in registry


def test_metadata_failure_is_not_cached() -> None:
    """Invalid types should raise on every lookup and stay out of the cache."""
    registry = SchemaRegistry()

    with pytest.raises(StrataSchemaError):
        registry.metadata(Broken)

    assert Broken not in registry


def test_registries_are_independent() -> None:
    """Separately constructed registries should not share entries."""
    first = SchemaRegistry()
    second = SchemaRegistry()
    first.metadata(Tagged)

    assert Tagged not in second


def test_concurrent_adapter_lookups_converge_on_one_class() -> None:
    """Concurrent first-access compilation should yield exactly one wrapper."""
    registry = SchemaRegistry()
    barrier = threading.Barrier(8)
    results: list[type] = []
    errors: list[BaseException] = []
    results_lock = threading.Lock()

    def compile_adapter() -> None:
        barrier.wait()
        try:
            wrapper = registry.adapter(Note, Plain)
        except BaseException as error:  # noqa: BLE001 - collected for the assertion
            with results_lock:
                errors.append(error)
            return
        with results_lock:
            results.append(wrapper)

    threads = [threading.Thread(target=compile_adapter) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors and len(results) == 8 and len({id(item) for item in results}) == 1


def test_concurrent_metadata_lookups_share_one_object() -> None:
    """Concurrent first-access extraction should hand every thread the same metadata."""
    registry = SchemaRegistry()
    barrier = threading.Barrier(8)
    results: list[object] = []
    errors: list[BaseException] = []
    results_lock = threading.Lock()

    def extract() -> None:
        barrier.wait()
        try:
            metadata = registry.metadata(Tagged)
        except BaseException as error:  # noqa: BLE001 - collected for the assertion
            with results_lock:
                errors.append(error)
            return
        with results_lock:
            results.append(metadata)

    threads = [threading.Thread(target=extract) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors and len(results) == 8 and all(item is results[0] for item in results)
