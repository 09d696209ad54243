"""View adapter compilation.

This module synthesizes, once per (entity type, view type) pair, a
wrapper class that subclasses the view. The wrapper is a dispatch table:
abstract view methods forward to the entity by name, entity methods the
view does not declare are forwarded as-is, and every entity field gets
``get_<field>`` / ``set_<field>`` accessors unless the view defines them.
"""

from __future__ import annotations

import inspect
import threading
import types
from typing import Any, Callable

from adapters.view import View
from core.constants import GETTER_PREFIX, SETTER_PREFIX
from core.errors import StrataFormatError, StrataSynthesisError
from core.logging_config import get_logger
from schema.entity_metadata import EntityMetadata

_LOGGER = get_logger(__name__)
_METHOD_TYPES = (types.FunctionType, staticmethod, classmethod, property)
_IGNORED_CLASS_ATTRIBUTES = ("_abc_impl",)


class AdapterCompiler:
    """Thread-safe cache of generated wrapper classes.

    Each (entity type, view type) pair is generated at most once. A failed
    generation is remembered and reported again on later requests instead
    of being retried.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._wrappers: dict[tuple[type, type], type[View]] = {}
        self._failures: dict[tuple[type, type], StrataSynthesisError] = {}

    def compile(self, metadata: EntityMetadata, view_type: type) -> type[View]:
        """Return the wrapper class for an entity type and a view type.

        Args:
            metadata: Metadata of the wrapped entity type.
            view_type: View subclass to realize.

        Returns:
            Generated wrapper class.

        Raises:
            StrataFormatError: If the view type is not a field-free View.
            StrataSynthesisError: If generation fails now or failed before.
        """
        cache_key = (metadata.entity_type, view_type)
        wrapper = self._wrappers.get(cache_key)
        if wrapper is not None:
            return wrapper
        validate_view_type(view_type)
        with self._lock:
            wrapper = self._wrappers.get(cache_key)
            if wrapper is not None:
                return wrapper
            failure = self._failures.get(cache_key)
            if failure is not None:
                raise StrataSynthesisError(str(failure)) from failure
            try:
                wrapper = build_adapter_type(metadata, view_type)
            except StrataSynthesisError as error:
                self._failures[cache_key] = error
                raise
            self._wrappers[cache_key] = wrapper
        _LOGGER.info(
            "adapter_compiled",
            type_name=metadata.type_name,
            view=view_type.__qualname__,
            wrapper=wrapper.__qualname__,
        )
        return wrapper


def validate_view_type(view_type: object) -> None:
    """Check that a view type is a View subclass declaring no fields.

    Raises:
        StrataFormatError: If the view is not a View subclass or declares
            annotations, slots or non-method class attributes.
    """
    if not isinstance(view_type, type) or not issubclass(view_type, View) or view_type is View:
        raise StrataFormatError(f"View {view_type!r} must be a subclass of View.")
    for klass in view_type.__mro__:
        if klass is View:
            break
        view_name = klass.__qualname__
        if inspect.get_annotations(klass):
            raise StrataFormatError(f"View {view_name} cannot have fields.")
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        if tuple(slots):
            raise StrataFormatError(f"View {view_name} cannot have fields.")
        for name, value in klass.__dict__.items():
            if name.startswith("__") and name.endswith("__"):
                continue
            if name in _IGNORED_CLASS_ATTRIBUTES or isinstance(value, _METHOD_TYPES):
                continue
            raise StrataFormatError(f"View {view_name} cannot have fields; found attribute {name}.")


def build_adapter_type(metadata: EntityMetadata, view_type: type[View]) -> type[View]:
    """Generate the wrapper class for a validated view type.

    Args:
        metadata: Metadata of the wrapped entity type.
        view_type: Field-free View subclass.

    Returns:
        New wrapper class subclassing the view.

    Raises:
        StrataSynthesisError: If a forwarded method is missing or has an
            incompatible signature, or the class cannot be created.
    """
    entity_type = metadata.entity_type
    declared = _declared_view_methods(view_type)
    namespace: dict[str, Any] = {
        "__slots__": (),
        "__module__": view_type.__module__,
        "_entity_type": entity_type,
        "_field_names": metadata.field_names,
    }
    for name, method in declared.items():
        if getattr(method, "__isabstractmethod__", False):
            namespace[name] = _resolve_abstract(metadata, view_type, name, method)
    for descriptor in metadata.fields:
        getter_name = GETTER_PREFIX + descriptor.name
        setter_name = SETTER_PREFIX + descriptor.name
        if getter_name not in declared:
            namespace[getter_name] = _field_getter(descriptor.name, getter_name)
        if setter_name not in declared:
            namespace[setter_name] = _field_setter(descriptor.name, setter_name)
    reserved = set(dir(View))
    for name in _public_entity_methods(entity_type):
        if name in declared or name in namespace or name in reserved:
            continue
        namespace[name] = _entity_forwarder(name)

    wrapper_name = f"{view_type.__name__}[{entity_type.__name__}]"
    try:
        wrapper = type(view_type)(wrapper_name, (view_type,), namespace)
    except TypeError as error:
        raise StrataSynthesisError(
            f"Cannot generate adapter for view {view_type.__qualname__} "
            f"and class {metadata.type_name}: {error}."
        ) from error
    if inspect.isabstract(wrapper):
        missing = ", ".join(sorted(getattr(wrapper, "__abstractmethods__", ())))
        raise StrataSynthesisError(
            f"Adapter for view {view_type.__qualname__} and class {metadata.type_name} "
            f"leaves abstract members unresolved: {missing}."
        )
    wrapper.__qualname__ = wrapper_name
    return wrapper


def _declared_view_methods(view_type: type) -> dict[str, Any]:
    """Collect public methods declared by the view and its View ancestors."""
    declared: dict[str, Any] = {}
    for klass in reversed(view_type.__mro__):
        if not issubclass(klass, View) or klass is View:
            continue
        for name, value in klass.__dict__.items():
            if name.startswith("_") or not isinstance(value, _METHOD_TYPES):
                continue
            declared[name] = value
    return declared


def _public_entity_methods(entity_type: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(entity_type.__mro__[:-1]):
        for name, value in klass.__dict__.items():
            if name.startswith("_") or not isinstance(value, types.FunctionType):
                continue
            if name not in names:
                names.append(name)
    return names


def _resolve_abstract(
    metadata: EntityMetadata,
    view_type: type,
    name: str,
    view_method: Any,
) -> Callable[..., Any]:
    """Build the forwarding body for an abstract view method.

    Raises:
        StrataSynthesisError: If no compatible entity target exists.
    """
    if not isinstance(view_method, types.FunctionType):
        raise StrataSynthesisError(
            f"View {view_type.__qualname__} declares abstract member {name} "
            "that is not a plain method and cannot be forwarded."
        )
    target = getattr(metadata.entity_type, name, None)
    if isinstance(target, types.FunctionType) and not name.startswith("_"):
        _check_signature(view_type, view_method, target, metadata.type_name)
        return _entity_forwarder(name)
    for descriptor in metadata.fields:
        if name == GETTER_PREFIX + descriptor.name:
            _check_arity(view_type, view_method, 0)
            return _field_getter(descriptor.name, name)
        if name == SETTER_PREFIX + descriptor.name:
            _check_arity(view_type, view_method, 1)
            return _field_setter(descriptor.name, name)
    raise StrataSynthesisError(
        f"View {view_type.__qualname__} declares {name} without a body, "
        f"but class {metadata.type_name} has no method or field accessor named {name}."
    )


def _check_signature(view_type: type, view_method: Any, target: Any, type_name: str) -> None:
    view_parameters = _parameter_shape(view_method)
    target_parameters = _parameter_shape(target)
    if view_parameters != target_parameters:
        raise StrataSynthesisError(
            f"Method {view_method.__name__} of view {view_type.__qualname__} has parameters "
            f"{view_parameters}, incompatible with {target_parameters} in class {type_name}."
        )


def _check_arity(view_type: type, view_method: Any, expected: int) -> None:
    parameters = _parameter_shape(view_method)
    if len(parameters) != expected:
        raise StrataSynthesisError(
            f"Accessor {view_method.__name__} of view {view_type.__qualname__} "
            f"must take {expected} argument(s), got {len(parameters)}."
        )


def _parameter_shape(function: Any) -> list[tuple[str, str]]:
    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as error:
        raise StrataSynthesisError(
            f"Cannot inspect signature of {getattr(function, '__qualname__', function)}: {error}."
        ) from error
    parameters = list(signature.parameters.values())[1:]
    return [(parameter.name, parameter.kind.name) for parameter in parameters]


def _entity_forwarder(name: str) -> Callable[..., Any]:
    def forward(self: View, *args: Any, **kwargs: Any) -> Any:
        return getattr(self._entity, name)(*args, **kwargs)

    forward.__name__ = name
    forward.__qualname__ = name
    return forward


def _field_getter(field_name: str, accessor_name: str) -> Callable[[View], Any]:
    def get(self: View) -> Any:
        return getattr(self._entity, field_name)

    get.__name__ = accessor_name
    get.__qualname__ = accessor_name
    return get


def _field_setter(field_name: str, accessor_name: str) -> Callable[[View, Any], None]:
    def set_value(self: View, value: Any) -> None:
        setattr(self._entity, field_name, value)

    set_value.__name__ = accessor_name
    set_value.__qualname__ = accessor_name
    return set_value
