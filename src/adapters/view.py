"""Base class for serialization views.

A view re-shapes an entity for persistence. It declares public methods
only: methods marked ``@abstractmethod`` are forwarded to the entity,
concrete ones run the view's own logic against ``self.entity``.
Field accessors follow the ``get_<field>`` / ``set_<field>`` convention
and can be overridden to transform values on write and read.

Example:
    >>> class UpperName(View):
    ...     def get_name(self):
    ...         return self.entity.name.upper()
"""

from __future__ import annotations

from abc import ABC
from typing import Any, ClassVar, Mapping

from core.constants import GETTER_PREFIX, SETTER_PREFIX
from core.errors import StrataFormatError


class View(ABC):
    """Wrapper base owning exactly one entity instance."""

    __slots__ = ("_entity",)

    _entity_type: ClassVar[type | None] = None
    _field_names: ClassVar[tuple[str, ...]] = ()

    def __init__(self, entity: Any = None) -> None:
        entity_type = type(self)._entity_type
        if entity_type is None:
            raise StrataFormatError(
                f"View {type(self).__qualname__} must be compiled for an entity type "
                "before it can wrap entities."
            )
        if entity is None:
            entity = entity_type()
        elif not isinstance(entity, entity_type):
            raise StrataFormatError(
                f"View {type(self).__qualname__} wraps {entity_type.__qualname__}, "
                f"got {type(entity).__qualname__}."
            )
        self._entity = entity

    @property
    def entity(self) -> Any:
        """The wrapped entity."""
        return self._entity

    def unwrap(self) -> Any:
        """Return the wrapped entity for substitution."""
        return self._entity

    def to_document(self) -> dict[str, Any]:
        """Serialize through the field getters of this view."""
        document: dict[str, Any] = {}
        for name in type(self)._field_names:
            document[name] = getattr(self, GETTER_PREFIX + name)()
        return document

    def from_document(self, data: Mapping[str, Any]) -> "View":
        """Apply document properties through the field setters of this view.

        Properties without a matching setter are ignored.
        """
        for name, value in data.items():
            setter = getattr(self, SETTER_PREFIX + name, None)
            if callable(setter):
                setter(value)
        return self

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}({self._entity!r})"
