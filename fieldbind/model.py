# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections.abc import (
    Awaitable,
    Callable,
    Iterator,
    Mapping,
    Sequence,
)
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, Union

from ._errors import FieldNotFoundError
from .concurrency import gather, maybe_await
from .field import Field
from .nested import PATH_SEP, ninsert, nget, split_path
from .observation import (
    DiagnosticEvent,
    DiagnosticKind,
    DiagnosticSink,
    LoggingSink,
    emit_safely,
)
from .types import Undefined, is_unset

if TYPE_CHECKING:
    from .constraint import Constraint

C = TypeVar("C", bound="Constraint")

__all__ = ("Model", "NamedValidator", "ModelListener", "ModelValidator")

ModelListener = Callable[["Model"], Any]
ModelValidator = Callable[["Model"], Union[Awaitable[bool], bool]]


@dataclass(slots=True, frozen=True)
class NamedValidator:
    """A cross-field rule registered under ``name``."""

    name: str
    validator: ModelValidator

    async def __call__(self, model: Model) -> bool:
        return bool(await maybe_await(self.validator(model)))


class Model(Generic[C]):
    """Live set of fields for one definition.

    The field set is fixed at construction. Any field change, and any change
    of the model's own validity, notifies the model's listeners.

    Example:
        model = definition.model()
        model.subscribe(lambda m: render(m))
        model.field("address.city").set_value("Lyon")
        if await model.validate():
            save(model.plain_obj())
    """

    def __init__(
        self,
        definitions: Mapping[str, C],
        validators: Sequence[NamedValidator],
        *,
        order: Sequence[str] | None = None,
        sink: DiagnosticSink | None = None,
    ):
        self._sink = sink if sink is not None else LoggingSink()
        self._listeners: list[ModelListener] = []
        self._valid: bool | None = None
        self._invalid: bool | None = None
        self._validators: tuple[NamedValidator, ...] = tuple(validators)

        paths = tuple(order) if order is not None else tuple(definitions)
        self._fields: tuple[Field[C], ...] = tuple(
            self._make_field(path, definitions[path]) for path in paths
        )
        self._index: dict[str, Field[C]] = {f.name: f for f in self._fields}

    def _make_field(self, path: str, constraint: C) -> Field[C]:
        field = Field(path, constraint, sink=self._sink)
        field.subscribe(lambda _: self._notify())
        return field

    def __repr__(self) -> str:
        return (
            f"Model(fields={[f.name for f in self._fields]}, "
            f"valid={self._valid})"
        )

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Field[C]]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def fields(self) -> tuple[Field[C], ...]:
        return self._fields

    @property
    def valid(self) -> bool | None:
        return self._valid

    @property
    def invalid(self) -> bool | None:
        return self._invalid

    @property
    def dirty(self) -> bool:
        return any(f.dirty for f in self._fields)

    @property
    def validator_names(self) -> list[str]:
        return [v.name for v in self._validators]

    def field(self, name: str) -> Field[C]:
        """Look up a field by its exact dotted path.

        Raises:
            FieldNotFoundError: If no field has that name.
        """
        try:
            return self._index[name]
        except KeyError:
            raise FieldNotFoundError.for_name(
                name, known=list(self._index)
            ) from None

    def get(self, name: str) -> Any:
        """Coerced value of the field named ``name``."""
        return self.field(name).value

    def plain_obj(self) -> dict[str, Any]:
        """Project field values into a fresh nested dict.

        ``"address.city"`` lands at ``result["address"]["city"]``; fields that
        share a prefix share the container. Unset values become None.
        """
        result: dict[str, Any] = {}
        for field in self._fields:
            value = field.value
            if is_unset(value):
                value = None
            ninsert(result, split_path(field.name), value)
        return result

    def load(self, data: Mapping[str, Any]) -> Model[C]:
        """Set field values from ``data``.

        ``data`` may be nested (``{"address": {"city": ...}}``) or keyed by
        dotted path (``{"address.city": ...}``); a dotted key wins when both
        are present. Fields absent from ``data`` keep their value. Keys that
        match no field are reported to the diagnostic sink.
        """
        consumed: set[str] = set()
        for field in self._fields:
            if field.name in data:
                field.set_value(data[field.name])
                consumed.add(field.name)
                continue
            segments = split_path(field.name)
            value = nget(data, segments)
            if value is not Undefined:
                field.set_value(value)

        ignored = sorted(
            str(k)
            for k in data
            if k not in consumed and not self._is_container(k)
        )
        if ignored:
            emit_safely(
                self._sink,
                DiagnosticEvent(
                    kind=DiagnosticKind.LOAD_IGNORED,
                    subject=type(self).__name__,
                    details={"keys": ignored},
                ),
            )
        return self

    def _is_container(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        prefix = key + PATH_SEP
        return any(name.startswith(prefix) for name in self._index)

    def clear(self) -> None:
        """Unset every field and forget the model's validity."""
        for field in self._fields:
            field.clear()
        self._valid = None
        self._invalid = None
        self._notify()

    def prune(self) -> None:
        for field in self._fields:
            field.prune()

    def set_valid(self, toggle: bool) -> None:
        self._valid = toggle
        self._invalid = not toggle
        self._notify()

    def set_invalid(self, toggle: bool) -> None:
        self._invalid = toggle
        self._valid = not toggle
        self._notify()

    def subscribe(self, listener: ModelListener) -> Model[C]:
        """Register ``listener`` for model and field changes.

        There is no unsubscribe; listeners live as long as the model.
        """
        self._listeners.append(listener)
        return self

    async def validate(self, validation_name: str | None = None) -> bool:
        """Validate the model.

        Without ``validation_name`` every field is validated first, and the
        cross-field validators only run when all fields pass. With a name,
        fields are skipped and only validators registered under that name
        run.

        Args:
            validation_name: Restrict the run to one named validator.

        Returns:
            bool: The model's resulting validity.
        """
        if validation_name is None:
            results = await gather(*(f.validate() for f in self._fields))
            if not all(results):
                self.set_valid(False)
                return False

        selected = [
            v
            for v in self._validators
            if validation_name is None or v.name == validation_name
        ]
        outcomes = await gather(*(v(self) for v in selected))
        failed = [v.name for v, ok in zip(selected, outcomes) if not ok]

        for name in failed:
            emit_safely(
                self._sink,
                DiagnosticEvent(
                    kind=DiagnosticKind.VALIDATOR_FAILED, subject=name
                ),
            )

        self.set_invalid(bool(failed))
        return self._valid

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            listener(self)
