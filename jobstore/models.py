"""
Job record data model.

A job is a tool selector plus an option bag. The option bag is a tagged
union of field kinds keyed by name, so storage backends never need to know
what any particular tool does with its options.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


OptionValue = Union[str, int, bool, tuple[str, ...]]


class FieldKind(str, Enum):
    """Kinds of values an option field can hold."""
    STRING = "string"
    INT = "int"
    BOOL = "bool"
    STRING_ARRAY = "string_array"


@dataclass(frozen=True)
class OptionField:
    """A single typed option value."""
    kind: FieldKind
    value: OptionValue

    def __post_init__(self) -> None:
        kind = FieldKind(self.kind)
        object.__setattr__(self, "kind", kind)
        value = self.value

        if kind is FieldKind.STRING:
            ok = isinstance(value, str)
        elif kind is FieldKind.BOOL:
            ok = isinstance(value, bool)
        elif kind is FieldKind.INT:
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
                ok = False
            else:
                value = tuple(value)
                ok = all(isinstance(item, str) for item in value)
                object.__setattr__(self, "value", value)

        if not ok:
            raise TypeError(f"Invalid value for {kind.value} field: {self.value!r}")

    @classmethod
    def infer(cls, value: Any) -> "OptionField":
        """Build a field from a plain Python value, inferring its kind."""
        if isinstance(value, OptionField):
            return value
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return cls(FieldKind.BOOL, value)
        if isinstance(value, int):
            return cls(FieldKind.INT, value)
        if isinstance(value, str):
            return cls(FieldKind.STRING, value)
        if isinstance(value, (list, tuple)):
            return cls(FieldKind.STRING_ARRAY, tuple(value))
        raise TypeError(f"Cannot infer option kind for {type(value).__name__}: {value!r}")


class JobOptions:
    """
    Ordered bag of named, typed option fields.

    Behaves like a read-only mapping of field name to plain value; use the
    ``set_*`` methods to add or replace fields.

    Usage:
        options = JobOptions()
        options.set_string("table", "employees")
        options.set_array("extra_args", ["-schema", "test"])
        options["extra_args"]  # ("-schema", "test")
    """

    def __init__(self, fields: Mapping[str, OptionField] | None = None):
        self._fields: dict[str, OptionField] = {}
        for name, option in (fields or {}).items():
            self.set(name, option)

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "JobOptions":
        """Create from plain values, inferring each field's kind."""
        options = cls()
        for name, value in values.items():
            options.set(name, OptionField.infer(value))
        return options

    def set(self, name: str, option: OptionField) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Option name must be a non-empty string: {name!r}")
        if not isinstance(option, OptionField):
            raise TypeError(f"Expected OptionField, got {type(option).__name__}")
        self._fields[name] = option

    def set_string(self, name: str, value: str) -> None:
        self.set(name, OptionField(FieldKind.STRING, value))

    def set_int(self, name: str, value: int) -> None:
        self.set(name, OptionField(FieldKind.INT, value))

    def set_bool(self, name: str, value: bool) -> None:
        self.set(name, OptionField(FieldKind.BOOL, value))

    def set_array(self, name: str, values: Iterable[str]) -> None:
        self.set(name, OptionField(FieldKind.STRING_ARRAY, tuple(values)))

    def remove(self, name: str) -> None:
        self._fields.pop(name, None)

    def field(self, name: str) -> OptionField:
        """Get the typed field for name."""
        return self._fields[name]

    def fields(self) -> Iterator[tuple[str, OptionField]]:
        return iter(self._fields.items())

    def get(self, name: str, default: Any = None) -> Any:
        option = self._fields.get(name)
        return default if option is None else option.value

    def __getitem__(self, name: str) -> OptionValue:
        return self._fields[name].value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JobOptions):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        items = ", ".join(f"{name}={option.value!r}" for name, option in self._fields.items())
        return f"JobOptions({items})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to plain values (arrays become lists)."""
        return {
            name: list(option.value) if option.kind is FieldKind.STRING_ARRAY else option.value
            for name, option in self._fields.items()
        }


@dataclass
class JobRecord:
    """
    A reusable job definition: which tool to run and with what options.

    Stored records are full snapshots; updating a job replaces the whole
    record.
    """
    tool: str
    options: JobOptions = field(default_factory=JobOptions)

    def __post_init__(self) -> None:
        if not isinstance(self.tool, str) or not self.tool:
            raise ValueError(f"Tool selector must be a non-empty string: {self.tool!r}")
        if isinstance(self.options, Mapping):
            self.options = JobOptions.from_mapping(self.options)
        elif not isinstance(self.options, JobOptions):
            raise TypeError(f"Expected JobOptions, got {type(self.options).__name__}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tool": self.tool,
            "options": self.options.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JobRecord":
        """Create from dictionary."""
        return cls(
            tool=data["tool"],
            options=JobOptions.from_mapping(data.get("options", {})),
        )
