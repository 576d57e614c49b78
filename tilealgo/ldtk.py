"""Declarative mapping of LDtk entities, enums and tags onto Python classes."""

from __future__ import annotations

import copy
import dataclasses
import types
import typing
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Optional, Union

ENUM_KINDS = ("LocalEnum", "ExternEnum")
ENUM_ARRAY_KINDS = ("LocalEnumArray", "ExternEnumArray")

_NAME_KEY = "ldtk_name"
_DEFAULT_KEY = "ldtk_default"


class LdtkDefinitionError(TypeError):
    """Raised when a class cannot be used as an LDtk entity, enum or tag."""


@dataclass(frozen=True)
class FieldValue:
    """The value of one LDtk field instance, tagged with its LDtk kind."""

    kind: str
    value: Any

    @classmethod
    def local_enum(cls, enum_name: str, ident: str) -> "FieldValue":
        return cls("LocalEnum", (enum_name, ident))

    @classmethod
    def extern_enum(cls, enum_name: str, ident: str) -> "FieldValue":
        return cls("ExternEnum", (enum_name, ident))

    @classmethod
    def local_enum_array(cls, enum_name: str, idents: typing.Iterable[str]) -> "FieldValue":
        return cls("LocalEnumArray", (enum_name, tuple(idents)))

    @classmethod
    def extern_enum_array(cls, enum_name: str, idents: typing.Iterable[str]) -> "FieldValue":
        return cls("ExternEnumArray", (enum_name, tuple(idents)))


@dataclass
class EntityContext:
    """Everything an entity receives while it is being spawned."""

    fields: dict[str, Optional[FieldValue]] = field(default_factory=dict)
    entity_instance: Any = None
    resources: dict[str, Any] = field(default_factory=dict)
    components: list[Any] = field(default_factory=list)
    sprite_requested: bool = False
    global_entity: bool = False

    def insert(self, *components: Any) -> None:
        self.components.extend(components)


@dataclass(frozen=True)
class _LdtkName:
    name: str


@dataclass(frozen=True)
class _EntitySpec:
    spawn_sprite: bool
    global_entity: bool
    callback: Optional[Callable[[EntityContext], Any]]


_ENUMS: dict[type, dict[str, Enum]] = {}
_ENTITIES: dict[type, _EntitySpec] = {}
_TAGS: set[type] = set()


def ldtk_name(name: str) -> _LdtkName:
    """Mark an enum member with the identifier LDtk uses for it."""
    return _LdtkName(name)


def ldtk_enum(cls: type) -> type:
    """Register an Enum so LDtk identifiers resolve to its members.

    A member answers to its own name and, if its value comes from
    ``ldtk_name``, to that name as well.
    """
    if not isinstance(cls, type) or not issubclass(cls, Enum):
        raise LdtkDefinitionError("LdtkEnum can only be derived for enums")
    identifiers: dict[str, Enum] = {}
    for member in cls:
        if isinstance(member.value, _LdtkName):
            identifiers.setdefault(member.value.name, member)
        identifiers.setdefault(member.name, member)
    _ENUMS[cls] = identifiers
    return cls


def enum_from_identifier(enum_cls: type, ident: str) -> Enum:
    """The member of a registered enum named ``ident`` in LDtk."""
    identifiers = _ENUMS.get(enum_cls)
    if identifiers is None:
        raise LdtkDefinitionError(f"{enum_cls!r} is not registered as an LDtk enum")
    try:
        return identifiers[ident]
    except KeyError:
        raise ValueError(f"Unknown enum variant: {ident}") from None


def _enum_ident(field_value: FieldValue) -> str:
    if field_value.kind not in ENUM_KINDS:
        raise ValueError(f"Expected an enum value, got {field_value.kind}")
    return field_value.value[1]


def _enum_idents(field_value: FieldValue) -> typing.Sequence[str]:
    if field_value.kind not in ENUM_ARRAY_KINDS:
        raise ValueError(f"Expected an enum array value, got {field_value.kind}")
    return field_value.value[1]


def enum_from_field(enum_cls: type, field: Optional[FieldValue]) -> Enum:
    """Convert an enum field; the field must hold a value."""
    if field is None:
        raise ValueError("Expected value!")
    return enum_from_identifier(enum_cls, _enum_ident(field))


def optional_enum_from_field(enum_cls: type, field: Optional[FieldValue]) -> Optional[Enum]:
    """Convert an enum field that may be empty."""
    if field is None:
        return None
    return enum_from_identifier(enum_cls, _enum_ident(field))


def enum_list_from_field(enum_cls: type, field: Optional[FieldValue]) -> list[Enum]:
    """Convert an enum array field; the field must hold a value."""
    if field is None:
        raise ValueError("Expected value!")
    return [enum_from_identifier(enum_cls, i) for i in _enum_idents(field)]


def optional_enum_list_from_field(
    enum_cls: type, field: Optional[FieldValue]
) -> Optional[list[Enum]]:
    """Convert an enum array field that may be empty."""
    if field is None:
        return None
    return [enum_from_identifier(enum_cls, i) for i in _enum_idents(field)]


def ldtk_field(*, name: Optional[str] = None, default: Any = dataclasses.MISSING) -> Any:
    """A dataclass field read from the LDtk field ``name``.

    Giving ``default`` keeps the field out of LDtk entirely: it always
    starts at the default.
    """
    metadata: dict[str, Any] = {}
    if name is not None:
        metadata[_NAME_KEY] = name
    if default is dataclasses.MISSING:
        return field(metadata=metadata)
    metadata[_DEFAULT_KEY] = True
    if isinstance(default, (list, dict, set)):
        return field(default_factory=lambda: copy.copy(default), metadata=metadata)
    return field(default=default, metadata=metadata)


def _raw_value(field_value: Optional[FieldValue]) -> Any:
    return None if field_value is None else field_value.value


def _is_enum(hint: Any) -> bool:
    return isinstance(hint, type) and hint in _ENUMS


def _list_of_enum(hint: Any) -> Optional[type]:
    if typing.get_origin(hint) is list:
        args = typing.get_args(hint)
        if args and _is_enum(args[0]):
            return args[0]
    return None


def _enum_named(name: str) -> Optional[type]:
    for enum_cls in _ENUMS:
        if name in (enum_cls.__name__, enum_cls.__qualname__):
            return enum_cls
    return None


def _split_top_level(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    for char in text:
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
        if char == sep and depth == 0:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    parts.append(current.strip())
    return parts


def _unwrap(text: str, *prefixes: str) -> Optional[str]:
    for prefix in prefixes:
        if text.startswith(prefix + "[") and text.endswith("]"):
            return text[len(prefix) + 1 : -1].strip()
    return None


def _string_converter(text: str) -> Callable[[Optional[FieldValue]], Any]:
    """Resolve a string annotation against the registered enums."""
    text = text.strip().replace("typing.", "")
    optional_inner = _unwrap(text, "Optional")
    if optional_inner is None:
        parts = _split_top_level(text, "|")
        if len(parts) == 2 and "None" in parts:
            optional_inner = next(p for p in parts if p != "None")
    if optional_inner is not None:
        enum_cls = _enum_named(optional_inner)
        if enum_cls is not None:
            return partial(optional_enum_from_field, enum_cls)
        listed = _unwrap(optional_inner, "list", "List")
        if listed is not None and _enum_named(listed) is not None:
            return partial(optional_enum_list_from_field, _enum_named(listed))
        return _raw_value
    listed = _unwrap(text, "list", "List")
    if listed is not None and _enum_named(listed) is not None:
        return partial(enum_list_from_field, _enum_named(listed))
    enum_cls = _enum_named(text)
    if enum_cls is not None:
        return partial(enum_from_field, enum_cls)
    return _raw_value


def _converter(hint: Any) -> Callable[[Optional[FieldValue]], Any]:
    if isinstance(hint, str):
        return _string_converter(hint)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin in (Union, types.UnionType) and len(args) == 2 and type(None) in args:
        inner = next(a for a in args if a is not type(None))
        if _is_enum(inner):
            return partial(optional_enum_from_field, inner)
        listed = _list_of_enum(inner)
        if listed is not None:
            return partial(optional_enum_list_from_field, listed)
        return _raw_value
    listed = _list_of_enum(hint)
    if listed is not None:
        return partial(enum_list_from_field, listed)
    if _is_enum(hint):
        return partial(enum_from_field, hint)
    return _raw_value


def ldtk_entity(
    cls: Optional[type] = None,
    *,
    spawn_sprite: bool = False,
    global_entity: bool = False,
    callback: Optional[Callable[[EntityContext], Any]] = None,
) -> Any:
    """Register a class as an LDtk entity; usable with or without arguments."""
    if callback is not None and not callable(callback):
        raise LdtkDefinitionError("callback must be a callable")

    def register(target: type) -> type:
        if not isinstance(target, type) or issubclass(target, Enum):
            raise LdtkDefinitionError("LdtkEntity can only be derived for structs")
        _ENTITIES[target] = _EntitySpec(spawn_sprite, global_entity, callback)
        return target

    if cls is None:
        return register
    return register(cls)


def _construct(cls: type, fields: dict[str, Optional[FieldValue]]) -> Any:
    if not dataclasses.is_dataclass(cls):
        return cls()
    kwargs: dict[str, Any] = {}
    for item in dataclasses.fields(cls):
        if not item.init or item.metadata.get(_DEFAULT_KEY):
            continue
        key = item.metadata.get(_NAME_KEY, item.name)
        if key not in fields:
            raise KeyError(f"entity field {key!r} is missing")
        kwargs[item.name] = _converter(item.type)(fields[key])
    return cls(**kwargs)


def initialize_entity(cls: type, context: EntityContext) -> Any:
    """Build a registered entity from ``context`` and insert it there."""
    spec = _ENTITIES.get(cls)
    if spec is None:
        raise LdtkDefinitionError(f"{cls!r} is not registered as an LDtk entity")
    if spec.callback is not None:
        spec.callback(context)
    if spec.spawn_sprite:
        context.sprite_requested = True
    if spec.global_entity:
        context.global_entity = True
    component = _construct(cls, context.fields)
    context.insert(component)
    return component


def ldtk_entity_tag(cls: type) -> type:
    """Register a class without fields as an LDtk entity tag."""
    if not isinstance(cls, type) or issubclass(cls, Enum):
        raise LdtkDefinitionError("LdtkEntityTag can only be derived for zero sized structs")
    if dataclasses.is_dataclass(cls) and dataclasses.fields(cls):
        raise LdtkDefinitionError("LdtkEntityTag can only be derived for zero sized structs")
    _TAGS.add(cls)
    return cls


def add_tag(cls: type, components: list[Any]) -> Any:
    """Append a new instance of a registered tag to ``components``."""
    if cls not in _TAGS:
        raise LdtkDefinitionError(f"{cls!r} is not registered as an LDtk entity tag")
    tag = cls()
    components.append(tag)
    return tag