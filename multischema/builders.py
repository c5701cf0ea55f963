# -*- coding: utf-8 -*-
"""
Zod Code Builders

Builder objects render one schema node as Zod source code. Every builder
supports the same fluent modifiers (``optional``, ``nullable``,
``default``, ``describe``, ``readonly``) and renders with ``render()``.

Cross-document references are represented by ReferenceBuilder, which
renders a direct binding (``User``), a member access (``user.User``) or,
for references that close an import cycle, a deferred ``z.lazy(() => ...)``
wrapper so the generated modules load in any order.

Example:
    >>> ObjectBuilder({"id": StringBuilder()}, required={"id"}).describe("A user").render()
    'z.object({ "id": z.string() }).describe("A user")'
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Set, Union

from multischema.models import ImportInfo, ImportKind

logger = logging.getLogger(__name__)

_UNSET = object()

_IDENTIFIER = re.compile(r"^[a-zA-Z_$][a-zA-Z0-9_$]*$")


def _js(value: Any) -> str:
    """Serialize a JSON value as a JavaScript literal."""
    return json.dumps(value, ensure_ascii=False)


# ===================================================================
# Base builder
# ===================================================================


class Builder:
    """Base class of all code builders.

    Subclasses implement ``base()`` (the code without modifiers) and
    ``children()`` (nested builders, used to collect references).
    """

    type_kind = "base"

    def __init__(self) -> None:
        self._optional = False
        self._nullable = False
        self._readonly = False
        self._default: Any = _UNSET
        self._description: Optional[str] = None

    # -- Fluent modifiers ----------------------------------------------

    def optional(self) -> Builder:
        self._optional = True
        return self

    def nullable(self) -> Builder:
        self._nullable = True
        return self

    def readonly(self) -> Builder:
        self._readonly = True
        return self

    def default(self, value: Any) -> Builder:
        self._default = value
        return self

    def describe(self, text: str) -> Builder:
        self._description = text
        return self

    @property
    def is_optional(self) -> bool:
        return self._optional

    @property
    def has_default(self) -> bool:
        return self._default is not _UNSET

    @property
    def description(self) -> Optional[str]:
        return self._description

    # -- Rendering -----------------------------------------------------

    def base(self) -> str:
        raise NotImplementedError

    def children(self) -> Sequence[Builder]:
        return ()

    def render(self) -> str:
        """Render the builder, modifiers included."""
        code = self.base()
        if self._optional:
            code += ".optional()"
        if self._nullable:
            code += ".nullable()"
        if self._readonly:
            code += ".readonly()"
        if self._default is not _UNSET:
            code += f".default({_js(self._default)})"
        if self._description is not None:
            code += f".describe({_js(self._description)})"
        return code

    def iter_references(self) -> Iterator[ReferenceBuilder]:
        """Yield every ReferenceBuilder in this builder tree, depth first."""
        seen: Set[int] = set()
        stack: List[Builder] = [self]
        while stack:
            current = stack.pop()
            if id(current) in seen:
                continue
            seen.add(id(current))
            if isinstance(current, ReferenceBuilder):
                yield current
            stack.extend(reversed(list(current.children())))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.render()!r})"


# ===================================================================
# Leaf builders
# ===================================================================


class AnyBuilder(Builder):
    """``z.any()``; also the placeholder for unconstrained nodes."""

    type_kind = "any"

    def base(self) -> str:
        return "z.any()"


class UnknownBuilder(Builder):
    type_kind = "unknown"

    def base(self) -> str:
        return "z.unknown()"


class NeverBuilder(Builder):
    type_kind = "never"

    def base(self) -> str:
        return "z.never()"


_STRING_FORMATS = {
    "email": "z.email()",
    "uri": "z.url()",
    "url": "z.url()",
    "uuid": "z.uuid()",
    "date-time": "z.iso.datetime()",
    "date": "z.iso.date()",
    "time": "z.iso.time()",
    "ipv4": "z.ipv4()",
    "ipv6": "z.ipv6()",
}


class StringBuilder(Builder):
    type_kind = "string"

    def __init__(
        self,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
        pattern: Optional[str] = None,
        format: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.min_length = min_length
        self.max_length = max_length
        self.pattern = pattern
        self.format = format

    def base(self) -> str:
        code = _STRING_FORMATS.get(self.format or "", "z.string()")
        if self.min_length is not None:
            code += f".min({self.min_length})"
        if self.max_length is not None:
            code += f".max({self.max_length})"
        if self.pattern is not None:
            code += f".regex(new RegExp({_js(self.pattern)}))"
        return code


class NumberBuilder(Builder):
    type_kind = "number"

    def __init__(
        self,
        integer: bool = False,
        minimum: Optional[float] = None,
        maximum: Optional[float] = None,
        exclusive_minimum: Optional[float] = None,
        exclusive_maximum: Optional[float] = None,
        multiple_of: Optional[float] = None,
    ) -> None:
        super().__init__()
        self.integer = integer
        self.minimum = minimum
        self.maximum = maximum
        self.exclusive_minimum = exclusive_minimum
        self.exclusive_maximum = exclusive_maximum
        self.multiple_of = multiple_of

    def base(self) -> str:
        code = "z.number()"
        if self.integer:
            code += ".int()"
        if self.minimum is not None:
            code += f".gte({_js(self.minimum)})"
        if self.exclusive_minimum is not None:
            code += f".gt({_js(self.exclusive_minimum)})"
        if self.maximum is not None:
            code += f".lte({_js(self.maximum)})"
        if self.exclusive_maximum is not None:
            code += f".lt({_js(self.exclusive_maximum)})"
        if self.multiple_of is not None:
            code += f".multipleOf({_js(self.multiple_of)})"
        return code


class BooleanBuilder(Builder):
    type_kind = "boolean"

    def base(self) -> str:
        return "z.boolean()"


class NullBuilder(Builder):
    type_kind = "null"

    def base(self) -> str:
        return "z.null()"


class LiteralBuilder(Builder):
    type_kind = "literal"

    def __init__(self, value: Any) -> None:
        super().__init__()
        self.value = value

    def base(self) -> str:
        return f"z.literal({_js(self.value)})"


class EnumBuilder(Builder):
    """``z.enum`` for string values, a union of literals otherwise."""

    type_kind = "enum"

    def __init__(self, values: Sequence[Any]) -> None:
        super().__init__()
        self.values = list(values)

    def base(self) -> str:
        if len(self.values) == 1:
            return LiteralBuilder(self.values[0]).base()
        if all(isinstance(value, str) for value in self.values):
            return f"z.enum([{', '.join(_js(v) for v in self.values)}])"
        literals = ", ".join(LiteralBuilder(v).base() for v in self.values)
        return f"z.union([{literals}])"


# ===================================================================
# Composite builders
# ===================================================================


class ArrayBuilder(Builder):
    type_kind = "array"

    def __init__(
        self,
        item: Builder,
        min_items: Optional[int] = None,
        max_items: Optional[int] = None,
    ) -> None:
        super().__init__()
        self.item = item
        self.min_items = min_items
        self.max_items = max_items

    def children(self) -> Sequence[Builder]:
        return (self.item,)

    def base(self) -> str:
        code = f"z.array({self.item.render()})"
        if self.min_items is not None:
            code += f".min({self.min_items})"
        if self.max_items is not None:
            code += f".max({self.max_items})"
        return code


class TupleBuilder(Builder):
    type_kind = "tuple"

    def __init__(self, items: Sequence[Builder], rest: Optional[Builder] = None) -> None:
        super().__init__()
        self.items = list(items)
        self.rest = rest

    def children(self) -> Sequence[Builder]:
        return self.items + ([self.rest] if self.rest is not None else [])

    def base(self) -> str:
        code = f"z.tuple([{', '.join(item.render() for item in self.items)}])"
        if self.rest is not None:
            code += f".rest({self.rest.render()})"
        return code


class ObjectBuilder(Builder):
    """``z.object`` with optional strict/catchall handling.

    Properties missing from ``required`` render with ``.optional()`` unless
    they carry a default; ``required=None`` makes every property required.
    Optionality is applied at render time so shared property builders are
    never mutated.

    ``additional`` is False for ``.strict()``, True for ``.passthrough()``,
    a Builder for ``.catchall(...)`` and None to leave the default.
    """

    type_kind = "object"

    def __init__(
        self,
        properties: Optional[Dict[str, Builder]] = None,
        required: Optional[Iterable[str]] = None,
        additional: Union[Builder, bool, None] = None,
    ) -> None:
        super().__init__()
        self.properties: Dict[str, Builder] = dict(properties or {})
        self.required: Optional[Set[str]] = set(required) if required is not None else None
        self.additional = additional

    def _render_property(self, key: str, builder: Builder) -> str:
        code = builder.render()
        if (
            self.required is not None
            and key not in self.required
            and not builder.has_default
            and not builder.is_optional
        ):
            code += ".optional()"
        return code

    def children(self) -> Sequence[Builder]:
        nested = list(self.properties.values())
        if isinstance(self.additional, Builder):
            nested.append(self.additional)
        return nested

    def base(self) -> str:
        if self.properties:
            fields = ", ".join(
                f"{_js(key)}: {self._render_property(key, builder)}"
                for key, builder in self.properties.items()
            )
            code = f"z.object({{ {fields} }})"
        else:
            code = "z.object({})"
        if self.additional is False:
            code += ".strict()"
        elif self.additional is True:
            code += ".passthrough()"
        elif isinstance(self.additional, Builder):
            code += f".catchall({self.additional.render()})"
        return code


class RecordBuilder(Builder):
    type_kind = "record"

    def __init__(self, value: Builder) -> None:
        super().__init__()
        self.value = value

    def children(self) -> Sequence[Builder]:
        return (self.value,)

    def base(self) -> str:
        return f"z.record(z.string(), {self.value.render()})"


class UnionBuilder(Builder):
    type_kind = "union"

    def __init__(self, options: Sequence[Builder]) -> None:
        super().__init__()
        self.options = list(options)

    def children(self) -> Sequence[Builder]:
        return self.options

    def base(self) -> str:
        if not self.options:
            return "z.never()"
        if len(self.options) == 1:
            return self.options[0].render()
        return f"z.union([{', '.join(option.render() for option in self.options)}])"


class IntersectionBuilder(Builder):
    type_kind = "intersection"

    def __init__(self, parts: Sequence[Builder]) -> None:
        super().__init__()
        self.parts = list(parts)

    def children(self) -> Sequence[Builder]:
        return self.parts

    def base(self) -> str:
        if not self.parts:
            return "z.any()"
        code = self.parts[0].render()
        for part in self.parts[1:]:
            code = f"z.intersection({code}, {part.render()})"
        return code


class NotBuilder(Builder):
    type_kind = "not"

    def __init__(self, inner: Builder) -> None:
        super().__init__()
        self.inner = inner

    def children(self) -> Sequence[Builder]:
        return (self.inner,)

    def base(self) -> str:
        return (
            f"z.any().refine((value) => !{self.inner.render()}.safeParse(value).success, "
            f"{_js('Invalid input: Should NOT be valid against schema')})"
        )


class ConditionalBuilder(Builder):
    """if/then/else: union of both branches, refined by the ``if`` outcome."""

    type_kind = "conditional"

    def __init__(self, if_: Builder, then: Builder, else_: Builder) -> None:
        super().__init__()
        self.if_ = if_
        self.then = then
        self.else_ = else_

    def children(self) -> Sequence[Builder]:
        return (self.if_, self.then, self.else_)

    def base(self) -> str:
        then_code = self.then.render()
        else_code = self.else_.render()
        return (
            f"z.union([{then_code}, {else_code}]).superRefine((value, ctx) => {{ "
            f"const result = {self.if_.render()}.safeParse(value).success "
            f"? {then_code}.safeParse(value) : {else_code}.safeParse(value); "
            f"if (!result.success) {{ result.error.issues.forEach((issue) => ctx.addIssue(issue)); }} }})"
        )


# ===================================================================
# Cross-document reference
# ===================================================================


class ReferenceBuilder(Builder):
    """Reference to a schema exported by another generated module.

    Rendering depends on the import kind: a named or default import is
    used through its binding (``User``), a namespace import through a
    member access (``user.User``). A property chain is appended as
    ``.shape`` accessors (``User.shape.id``).

    Attributes:
        binding: Local name the target module is bound to.
        export_name: Export of the target module being referenced.
        import_info: Import needed by the referencing module.
        is_lazy: Render ``z.lazy(() => ...)`` to break an import cycle.
        unknown_fallback: Target could not be resolved; render ``z.unknown()``.
        self_reference: Target is the module being generated; no import.
        property_path: Property names followed from the export.
    """

    type_kind = "reference"

    def __init__(
        self,
        binding: str,
        export_name: str,
        import_info: ImportInfo,
        is_lazy: bool = False,
        unknown_fallback: bool = False,
        self_reference: bool = False,
        property_path: Optional[Sequence[str]] = None,
    ) -> None:
        super().__init__()
        self.binding = binding
        self.export_name = export_name
        self.import_info = import_info
        self.is_lazy = is_lazy
        self.unknown_fallback = unknown_fallback
        self.self_reference = self_reference
        self.property_path = list(property_path or [])

    @classmethod
    def unresolved(cls, label: str = "UnknownRef") -> ReferenceBuilder:
        """Placeholder for a reference that could not be resolved."""
        return cls(
            label,
            label,
            ImportInfo(import_name=label, module_path="", is_type_only=True),
            unknown_fallback=True,
        )

    @property
    def is_type_only(self) -> bool:
        return self.import_info.is_type_only

    @property
    def should_emit_import(self) -> bool:
        return (
            not self.unknown_fallback
            and not self.self_reference
            and bool(self.import_info.module_path)
        )

    def get_import_info(self) -> Optional[ImportInfo]:
        return self.import_info if self.should_emit_import else None

    def target_expression(self) -> str:
        if self.import_info.import_kind == ImportKind.NAMESPACE:
            target = f"{self.binding}.{self.export_name}"
        else:
            target = self.binding
        for name in self.property_path:
            if _IDENTIFIER.match(name):
                target += f".shape.{name}"
            else:
                target += f".shape[{json.dumps(name)}]"
        return target

    def base(self) -> str:
        if self.unknown_fallback:
            return "z.unknown()"
        target = self.target_expression()
        if self.is_lazy:
            return f"z.lazy(() => {target})"
        return target


__all__ = [
    "Builder",
    "AnyBuilder",
    "UnknownBuilder",
    "NeverBuilder",
    "StringBuilder",
    "NumberBuilder",
    "BooleanBuilder",
    "NullBuilder",
    "LiteralBuilder",
    "EnumBuilder",
    "ArrayBuilder",
    "TupleBuilder",
    "ObjectBuilder",
    "RecordBuilder",
    "UnionBuilder",
    "IntersectionBuilder",
    "NotBuilder",
    "ConditionalBuilder",
    "ReferenceBuilder",
]
