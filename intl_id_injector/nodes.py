# -*- coding: utf-8 -*-
"""Typed, immutable view of the SWC AST nodes the id injector works on.

The host tree is the JSON form of SWC's ECMAScript/TSX AST: plain dicts with
a ``type`` tag. Only the handful of node kinds that matter for message
declarations are modelled here; every other kind decodes to :class:`Opaque`
and is carried through untouched. Keys a modelled node does not care about
(``children``, ``closing``, ``typeArguments``, ...) live in ``extra`` so that
``to_dict`` reproduces them, in the key order they were read in.

All nodes are frozen dataclasses. Rewrites build new nodes with
``dataclasses.replace`` and never mutate the input.
"""
from __future__ import annotations

import copy
import dataclasses
import json
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple

__all__ = [
    "NodeShapeError",
    "Span",
    "Node",
    "Opaque",
    "Identifier",
    "StringLiteral",
    "JSXMemberExpression",
    "JSXAttribute",
    "JSXOpeningElement",
    "JSXElement",
    "KeyValueProperty",
    "ObjectExpression",
    "MemberExpression",
    "ExprOrSpread",
    "CallExpression",
    "decode",
    "span_of",
]


class NodeShapeError(ValueError):
    """Raised when a dict claims a modelled ``type`` but does not have its shape."""


_DECODERS: Dict[str, Callable[[Dict[str, Any]], "Node"]] = {}


def _register(cls):
    _DECODERS[cls.type] = cls.from_dict
    return cls


def _require_dict(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise NodeShapeError(f"{what}: expected an object, got {type(raw).__name__}")
    return raw


def _require_list(raw: Dict[str, Any], key: str) -> list:
    value = raw.get(key)
    if not isinstance(value, list):
        raise NodeShapeError(f"{raw.get('type')}.{key}: expected a list")
    return value


def _extra(raw: Dict[str, Any], *modelled: str) -> Dict[str, Any]:
    skip = {"type", *modelled}
    return {k: v for k, v in raw.items() if k not in skip}


def _dump_extra(extra: Dict[str, Any]) -> Dict[str, Any]:
    return copy.deepcopy(extra)


def _in_order(out: Dict[str, Any], order: Tuple[str, ...]) -> Dict[str, Any]:
    """Lay ``out`` out in the key order its node was decoded from."""
    if not order:
        return out
    ordered = {k: out[k] for k in order if k in out}
    ordered.update((k, v) for k, v in out.items() if k not in ordered)
    return ordered


def _key_order():
    # not part of node identity: two nodes with the same content are equal
    return dataclasses.field(default=(), compare=False, repr=False)


@dataclasses.dataclass(frozen=True)
class Span:
    start: int
    end: int
    ctxt: Optional[int] = None
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict, compare=False, repr=False)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Any) -> "Span":
        raw = _require_dict(raw, "span")
        start, end = raw.get("start"), raw.get("end")
        if not isinstance(start, int) or not isinstance(end, int):
            raise NodeShapeError("span: start/end must be integers")
        ctxt = raw.get("ctxt")
        if isinstance(ctxt, int):
            extra = _extra(raw, "start", "end", "ctxt")
        else:
            ctxt, extra = None, _extra(raw, "start", "end")
        return cls(start=start, end=end, ctxt=ctxt, extra=extra, order=tuple(raw))

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"start": self.start, "end": self.end}
        if self.ctxt is not None:
            out["ctxt"] = self.ctxt
        out.update(_dump_extra(self.extra))
        return _in_order(out, self.order)

    def zero_width(self) -> "Span":
        """Collapse to an empty span anchored at ``start``."""
        return dataclasses.replace(self, end=self.start)

    def following(self) -> "Span":
        """Empty span one position past ``end``, for synthesized nodes."""
        pos = self.end + 1
        return Span(start=pos, end=pos, ctxt=0 if self.ctxt is not None else None)


class Node:
    """Base of the closed set of node variants."""

    type: ClassVar[str] = ""

    def to_dict(self) -> Dict[str, Any]:  # pragma: no cover - overridden
        raise NotImplementedError


@dataclasses.dataclass(frozen=True)
class Opaque(Node):
    """Any node kind the injector does not look into."""

    raw: Any

    @property
    def kind(self) -> Optional[str]:
        return self.raw.get("type") if isinstance(self.raw, dict) else None

    def to_dict(self) -> Any:
        return copy.deepcopy(self.raw)


@_register
@dataclasses.dataclass(frozen=True)
class Identifier(Node):
    type: ClassVar[str] = "Identifier"

    span: Span
    value: str
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Identifier":
        value = raw.get("value")
        if not isinstance(value, str):
            raise NodeShapeError("Identifier.value must be a string")
        return cls(
            span=Span.from_dict(raw.get("span")),
            value=value,
            extra=_extra(raw, "span", "value"),
            order=tuple(raw),
        )

    @classmethod
    def synthesized(cls, value: str, span: Span, like: Optional["Identifier"] = None) -> "Identifier":
        extra: Dict[str, Any] = {}
        if like is not None and "ctxt" in like.extra:
            extra["ctxt"] = 0
        extra["optional"] = False
        return cls(span=span, value=value, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        out = {"type": self.type, "span": self.span.to_dict(), "value": self.value, **_dump_extra(self.extra)}
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class StringLiteral(Node):
    type: ClassVar[str] = "StringLiteral"

    span: Span
    value: str
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StringLiteral":
        value = raw.get("value")
        if not isinstance(value, str):
            raise NodeShapeError("StringLiteral.value must be a string")
        return cls(
            span=Span.from_dict(raw.get("span")),
            value=value,
            extra=_extra(raw, "span", "value"),
            order=tuple(raw),
        )

    @classmethod
    def synthesized(cls, value: str, span: Span, like: Optional["StringLiteral"] = None) -> "StringLiteral":
        extra: Dict[str, Any] = {}
        if like is None or "raw" in like.extra:
            extra["raw"] = json.dumps(value, ensure_ascii=False)
        if like is not None and "has_escape" in like.extra:
            extra["has_escape"] = False
        return cls(span=span, value=value, extra=extra)

    def with_value(self, value: str) -> "StringLiteral":
        """Same literal with a new value and a zero-width span.

        The printer would otherwise reuse the old source text (``raw``) or the
        old span width.
        """
        extra = dict(self.extra)
        if "raw" in extra:
            extra["raw"] = json.dumps(value, ensure_ascii=False)
        if "has_escape" in extra:
            extra["has_escape"] = False
        return dataclasses.replace(self, span=self.span.zero_width(), value=value, extra=extra)

    def to_dict(self) -> Dict[str, Any]:
        out = {"type": self.type, "span": self.span.to_dict(), "value": self.value, **_dump_extra(self.extra)}
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class JSXMemberExpression(Node):
    """``Intl.FormattedMessage``; ``object`` stays in ``extra``."""

    type: ClassVar[str] = "JSXMemberExpression"

    property: Node
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "JSXMemberExpression":
        return cls(property=decode(raw.get("property")), extra=_extra(raw, "property"), order=tuple(raw))

    def to_dict(self) -> Dict[str, Any]:
        out = {"type": self.type, "property": self.property.to_dict(), **_dump_extra(self.extra)}
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class JSXAttribute(Node):
    type: ClassVar[str] = "JSXAttribute"

    span: Span
    name: Node
    value: Optional[Node]
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "JSXAttribute":
        value = raw.get("value")
        return cls(
            span=Span.from_dict(raw.get("span")),
            name=decode(raw.get("name")),
            value=None if value is None else decode(value),
            extra=_extra(raw, "span", "name", "value"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "span": self.span.to_dict(),
            "name": self.name.to_dict(),
            "value": None if self.value is None else self.value.to_dict(),
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class JSXOpeningElement(Node):
    type: ClassVar[str] = "JSXOpeningElement"

    span: Span
    name: Node
    attributes: Tuple[Node, ...]
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "JSXOpeningElement":
        return cls(
            span=Span.from_dict(raw.get("span")),
            name=decode(raw.get("name")),
            attributes=tuple(decode(a) for a in _require_list(raw, "attributes")),
            extra=_extra(raw, "span", "name", "attributes"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "name": self.name.to_dict(),
            "span": self.span.to_dict(),
            "attributes": [a.to_dict() for a in self.attributes],
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class JSXElement(Node):
    """A markup element. ``children`` and ``closing`` are kept in ``extra``."""

    type: ClassVar[str] = "JSXElement"

    span: Span
    opening: Node
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "JSXElement":
        return cls(
            span=Span.from_dict(raw.get("span")),
            opening=decode(raw.get("opening")),
            extra=_extra(raw, "span", "opening"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "span": self.span.to_dict(),
            "opening": self.opening.to_dict(),
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class KeyValueProperty(Node):
    type: ClassVar[str] = "KeyValueProperty"

    key: Node
    value: Node
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "KeyValueProperty":
        return cls(
            key=decode(raw.get("key")),
            value=decode(raw.get("value")),
            extra=_extra(raw, "key", "value"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {"type": self.type, "key": self.key.to_dict(), "value": self.value.to_dict(), **_dump_extra(self.extra)}
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class ObjectExpression(Node):
    type: ClassVar[str] = "ObjectExpression"

    span: Span
    properties: Tuple[Node, ...]
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ObjectExpression":
        return cls(
            span=Span.from_dict(raw.get("span")),
            properties=tuple(decode(p) for p in _require_list(raw, "properties")),
            extra=_extra(raw, "span", "properties"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "span": self.span.to_dict(),
            "properties": [p.to_dict() for p in self.properties],
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


@_register
@dataclasses.dataclass(frozen=True)
class MemberExpression(Node):
    """``intl.formatMessage``; ``object`` stays in ``extra``."""

    type: ClassVar[str] = "MemberExpression"

    span: Span
    property: Node
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MemberExpression":
        return cls(
            span=Span.from_dict(raw.get("span")),
            property=decode(raw.get("property")),
            extra=_extra(raw, "span", "property"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "span": self.span.to_dict(),
            "property": self.property.to_dict(),
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


@dataclasses.dataclass(frozen=True)
class ExprOrSpread:
    """One call argument. Untagged in SWC's JSON: ``{"spread": ..., "expression": ...}``."""

    expression: Node
    spread: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "ExprOrSpread":
        raw = _require_dict(raw, "argument")
        return cls(expression=decode(raw.get("expression")), spread=copy.deepcopy(raw.get("spread")))

    def to_dict(self) -> Dict[str, Any]:
        return {"spread": copy.deepcopy(self.spread), "expression": self.expression.to_dict()}


@_register
@dataclasses.dataclass(frozen=True)
class CallExpression(Node):
    type: ClassVar[str] = "CallExpression"

    span: Span
    callee: Node
    arguments: Tuple[ExprOrSpread, ...]
    extra: Dict[str, Any] = dataclasses.field(default_factory=dict)
    order: Tuple[str, ...] = _key_order()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CallExpression":
        return cls(
            span=Span.from_dict(raw.get("span")),
            callee=decode(raw.get("callee")),
            arguments=tuple(ExprOrSpread.from_dict(a) for a in _require_list(raw, "arguments")),
            extra=_extra(raw, "span", "callee", "arguments"),
            order=tuple(raw),
        )

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "type": self.type,
            "span": self.span.to_dict(),
            "callee": self.callee.to_dict(),
            "arguments": [a.to_dict() for a in self.arguments],
            **_dump_extra(self.extra),
        }
        return _in_order(out, self.order)


def decode(raw: Any) -> Node:
    """Decode one SWC node dict; unmodelled kinds become :class:`Opaque`.

    Raises :class:`NodeShapeError` when a modelled kind is malformed.
    """
    if isinstance(raw, dict):
        decoder = _DECODERS.get(raw.get("type"))
        if decoder is not None:
            return decoder(raw)
    return Opaque(raw)


def span_of(node: Optional[Node]) -> Optional[Span]:
    """Best-effort source span of ``node``."""
    if node is None:
        return None
    span = getattr(node, "span", None)
    if isinstance(span, Span):
        return span
    if isinstance(node, KeyValueProperty):
        return span_of(node.value) or span_of(node.key)
    if isinstance(node, Opaque) and isinstance(node.raw, dict):
        try:
            return Span.from_dict(node.raw.get("span"))
        except NodeShapeError:
            return None
    return None
