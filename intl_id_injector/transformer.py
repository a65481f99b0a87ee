# -*- coding: utf-8 -*-
"""FormatJS id injector pass.

Recognizes two message declaration shapes in an SWC AST:

- markup elements, e.g. ``<FormattedMessage defaultMessage="foo" />`` or
  ``<Intl.FormattedMessage ... />``, whose attributes form one message record;
- calls, e.g. ``defineMessages({...})`` or ``intl.formatMessage({...})``, whose
  first argument is one message record or a keyed set of records.

For each record the id is recomputed from ``defaultMessage`` and
``description`` (see :func:`intl_id_injector.message_id.generate_override_id`).
An existing ``id`` keeps its position and only gets a new value; otherwise an
``id`` field is appended after the last field. Every other field keeps its
value and position. Markup attributes that are not plain string pairs are
ignored; an object record holding such an entry is left unchanged.

The pass never raises on a syntactically valid tree. A node it cannot handle
is returned as the very same object.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .message_id import generate_override_id
from .nodes import (
    CallExpression,
    ExprOrSpread,
    Identifier,
    JSXAttribute,
    JSXElement,
    JSXMemberExpression,
    JSXOpeningElement,
    KeyValueProperty,
    MemberExpression,
    Node,
    ObjectExpression,
    Span,
    StringLiteral,
    span_of,
)
from .utils.logging import injector_logger as logger
from .utils.site_config import RewriterConfig
from .visitor import Visitor

ID_KEY = "id"
DEFAULT_MESSAGE_KEY = "defaultMessage"
DESCRIPTION_KEY = "description"

# (span, computed id, last existing field or None) -> new id field
FieldBuilder = Callable[[Span, str, Optional[Node]], Node]


@dataclasses.dataclass
class MessageScan:
    """What one linear pass over a record's fields found."""

    description: str = ""
    default_message: Optional[str] = None
    id_index: Optional[int] = None
    dynamic_default_message: bool = False
    dynamic_id: bool = False
    irregular_entry: bool = False

    def skip_reason(self, hash_missing_message: bool = True) -> Optional[str]:
        """Why the record must be left unchanged, or None if it can be rewritten."""
        if self.irregular_entry:
            return "entry is not a plain key with a string literal value"
        if self.dynamic_id:
            return "id is not a string literal"
        if self.default_message is not None:
            return None
        if self.dynamic_default_message:
            return "defaultMessage is not a string literal"
        if self.id_index is not None:
            return "id without a defaultMessage"
        if not hash_missing_message:
            return "no defaultMessage"
        return None


@dataclasses.dataclass
class RewriteStats:
    overridden: int = 0
    appended: int = 0
    skipped: int = 0

    @property
    def rewritten(self) -> int:
        return self.overridden + self.appended

    def reset(self) -> None:
        self.overridden = self.appended = self.skipped = 0

    def as_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


# ── Field helpers ─────────────────────────────────────────────────────────────

def field_key(field: Node) -> Optional[str]:
    """Name of an attribute or property, if it is a plain name."""
    match field:
        case JSXAttribute(name=Identifier(value=key)):
            return key
        case KeyValueProperty(key=Identifier(value=key) | StringLiteral(value=key)):
            return key
        case _:
            return None


def field_literal(field: Node) -> Optional[StringLiteral]:
    """Value of an attribute or property, if it is a plain string literal."""
    match field:
        case JSXAttribute(value=StringLiteral() as literal) | KeyValueProperty(value=StringLiteral() as literal):
            return literal
        case _:
            return None


def scan_fields(fields: Sequence[Node], plain_entries: bool = False) -> MessageScan:
    """One linear pass over a record's fields.

    Markup attributes that are not plain are ignored. With ``plain_entries``
    (object literal records) a single such entry marks the whole record as
    irregular.
    """
    scan = MessageScan()
    for i, field in enumerate(fields):
        key = field_key(field)
        literal = field_literal(field)
        if plain_entries and (key is None or literal is None):
            scan.irregular_entry = True
            return scan
        if key == DESCRIPTION_KEY:
            if literal is not None:
                scan.description = literal.value
        elif key == DEFAULT_MESSAGE_KEY:
            if literal is None:
                scan.dynamic_default_message = True
            else:
                scan.default_message = literal.value
                scan.dynamic_default_message = False
        elif key == ID_KEY:
            if literal is None:
                scan.dynamic_id = True
            else:
                scan.id_index = i
    return scan


def _end_span(fields: Sequence[Node], anchor: Optional[Span]) -> Span:
    if fields:
        last = fields[-1]
        literal = field_literal(last)
        span = literal.span if literal is not None else span_of(last)
        if span is not None:
            return span
    if anchor is not None:
        return anchor
    return Span(start=0, end=0)


def rewrite_fields(
    fields: Sequence[Node],
    build_field: FieldBuilder,
    anchor: Optional[Span] = None,
    hash_missing_message: bool = True,
    plain_entries: bool = False,
) -> Optional[Tuple[Node, ...]]:
    """Override or append the id of one message record.

    Returns the new field tuple, or None when the record stays as it is.
    ``anchor`` positions an id appended to an empty record; ``plain_entries``
    is passed on to :func:`scan_fields`.
    """
    scan = scan_fields(fields, plain_entries)
    if scan.skip_reason(hash_missing_message) is not None:
        return None

    computed_id = generate_override_id(scan.default_message, scan.description)
    if scan.id_index is not None:
        id_field = fields[scan.id_index]
        literal = field_literal(id_field)
        new_field = dataclasses.replace(id_field, value=literal.with_value(computed_id))
        return tuple(fields[: scan.id_index]) + (new_field,) + tuple(fields[scan.id_index + 1:])

    span = _end_span(fields, anchor).following()
    last = fields[-1] if fields else None
    return tuple(fields) + (build_field(span, computed_id, last),)


def _like_parts(like: Optional[Node]) -> Tuple[Optional[Identifier], Optional[StringLiteral]]:
    match like:
        case JSXAttribute(name=Identifier() as name, value=StringLiteral() as value):
            return name, value
        case KeyValueProperty(key=Identifier() as name, value=StringLiteral() as value):
            return name, value
        case _:
            return None, None


def jsx_id_attribute(span: Span, computed_id: str, like: Optional[Node] = None) -> JSXAttribute:
    like_name, like_value = _like_parts(like)
    return JSXAttribute(
        span=span,
        name=Identifier.synthesized(ID_KEY, span, like=like_name),
        value=StringLiteral.synthesized(computed_id, span, like=like_value),
    )


def id_property(span: Span, computed_id: str, like: Optional[Node] = None) -> KeyValueProperty:
    like_name, like_value = _like_parts(like)
    return KeyValueProperty(
        key=Identifier.synthesized(ID_KEY, span, like=like_name),
        value=StringLiteral.synthesized(computed_id, span, like=like_value),
    )


# ── The pass ──────────────────────────────────────────────────────────────────

class FormatJsTransformer(Visitor):
    """Visitor that rewrites FormatJS message ids in place."""

    def __init__(self, config: Optional[RewriterConfig] = None) -> None:
        self.config = config or RewriterConfig()
        self.stats = RewriteStats()

    def matches_component(self, name: Node) -> bool:
        match name:
            case Identifier(value=value):
                # bare component names, e.g. <FormattedMessage>
                return value in self.config.component_names
            case JSXMemberExpression(property=Identifier(value=value)):
                # nested component names, e.g. <Intl.FormattedMessage>
                return value in self.config.component_names
            case _:
                return False

    def matches_function(self, callee: Node) -> bool:
        match callee:
            case Identifier(value=value) | MemberExpression(property=Identifier(value=value)):
                return value in self.config.function_names
            case _:
                return False

    def visit_jsx_element(self, element: JSXElement) -> JSXElement:
        match element.opening:
            case JSXOpeningElement(name=name) as opening if self.matches_component(name):
                pass
            case _:
                return element

        anchor = span_of(name) or span_of(getattr(name, "property", None)) or opening.span.zero_width()
        attributes = self._transform_message(opening.attributes, jsx_id_attribute, anchor)
        if attributes is None:
            return element
        return dataclasses.replace(element, opening=dataclasses.replace(opening, attributes=attributes))

    def visit_call_expression(self, expression: CallExpression) -> CallExpression:
        if not self.matches_function(expression.callee):
            return expression

        match expression.arguments:
            case (ExprOrSpread(spread=None, expression=ObjectExpression() as argument), *rest):
                pass
            case _:
                logger.debug("Call to a message function without an object literal argument; left unchanged")
                return expression

        # Inspect the first property to tell a keyed set of messages from a
        # single message.
        match argument.properties:
            case (KeyValueProperty(value=ObjectExpression()), *_):
                new_argument = self._transform_message_set(argument)
            case (KeyValueProperty(), *_):
                properties = self._transform_message(
                    argument.properties, id_property, argument.span.zero_width(), plain_entries=True
                )
                new_argument = None if properties is None else dataclasses.replace(argument, properties=properties)
            case _:
                return expression

        if new_argument is None:
            return expression
        first = dataclasses.replace(expression.arguments[0], expression=new_argument)
        return dataclasses.replace(expression, arguments=(first, *rest))

    def _transform_message_set(self, messages: ObjectExpression) -> Optional[ObjectExpression]:
        properties = []
        changed = False
        for keyed in messages.properties:
            match keyed:
                case KeyValueProperty(value=ObjectExpression() as message):
                    fields = self._transform_message(
                        message.properties, id_property, message.span.zero_width(), plain_entries=True
                    )
                    if fields is not None:
                        keyed = dataclasses.replace(keyed, value=dataclasses.replace(message, properties=fields))
                        changed = True
            properties.append(keyed)
        if not changed:
            return None
        return dataclasses.replace(messages, properties=tuple(properties))

    def _transform_message(
        self,
        fields: Tuple[Node, ...],
        build_field: FieldBuilder,
        anchor: Optional[Span],
        plain_entries: bool = False,
    ) -> Optional[Tuple[Node, ...]]:
        """Rewrite one record and keep the counters and debug log in step."""
        new_fields = rewrite_fields(fields, build_field, anchor, self.config.hash_missing_message, plain_entries)
        if new_fields is None:
            self.stats.skipped += 1
            logger.debug(
                "Message left unchanged at %s: %s",
                anchor,
                scan_fields(fields, plain_entries).skip_reason(self.config.hash_missing_message),
            )
            return None
        if len(new_fields) > len(fields):
            self.stats.appended += 1
            logger.debug("Appended id %s at %s", field_literal(new_fields[-1]).value, anchor)
        else:
            self.stats.overridden += 1
            logger.debug("Overrode id at %s", anchor)
        return new_fields


def transform_program(program: Dict[str, Any], config: Optional[RewriterConfig] = None) -> Dict[str, Any]:
    """Rewrite every message declaration in an SWC ``Module``/``Script`` dict."""
    return FormatJsTransformer(config).visit_program(program)
