# -*- coding: utf-8 -*-
"""Depth-first driver over an SWC AST in JSON form.

Subclasses override :meth:`Visitor.visit_jsx_element` and/or
:meth:`Visitor.visit_call_expression`. The driver folds the whole tree,
children before parents, and hands every ``JSXElement`` and
``CallExpression`` to the matching hook exactly once as a typed node. When a
hook returns the very node it was given, the folded dict is kept; otherwise
the returned node is encoded in its place.

The input tree is never mutated: folding builds new containers. The walk
keeps its own stack, so tree depth is not bounded by the interpreter's
recursion limit.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Tuple, Union

from .nodes import CallExpression, JSXElement, Node, NodeShapeError
from .utils.logging import compact_json, injector_logger as logger

Container = Union[Dict[str, Any], List[Any]]


class _Frame:
    """One dict or list being folded: its copy and the children still to visit."""

    __slots__ = ("out", "pending", "parent", "slot")

    def __init__(self, raw: Container, parent: Container, slot: Any) -> None:
        if isinstance(raw, dict):
            self.out: Container = {}
            self.pending: Iterator[Tuple[Any, Any]] = iter(raw.items())
        else:
            self.out = [None] * len(raw)
            self.pending = enumerate(raw)
        self.parent = parent
        self.slot = slot


class Visitor:
    """Host traversal with the two node hooks the id injector needs."""

    def visit_jsx_element(self, element: JSXElement) -> JSXElement:
        return element

    def visit_call_expression(self, expression: CallExpression) -> CallExpression:
        return expression

    def visit_program(self, program: Dict[str, Any]) -> Dict[str, Any]:
        """Fold a ``Module`` or ``Script`` dict and return the rewritten copy."""
        return self.fold(program)

    def fold(self, raw: Any) -> Any:
        if not isinstance(raw, (dict, list)):
            return raw
        root: List[Any] = [None]
        stack = [_Frame(raw, root, 0)]
        while stack:
            frame = stack[-1]
            child = next(frame.pending, None)
            if child is None:
                stack.pop()
                frame.parent[frame.slot] = self._finish(frame.out)
                continue
            key, value = child
            # placeholder first, so dict keys keep their input order
            frame.out[key] = value
            if isinstance(value, (dict, list)):
                stack.append(_Frame(value, frame.out, key))
        return root[0]

    def _finish(self, folded: Container) -> Any:
        if not isinstance(folded, dict):
            return folded
        kind = folded.get("type")
        if kind == JSXElement.type:
            return self._offer(folded, JSXElement.from_dict, self.visit_jsx_element)
        if kind == CallExpression.type:
            return self._offer(folded, CallExpression.from_dict, self.visit_call_expression)
        return folded

    def _offer(
        self,
        folded: Dict[str, Any],
        decoder: Callable[[Dict[str, Any]], Node],
        hook: Callable[[Any], Node],
    ) -> Dict[str, Any]:
        try:
            node = decoder(folded)
        except NodeShapeError as e:
            logger.debug("Leaving malformed %s untouched: %s %s", folded.get("type"), e, compact_json(folded, limit=200))
            return folded
        except RecursionError:
            logger.warning("Leaving %s untouched: nested too deeply to decode", folded.get("type"))
            return folded
        result = hook(node)
        if result is node:
            return folded
        try:
            return result.to_dict()
        except RecursionError:
            logger.warning("Leaving %s untouched: nested too deeply to encode", folded.get("type"))
            return folded
