# -*- coding: utf-8 -*-
"""
Test suite for visitor.py (the traversal driver).
"""
from __future__ import annotations

import copy
import dataclasses
import unittest

from intl_id_injector import testing as t
from intl_id_injector.message_id import generate_override_id
from intl_id_injector.nodes import CallExpression, Identifier, JSXElement
from intl_id_injector.transformer import transform_program
from intl_id_injector.visitor import Visitor


class RecordingVisitor(Visitor):
    def __init__(self):
        self.seen = []

    def visit_jsx_element(self, element: JSXElement) -> JSXElement:
        self.seen.append(("jsx", element.opening.name.value))
        return element

    def visit_call_expression(self, expression: CallExpression) -> CallExpression:
        self.seen.append(("call", expression.callee.value))
        return expression


class RenamingVisitor(Visitor):
    def visit_call_expression(self, expression: CallExpression) -> CallExpression:
        callee = expression.callee
        if isinstance(callee, Identifier) and callee.value == "old":
            return dataclasses.replace(expression, callee=dataclasses.replace(callee, value="new"))
        return expression


class TestVisitor(unittest.TestCase):

    def test_base_visitor_is_identity(self):
        program = t.module(t.jsx_element("FormattedMessage", t.jsx_attrs(("defaultMessage", "foo"))), t.call("f", t.obj()))
        out = Visitor().visit_program(program)
        self.assertEqual(out, program)
        self.assertIsNot(out, program)

    def test_every_node_visited_once_children_first(self):
        inner_call = t.call("inner")
        outer_call = t.call("outer", inner_call)
        inner_el = t.jsx_element("Inner", [])
        outer_el = t.jsx_element("Outer", [], children=[t.expression_container(inner_el)])
        visitor = RecordingVisitor()
        visitor.visit_program(t.module(outer_call, outer_el))
        self.assertEqual(
            visitor.seen,
            [("call", "inner"), ("call", "outer"), ("jsx", "Inner"), ("jsx", "Outer")],
        )

    def test_replacement_is_encoded(self):
        program = t.module(t.call("old", t.string("x")), t.call("keep"))
        before = copy.deepcopy(program)
        out = RenamingVisitor().visit_program(program)
        self.assertEqual(out["body"][0]["expression"]["callee"]["value"], "new")
        self.assertEqual(out["body"][0]["expression"]["arguments"], before["body"][0]["expression"]["arguments"])
        self.assertEqual(out["body"][1], before["body"][1])
        self.assertEqual(program, before)

    def test_malformed_node_is_left_alone(self):
        broken = t.call("old")
        del broken["span"]
        program = t.module(broken)
        out = RenamingVisitor().visit_program(program)
        self.assertEqual(out, program)

    def test_scalars_and_lists_pass_through(self):
        visitor = Visitor()
        self.assertEqual(visitor.fold([1, "a", None, {"x": [True]}]), [1, "a", None, {"x": [True]}])

    def test_deeply_nested_tree(self):
        """A long `"x" + "x" + ...` chain is folded without hitting the recursion limit."""
        depth = 5000
        expression = t.jsx_element("FormattedMessage", t.jsx_attrs(("defaultMessage", "foo")))
        for _ in range(depth):
            expression = {"type": "BinaryExpression", "span": t.span(), "operator": "+", "left": expression, "right": t.string("x")}
        out = transform_program(t.module(expression))

        node = out["body"][0]["expression"]
        for _ in range(depth):
            self.assertEqual(node["type"], "BinaryExpression")
            node = node["left"]
        self.assertEqual(t.attribute_pairs(node), [("defaultMessage", "foo"), ("id", generate_override_id("foo"))])

    def test_too_deep_to_encode_is_left_alone(self):
        chain = t.string("x")
        for _ in range(5000):
            chain = {"type": "BinaryExpression", "span": t.span(), "operator": "+", "left": chain, "right": t.string("x")}
        call = t.call("formatMessage", t.obj(*t.props(("defaultMessage", "foo"))), chain)
        with self.assertLogs("intl_id_injector", level="WARNING"):
            out = transform_program(t.module(call))
        rewritten = out["body"][0]["expression"]
        self.assertEqual(t.property_pairs(rewritten["arguments"][0]["expression"]), [("defaultMessage", "foo")])
        self.assertEqual(rewritten["arguments"][1]["expression"]["right"]["type"], "StringLiteral")

    def test_fold_keeps_key_order(self):
        raw = {"b": 1, "type": "Thing", "a": [{"z": 1, "y": 2}]}
        out = Visitor().fold(raw)
        self.assertEqual(list(out), ["b", "type", "a"])
        self.assertEqual(list(out["a"][0]), ["z", "y"])


if __name__ == "__main__":
    unittest.main()
