# -*- coding: utf-8 -*-
"""Builders for SWC AST dicts, shaped like `@swc/core` parseSync output.

Used by the test suites; positions are only as precise as each test needs.
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple


def span(start: int = 0, end: Optional[int] = None) -> Dict[str, int]:
    return {"start": start, "end": start if end is None else end, "ctxt": 0}


def ident(value: str, start: int = 0) -> Dict[str, Any]:
    return {"type": "Identifier", "span": span(start, start + len(value)), "value": value, "optional": False}


def string(value: str, start: int = 0) -> Dict[str, Any]:
    raw = json.dumps(value)
    return {"type": "StringLiteral", "span": span(start, start + len(raw)), "value": value, "raw": raw}


def template(text: str, start: int = 0) -> Dict[str, Any]:
    return {
        "type": "TemplateLiteral",
        "span": span(start, start + len(text) + 2),
        "expressions": [],
        "quasis": [{"type": "TemplateElement", "span": span(start + 1, start + 1 + len(text)), "tail": True, "cooked": text, "raw": text}],
    }


def expression_container(expression: Dict[str, Any], start: int = 0) -> Dict[str, Any]:
    return {"type": "JSXExpressionContainer", "span": span(start, start + 2), "expression": expression}


def jsx_attr(name: str, value: Optional[Dict[str, Any]], start: int = 0) -> Dict[str, Any]:
    end = value["span"]["end"] if value and "span" in value else start + len(name)
    return {"type": "JSXAttribute", "span": span(start, end), "name": ident(name, start), "value": value}


def jsx_attrs(*pairs: Tuple[str, str], start: int = 18) -> List[Dict[str, Any]]:
    """Plain `name="value"` attributes laid out left to right."""
    out = []
    pos = start
    for name, value in pairs:
        literal = string(value, pos + len(name) + 1)
        out.append(jsx_attr(name, literal, pos))
        pos = literal["span"]["end"] + 1
    return out


def jsx_member(obj: str, prop: str) -> Dict[str, Any]:
    return {"type": "JSXMemberExpression", "object": ident(obj, 1), "property": ident(prop, 2 + len(obj))}


def jsx_element(name: Any, attributes: List[Dict[str, Any]], children: Optional[List[Any]] = None) -> Dict[str, Any]:
    name_node = ident(name, 1) if isinstance(name, str) else name
    end = attributes[-1]["span"]["end"] + 3 if attributes else 40
    return {
        "type": "JSXElement",
        "span": span(0, end),
        "opening": {
            "type": "JSXOpeningElement",
            "name": name_node,
            "span": span(0, end),
            "attributes": attributes,
            "selfClosing": children is None,
            "typeArguments": None,
        },
        "children": children or [],
        "closing": None,
    }


def kv(key: str, value: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "KeyValueProperty", "key": ident(key), "value": value}


def obj(*properties: Dict[str, Any], start: int = 0) -> Dict[str, Any]:
    return {"type": "ObjectExpression", "span": span(start, start + 2), "properties": list(properties)}


def props(*pairs: Tuple[str, str], start: int = 20) -> List[Dict[str, Any]]:
    """Plain `key: 'value'` properties laid out left to right."""
    out = []
    pos = start
    for key, value in pairs:
        literal = string(value, pos + len(key) + 2)
        out.append({"type": "KeyValueProperty", "key": ident(key, pos), "value": literal})
        pos = literal["span"]["end"] + 2
    return out


def member(obj_name: str, prop: str) -> Dict[str, Any]:
    return {"type": "MemberExpression", "span": span(0, len(obj_name) + len(prop) + 1), "object": ident(obj_name), "property": ident(prop, len(obj_name) + 1)}


def call(callee: Any, *arguments: Dict[str, Any], spread: bool = False) -> Dict[str, Any]:
    callee_node = ident(callee) if isinstance(callee, str) else callee
    return {
        "type": "CallExpression",
        "span": span(0, 60),
        "ctxt": 0,
        "callee": callee_node,
        "arguments": [{"spread": span(0, 3) if spread else None, "expression": a} for a in arguments],
        "typeArguments": None,
    }


def module(*expressions: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "Module",
        "span": span(0, 100),
        "body": [{"type": "ExpressionStatement", "span": span(0, 100), "expression": e} for e in expressions],
        "interpreter": None,
    }


# ── Readers ──────────────────────────────────────────────────────────────────

def attribute_pairs(element: Dict[str, Any]) -> List[Tuple[str, Any]]:
    """(name, string value or None) for every attribute of a JSXElement dict."""
    out = []
    for attr in element["opening"]["attributes"]:
        value = attr.get("value") or {}
        out.append((attr["name"]["value"], value.get("value") if value.get("type") == "StringLiteral" else None))
    return out


def property_pairs(obj_node: Dict[str, Any]) -> List[Tuple[str, Any]]:
    """(key, string value or None) for every KeyValueProperty of an ObjectExpression dict."""
    out = []
    for prop in obj_node["properties"]:
        value = prop.get("value") or {}
        out.append((prop["key"]["value"], value.get("value") if value.get("type") == "StringLiteral" else None))
    return out
