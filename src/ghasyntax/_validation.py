from __future__ import annotations

from ruamel.yaml import YAML
from ruamel.yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from ._errors import ShapeMismatchError
from ._pos import Bool, Float, Int, Pos, String, Value

_NULL_TAG = "tag:yaml.org,2002:null"
_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"

# Builds plain Python scalars from nodes the composer has already tagged
_constructor = YAML(typ="safe", pure=True).constructor


def pos_of(node: Node) -> Pos:
    """Return the 1-based position where a node starts"""
    return Pos(node.start_mark.line + 1, node.start_mark.column + 1)


def is_null(node: Node) -> bool:
    """Checks if a node is a YAML null, e.g. a key with no value"""
    return isinstance(node, ScalarNode) and node.tag == _NULL_TAG


def describe(node: Node) -> str:
    """Return what a node is for use in exception messages"""
    match node:
        case MappingNode():
            return "a mapping"
        case SequenceNode():
            return "a sequence"
        case _ if is_null(node):
            return "null"
        case _:
            return f"'{node.value}'"


def to_mapping(node: Node, location: str) -> MappingNode:
    """Checks if a node is a mapping

    Args:
        node: the node to check
        location: location of the node to use in exception message

    Returns:
        the same node

    Raises:
        ShapeMismatchError: if it's not a mapping
    """
    if isinstance(node, MappingNode):
        return node
    raise ShapeMismatchError(
        f"Expected a mapping at '{location}' but found {describe(node)}", pos_of(node)
    )


def to_sequence(node: Node, location: str) -> SequenceNode:
    """Checks if a node is a sequence

    Args:
        node: the node to check
        location: location of the node to use in exception message

    Returns:
        the same node

    Raises:
        ShapeMismatchError: if it's not a sequence
    """
    if isinstance(node, SequenceNode):
        return node
    raise ShapeMismatchError(
        f"Expected a sequence at '{location}' but found {describe(node)}", pos_of(node)
    )


def to_string(node: Node, location: str) -> String:
    """Converts a scalar node to a string with its position

    Numbers and booleans are kept as they were written.

    Args:
        node: the node to convert
        location: location of the node to use in exception message

    Returns:
        the string

    Raises:
        ShapeMismatchError: if it's not a scalar or is null
    """
    if isinstance(node, ScalarNode) and not is_null(node):
        return Value(node.value, pos_of(node))
    raise ShapeMismatchError(
        f"Expected a string at '{location}' but found {describe(node)}", pos_of(node)
    )


def to_strings(node: Node, location: str) -> tuple[String, ...]:
    """Converts a sequence of scalars, or a single scalar, to strings

    Args:
        node: the node to convert
        location: location of the node to use in exception message

    Returns:
        the strings in source order

    Raises:
        ShapeMismatchError: if it's not a scalar or a sequence of scalars
    """
    if isinstance(node, ScalarNode) and not is_null(node):
        return (to_string(node, location),)
    sequence = to_sequence(node, location)
    return tuple(
        to_string(element, f"{location}[{i}]")
        for i, element in enumerate(sequence.value)
    )


def _to_tagged(node: Node, location: str, expected: str, *tags: str) -> ScalarNode:
    if isinstance(node, ScalarNode) and node.tag in tags:
        return node
    raise ShapeMismatchError(
        f"Expected {expected} at '{location}' but found {describe(node)}", pos_of(node)
    )


def to_bool(node: Node, location: str) -> Bool:
    """Converts a scalar resolved as a YAML boolean

    Raises:
        ShapeMismatchError: if it's anything else, a quoted 'true' included
    """
    scalar = _to_tagged(node, location, "a boolean", _BOOL_TAG)
    return Value(_constructor.construct_yaml_bool(scalar), pos_of(node))


def to_int(node: Node, location: str) -> Int:
    """Converts a scalar resolved as a YAML integer

    Raises:
        ShapeMismatchError: if it's not an integer
    """
    scalar = _to_tagged(node, location, "an integer", _INT_TAG)
    return Value(_constructor.construct_yaml_int(scalar), pos_of(node))


def to_float(node: Node, location: str) -> Float:
    """Converts a scalar resolved as a YAML number, integers included

    Raises:
        ShapeMismatchError: if it's not a number
    """
    scalar = _to_tagged(node, location, "a number", _FLOAT_TAG, _INT_TAG)
    if scalar.tag == _INT_TAG:
        return Value(float(_constructor.construct_yaml_int(scalar)), pos_of(node))
    return Value(_constructor.construct_yaml_float(scalar), pos_of(node))
