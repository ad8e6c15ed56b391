"""Condition evaluator for ``require``, ``if`` and ``auto_enter_if`` strings.

Conditions are a tiny expression language written against four bound
names -- ``counters``, ``tracks``, ``route`` and ``player``::

    counters.samples >= 2 && counters.shutdown_ok == false
    tracks['eco.pollution'].value >= 7
    route == 'policy.pr' || player.attributes.charisma > 12

Expressions are tokenized, parsed by a recursive-descent parser into a
small AST, and walked by :func:`evaluate`.  Nothing is ever handed to
Python's ``eval``: rule documents are content, not code.

Evaluation fails closed.  A malformed expression, an unknown name or
property, or an operator applied to incompatible values makes the whole
condition ``False`` and logs a warning.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Mapping, Union

from scenario_engine.engine.core.game_state import GameState

logger = logging.getLogger(__name__)


class ConditionError(Exception):
    """Base class for condition failures."""


class ConditionSyntaxError(ConditionError):
    """The expression could not be tokenized or parsed."""


class ConditionEvaluationError(ConditionError):
    """The expression parsed but could not be evaluated against a state."""


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Token:
    kind: str  # "number", "string", "ident", "op", "eof"
    text: str
    pos: int


_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<number>\d+(?:\.\d+)?|\.\d+)
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<ident>[A-Za-z_$][A-Za-z0-9_$]*)
  | (?P<op>===|!==|==|!=|<=|>=|&&|\|\||[<>!+\-*/%().\[\]])
    """,
    re.VERBOSE,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def tokenize(expression: str) -> list[Token]:
    """Split *expression* into tokens, ending with an ``eof`` token."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(expression):
        match = _TOKEN_RE.match(expression, pos)
        if match is None:
            raise ConditionSyntaxError(
                f"Unexpected character {expression[pos]!r} at position {pos}"
            )
        kind = match.lastgroup
        if kind != "ws":
            tokens.append(Token(kind, match.group(), pos))
        pos = match.end()
    tokens.append(Token("eof", "", pos))
    return tokens


def _unquote(text: str) -> str:
    body = text[1:-1]
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)


# ---------------------------------------------------------------------------
# AST
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Name:
    name: str


@dataclass(frozen=True)
class Member:
    target: "Node"
    key: "Node"


@dataclass(frozen=True)
class Unary:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class Binary:
    op: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class Logical:
    op: str  # "&&" or "||"
    left: "Node"
    right: "Node"


Node = Union[Literal, Name, Member, Unary, Binary, Logical]

_KEYWORD_LITERALS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class _Parser:
    """Recursive-descent parser, one method per precedence level."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Node:
        node = self._or()
        token = self._peek()
        if token.kind != "eof":
            raise ConditionSyntaxError(
                f"Unexpected {token.text!r} at position {token.pos}"
            )
        return node

    # -- token helpers --------------------------------------------------------

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.kind != "eof":
            self._pos += 1
        return token

    def _accept(self, *ops: str) -> Token | None:
        token = self._peek()
        if token.kind == "op" and token.text in ops:
            return self._advance()
        return None

    def _expect(self, op: str) -> Token:
        token = self._accept(op)
        if token is None:
            found = self._peek()
            raise ConditionSyntaxError(
                f"Expected {op!r} at position {found.pos}, found {found.text or 'end of input'!r}"
            )
        return token

    # -- grammar --------------------------------------------------------------

    def _or(self) -> Node:
        node = self._and()
        while self._accept("||"):
            node = Logical("||", node, self._and())
        return node

    def _and(self) -> Node:
        node = self._equality()
        while self._accept("&&"):
            node = Logical("&&", node, self._equality())
        return node

    def _equality(self) -> Node:
        node = self._comparison()
        while (token := self._accept("==", "!=", "===", "!==")) is not None:
            node = Binary(token.text, node, self._comparison())
        return node

    def _comparison(self) -> Node:
        node = self._additive()
        while (token := self._accept("<", "<=", ">", ">=")) is not None:
            node = Binary(token.text, node, self._additive())
        return node

    def _additive(self) -> Node:
        node = self._term()
        while (token := self._accept("+", "-")) is not None:
            node = Binary(token.text, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (token := self._accept("*", "/", "%")) is not None:
            node = Binary(token.text, node, self._unary())
        return node

    def _unary(self) -> Node:
        token = self._accept("!", "-")
        if token is not None:
            return Unary(token.text, self._unary())
        return self._postfix()

    def _postfix(self) -> Node:
        node = self._primary()
        while True:
            if self._accept("."):
                token = self._advance()
                if token.kind != "ident":
                    raise ConditionSyntaxError(
                        f"Expected property name after '.' at position {token.pos}"
                    )
                node = Member(node, Literal(token.text))
            elif self._accept("["):
                key = self._or()
                self._expect("]")
                node = Member(node, key)
            else:
                return node

    def _primary(self) -> Node:
        token = self._advance()
        if token.kind == "number":
            text = token.text
            return Literal(float(text) if "." in text else int(text))
        if token.kind == "string":
            return Literal(_unquote(token.text))
        if token.kind == "ident":
            if token.text in _KEYWORD_LITERALS:
                return Literal(_KEYWORD_LITERALS[token.text])
            return Name(token.text)
        if token.kind == "op" and token.text == "(":
            node = self._or()
            self._expect(")")
            return node
        raise ConditionSyntaxError(
            f"Unexpected {token.text or 'end of input'!r} at position {token.pos}"
        )


@lru_cache(maxsize=512)
def parse_condition(expression: str) -> Node:
    """Parse *expression* into an AST.

    Raises
    ------
    ConditionSyntaxError
        If the expression is empty or malformed.
    """
    if not expression or not expression.strip():
        raise ConditionSyntaxError("Empty condition")
    return _Parser(tokenize(expression)).parse()


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def build_scope(state: GameState) -> dict[str, Any]:
    """Expose *state* under the four bound names as plain Python data."""
    return {
        "counters": dict(state.counters),
        "tracks": {tid: track.model_dump() for tid, track in state.tracks.items()},
        "route": state.route,
        "player": state.player.model_dump(),
    }


def truthy(value: Any) -> bool:
    """JavaScript-style truthiness: ``0``, ``""``, null and NaN are false."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0 and not math.isnan(value)
    if isinstance(value, str):
        return value != ""
    return True


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float))


def _member(target: Any, key: Any) -> Any:
    if isinstance(target, Mapping):
        if key not in target:
            raise ConditionEvaluationError(f"Undefined property {key!r}")
        return target[key]
    if isinstance(target, (list, str)):
        if key == "length":
            return len(target)
        if isinstance(key, int) and not isinstance(key, bool):
            if 0 <= key < len(target):
                return target[key]
            raise ConditionEvaluationError(f"Index {key} out of range")
    raise ConditionEvaluationError(
        f"Cannot read property {key!r} of {type(target).__name__}"
    )


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    if _is_number(left) != _is_number(right):
        return False
    return left == right


def _binary(op: str, left: Any, right: Any) -> Any:
    if op in ("==", "==="):
        return left == right if op == "==" else _strict_equals(left, right)
    if op in ("!=", "!=="):
        return left != right if op == "!=" else not _strict_equals(left, right)

    if op == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right

    if op in ("<", "<=", ">", ">="):
        comparable = (_is_number(left) and _is_number(right)) or (
            isinstance(left, str) and isinstance(right, str)
        )
        if not comparable:
            raise ConditionEvaluationError(
                f"Cannot compare {left!r} {op} {right!r}"
            )
        if op == "<":
            return left < right
        if op == "<=":
            return left <= right
        if op == ">":
            return left > right
        return left >= right

    if not (_is_number(left) and _is_number(right)):
        raise ConditionEvaluationError(
            f"Operator {op!r} needs numbers, got {left!r} and {right!r}"
        )
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if right == 0:
        raise ConditionEvaluationError("Division by zero")
    if op == "/":
        return left / right
    return math.fmod(left, right)


def _evaluate_node(node: Node, scope: Mapping[str, Any]) -> Any:
    if isinstance(node, Literal):
        return node.value
    if isinstance(node, Name):
        if node.name not in scope:
            raise ConditionEvaluationError(f"Unknown name {node.name!r}")
        return scope[node.name]
    if isinstance(node, Member):
        return _member(_evaluate_node(node.target, scope), _evaluate_node(node.key, scope))
    if isinstance(node, Unary):
        value = _evaluate_node(node.operand, scope)
        if node.op == "!":
            return not truthy(value)
        if not _is_number(value):
            raise ConditionEvaluationError(f"Cannot negate {value!r}")
        return -value
    if isinstance(node, Logical):
        left = _evaluate_node(node.left, scope)
        if node.op == "&&":
            return _evaluate_node(node.right, scope) if truthy(left) else left
        return left if truthy(left) else _evaluate_node(node.right, scope)
    return _binary(
        node.op, _evaluate_node(node.left, scope), _evaluate_node(node.right, scope)
    )


def evaluate_in_scope(expression: str, scope: Mapping[str, Any]) -> bool:
    """Evaluate *expression* against an explicit name -> value mapping.

    Unlike :func:`evaluate` this raises :class:`ConditionError` on failure.
    """
    tree = parse_condition(expression)
    try:
        return truthy(_evaluate_node(tree, scope))
    except (TypeError, ArithmeticError, RecursionError) as exc:
        raise ConditionEvaluationError(str(exc)) from exc


def evaluate(expression: str, state: GameState) -> bool:
    """Evaluate a condition against *state*; any failure yields ``False``."""
    try:
        return evaluate_in_scope(expression, build_scope(state))
    except (ConditionError, RecursionError) as exc:
        logger.warning("Error evaluating condition %r: %s", expression, exc)
        return False
