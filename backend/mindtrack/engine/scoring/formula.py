# engine/scoring/formula.py
"""
Évaluateur des formules de scoring custom — ZÉRO eval().

Grammaire :
    expr    := term (("+" | "-") term)*
    term    := factor (("*" | "/") factor)*
    factor  := ("+" | "-")* primary
    primary := NUMBER | NAME | "(" expr ")"

Les NAME sont résolus dans une table de variables numériques
({"total": 11, "q_3": 2, ...}). Toute erreur (syntaxe, variable inconnue,
division par zéro, résultat non fini, plus de MAX_NESTING parenthèses
imbriquées) lève FormulaError.
"""
import math
import re
from typing import Dict, List, Tuple

from mindtrack.shared.errors import FormulaError

TOKEN_PATTERN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|([A-Za-z_]\w*)|(.))")

NUMBER, NAME, OP, END = "number", "name", "op", "end"

MAX_NESTING = 50


def tokenize(formula: str) -> List[Tuple[str, str]]:
    tokens = []
    for number, name, op in TOKEN_PATTERN.findall(formula.strip()):
        if number:
            tokens.append((NUMBER, number))
        elif name:
            tokens.append((NAME, name))
        elif op:
            if op not in "+-*/()":
                raise FormulaError(f"Unexpected character: {op!r}")
            tokens.append((OP, op))
    tokens.append((END, ""))
    return tokens


class _Parser:

    def __init__(self, tokens: List[Tuple[str, str]], variables: Dict[str, float]):
        self.tokens = tokens
        self.variables = variables
        self.pos = 0
        self.depth = 0

    def peek(self) -> Tuple[str, str]:
        return self.tokens[self.pos]

    def take(self) -> Tuple[str, str]:
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def expr(self) -> float:
        value = self.term()
        while self.peek() in ((OP, "+"), (OP, "-")):
            _, op = self.take()
            right = self.term()
            value = value + right if op == "+" else value - right
        return value

    def term(self) -> float:
        value = self.factor()
        while self.peek() in ((OP, "*"), (OP, "/")):
            _, op = self.take()
            right = self.factor()
            if op == "*":
                value = value * right
            else:
                if right == 0:
                    raise FormulaError("Division by zero")
                value = value / right
        return value

    def factor(self) -> float:
        sign = 1.0
        while self.peek() in ((OP, "+"), (OP, "-")):
            if self.take()[1] == "-":
                sign = -sign
        return sign * self.primary()

    def primary(self) -> float:
        kind, text = self.take()
        if kind == NUMBER:
            return float(text)
        if kind == NAME:
            if text not in self.variables:
                raise FormulaError(f"Unknown variable: {text}")
            try:
                return float(self.variables[text])
            except (TypeError, ValueError):
                raise FormulaError(f"Variable {text} is not numeric")
        if (kind, text) == (OP, "("):
            self.depth += 1
            if self.depth > MAX_NESTING:
                raise FormulaError("Formula is nested too deeply")
            value = self.expr()
            self.depth -= 1
            if self.take() != (OP, ")"):
                raise FormulaError("Missing closing parenthesis")
            return value
        raise FormulaError(f"Unexpected token: {text or 'end of formula'}")


def evaluate_formula(formula: str, variables: Dict[str, float]) -> float:
    if not formula or not formula.strip():
        raise FormulaError("Empty formula")

    parser = _Parser(tokenize(formula), variables)
    value = parser.expr()
    if parser.peek()[0] != END:
        raise FormulaError(f"Unexpected token: {parser.peek()[1]}")
    if not math.isfinite(value):
        raise FormulaError("Formula result is not a finite number")
    return value
