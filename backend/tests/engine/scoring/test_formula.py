# tests/engine/scoring/test_formula.py
"""
Tests unitaires pour engine.scoring.formula.evaluate_formula()

Couverture :
    - Priorité des opérateurs, parenthèses, unaires
    - Résolution des variables
    - Erreurs : variable inconnue, division par zéro, syntaxe, caractère interdit
"""
import pytest

from mindtrack.engine.scoring.formula import MAX_NESTING, evaluate_formula, tokenize
from mindtrack.shared.errors import FormulaError

pytestmark = pytest.mark.engine


class TestEvaluation:
    @pytest.mark.parametrize("formula, expected", [
        ("1 + 2 * 3", 7.0),
        ("(1 + 2) * 3", 9.0),
        ("10 / 4", 2.5),
        ("-3 + 5", 2.0),
        ("2 * -(1 + 1)", -4.0),
        (".5 * 4", 2.0),
        ("  total * 2  ", 22.0),
    ])
    def test_arithmetique(self, formula, expected):
        assert evaluate_formula(formula, {"total": 11}) == expected

    def test_variables(self):
        variables = {"total": 11, "q_1": 2, "bonus": 1.5}
        assert evaluate_formula("total + q_1 * bonus", variables) == 14.0

    def test_signes_unaires_en_serie(self):
        assert evaluate_formula("-" * 5000 + "total", {"total": 11}) == 11.0
        assert evaluate_formula("-" * 5001 + "total", {"total": 11}) == -11.0

    def test_imbrication_a_la_limite(self):
        formula = "(" * MAX_NESTING + "total" + ")" * MAX_NESTING
        assert evaluate_formula(formula, {"total": 11}) == 11.0

    def test_tokenize(self):
        assert tokenize("q_1*2") == [("name", "q_1"), ("op", "*"), ("number", "2"), ("end", "")]


class TestErreurs:
    @pytest.mark.parametrize("formula", ["", "   ", None])
    def test_formule_vide(self, formula):
        with pytest.raises(FormulaError):
            evaluate_formula(formula, {})

    def test_variable_inconnue(self):
        with pytest.raises(FormulaError, match="Unknown variable: missing"):
            evaluate_formula("total + missing", {"total": 1})

    def test_division_par_zero(self):
        with pytest.raises(FormulaError, match="Division by zero"):
            evaluate_formula("total / 0", {"total": 1})

    def test_parenthese_manquante(self):
        with pytest.raises(FormulaError, match="Missing closing parenthesis"):
            evaluate_formula("(1 + 2", {})

    def test_jeton_en_trop(self):
        with pytest.raises(FormulaError):
            evaluate_formula("1 2", {})

    def test_caractere_interdit(self):
        with pytest.raises(FormulaError, match="Unexpected character"):
            evaluate_formula("__import__('os')", {})

    def test_variable_non_numerique(self):
        with pytest.raises(FormulaError, match="not numeric"):
            evaluate_formula("label * 2", {"label": "high"})

    @pytest.mark.parametrize("depth", [MAX_NESTING + 1, 5000])
    def test_imbrication_excessive(self, depth):
        formula = "(" * depth + "total" + ")" * depth
        with pytest.raises(FormulaError, match="nested too deeply"):
            evaluate_formula(formula, {"total": 1})
