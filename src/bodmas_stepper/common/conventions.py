"""Display labels and colors for precedence rules under regional mnemonics."""
from enum import Enum
from typing import Dict, Union

from bodmas_stepper.common.models import OrderRule


class OrderConvention(str, Enum):
    """Regional mnemonics for the same precedence order."""

    BODMAS = "bodmas"
    BIRDMAS = "birdmas"
    PEMDAS = "pemdas"


CONVENTION_LABELS: Dict[OrderConvention, Dict[OrderRule, str]] = {
    OrderConvention.BODMAS: {
        OrderRule.GROUPING: "Brackets",
        OrderRule.EXPONENTS: "Orders",
        OrderRule.MULTIPLICATION_DIVISION: "Division/Multiplication",
        OrderRule.ADDITION_SUBTRACTION: "Addition/Subtraction",
    },
    OrderConvention.BIRDMAS: {
        OrderRule.GROUPING: "Brackets",
        OrderRule.EXPONENTS: "Indices/Roots",
        OrderRule.MULTIPLICATION_DIVISION: "Division/Multiplication",
        OrderRule.ADDITION_SUBTRACTION: "Addition/Subtraction",
    },
    OrderConvention.PEMDAS: {
        OrderRule.GROUPING: "Parentheses",
        OrderRule.EXPONENTS: "Exponents",
        OrderRule.MULTIPLICATION_DIVISION: "Multiplication/Division",
        OrderRule.ADDITION_SUBTRACTION: "Addition/Subtraction",
    },
}

RULE_COLORS: Dict[OrderRule, str] = {
    OrderRule.GROUPING: "#5e81ac",
    OrderRule.EXPONENTS: "#bf616a",
    OrderRule.MULTIPLICATION_DIVISION: "#ebcb8b",
    OrderRule.ADDITION_SUBTRACTION: "#a3be8c",
}


def get_rule_label(
    rule: Union[OrderRule, str], convention: Union[OrderConvention, str] = OrderConvention.BODMAS
) -> str:
    """
    Return the name a mnemonic uses for a rule, e.g. "Brackets" or "Parentheses".

    :param rule: Rule tag, as enum or raw value such as ``"grouping"``
    :param convention: Mnemonic, as enum or raw value such as ``"pemdas"``

    :return: Display label
    :rtype: str
    :raises ValueError: If the rule or convention is unknown
    """
    return CONVENTION_LABELS[OrderConvention(convention)][OrderRule(rule)]


def get_rule_color(rule: Union[OrderRule, str]) -> str:
    """Return the hex color associated with a rule."""
    return RULE_COLORS[OrderRule(rule)]
