"""Exact discrete probability distributions for dice formulas like ``3d6+4``."""

from .dice import Dice, ProbAll, evaluate, summarize
from .errors import DiceBuildingError, DiceError, NegativeSampleCount
from .formula import (
    Absolute,
    Constant,
    DivisionCompound,
    Explode,
    Expression,
    FairDie,
    MaxCompound,
    MinCompound,
    ProductCompound,
    SampleSumCompound,
    SumCompound,
)
from .formula_parser import parse_formula


def build_from_string(text: str) -> Dice:
    return evaluate(parse_formula(text))
