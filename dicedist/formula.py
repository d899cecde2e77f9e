import enum
import typing
from fractions import Fraction

from .errors import NegativeSampleCount

Value = int
Prob = Fraction
ProbabilityTable = typing.Dict[Value, Prob]


class Combinator(enum.Enum):
    SUM = "+"
    PRODUCT = "*"
    DIVISION = "/"
    MAX = "max"
    MIN = "min"


def rounded_div(lhs: Value, rhs: Value) -> Value:
    """Integer division rounding to the nearest integer, halves away from zero."""
    quotient, remainder = divmod(abs(lhs), abs(rhs))
    if 2 * remainder >= abs(rhs):
        quotient += 1
    return -quotient if (lhs < 0) != (rhs < 0) else quotient


def combine(kind: Combinator, lhs: Value, rhs: Value) -> Value:
    if kind is Combinator.SUM:
        return lhs + rhs
    elif kind is Combinator.PRODUCT:
        return lhs * rhs
    elif kind is Combinator.DIVISION:
        return rounded_div(lhs, rhs)
    elif kind is Combinator.MAX:
        return max(lhs, rhs)
    elif kind is Combinator.MIN:
        return min(lhs, rhs)
    raise ValueError("unknown combinator %s" % kind)


def merge_tables(
    target: ProbabilityTable, other: ProbabilityTable, factor: Prob = Fraction(1)
) -> None:
    for key, value in other.items():
        target.setdefault(key, Fraction(0))
        target[key] += value * factor


def convolve(
    table1: ProbabilityTable, table2: ProbabilityTable, kind: Combinator
) -> ProbabilityTable:
    result: ProbabilityTable = {}
    for key1, value1 in table1.items():
        for key2, value2 in table2.items():
            new_key = combine(kind, key1, key2)
            result.setdefault(new_key, Fraction(0))
            result[new_key] += value1 * value2
    return result


def convolve_all(
    tables: typing.Sequence[ProbabilityTable], kind: Combinator
) -> ProbabilityTable:
    if not tables:
        raise ValueError("cannot convolve an empty list of distributions")
    result = dict(tables[0])
    for table in tables[1:]:
        result = convolve(result, table, kind)
    return result


def sample_sum_convolve(
    count_table: ProbabilityTable, sample_table: ProbabilityTable
) -> ProbabilityTable:
    """Rolls ``sample_table`` a ``count_table``-distributed number of times and sums."""
    result: ProbabilityTable = {}
    # sum of `repetitions` independent samples, grown one convolution at a time
    repeated: ProbabilityTable = {0: Fraction(1)}
    repetitions = 0
    for count in sorted(count_table):
        if count < 0:
            raise NegativeSampleCount(count)
        while repetitions < count:
            repeated = convolve(repeated, sample_table, Combinator.SUM)
            repetitions += 1
        merge_tables(result, repeated, count_table[count])
    return result


def sample_sum_convolve_all(
    tables: typing.Sequence[ProbabilityTable],
) -> ProbabilityTable:
    if not tables:
        raise ValueError("cannot convolve an empty list of distributions")
    result = dict(tables[0])
    for table in tables[1:]:
        result = sample_sum_convolve(result, table)
    return result


def absolute_table(table: ProbabilityTable) -> ProbabilityTable:
    result: ProbabilityTable = {}
    for key, value in table.items():
        result.setdefault(abs(key), Fraction(0))
        result[abs(key)] += value
    return result


def explode_table(
    table: ProbabilityTable, threshold: Value, max_iterations: int
) -> ProbabilityTable:
    result: ProbabilityTable = {}
    # running totals of rolls that all exploded so far
    pending: ProbabilityTable = {0: Fraction(1)}
    for iteration in range(max_iterations + 1):
        may_explode = iteration < max_iterations
        exploded: ProbabilityTable = {}
        for total, total_prob in pending.items():
            for key, value in table.items():
                target = exploded if may_explode and key >= threshold else result
                target.setdefault(total + key, Fraction(0))
                target[total + key] += total_prob * value
        pending = exploded
        if not pending:
            break
    return result


class Expression:
    """A node of a dice formula such as ``max(2d6+4,d20)``.

    Trees are immutable values: two expressions are equal when they are
    structurally identical. ``probability_table`` computes the exact
    distribution, ``build`` bundles it with its statistics.
    """

    # binding strength used when rendering children
    precedence = 4

    def probability_table(self) -> ProbabilityTable:
        raise NotImplementedError

    def distribution(self) -> typing.List[typing.Tuple[Value, Prob]]:
        return sorted(self.probability_table().items())

    def build(self, clock: typing.Optional[typing.Callable[[], float]] = None):
        from .dice import evaluate

        return evaluate(self, clock=clock)

    @classmethod
    def from_string(cls, text: str) -> "Expression":
        from .formula_parser import parse_formula

        return parse_formula(text)

    def _key(self) -> tuple:
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return type(self) is type(other) and self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._key()))

    def __repr__(self) -> str:
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join(repr(arg) for arg in self._key()),
        )

    def __add__(self, other: "Expression") -> "SumCompound":
        return SumCompound(self, other)

    def __mul__(self, other: "Expression") -> "ProductCompound":
        return ProductCompound(self, other)

    def render_as_child(self, parent_precedence: int) -> str:
        return str(self)


class Constant(Expression):
    def __init__(self, value: Value) -> None:
        self.value = int(value)

    def probability_table(self) -> ProbabilityTable:
        return {self.value: Fraction(1)}

    def _key(self) -> tuple:
        return (self.value,)

    def __str__(self) -> str:
        return str(self.value)

    def render_as_child(self, parent_precedence: int) -> str:
        # "2*-3" does not lex, a sum or quotient takes the sign as is
        if self.value < 0 and parent_precedence >= ProductCompound.precedence:
            return "(%s)" % self.value
        return str(self.value)


class FairDie(Expression):
    """Uniform distribution over the integers ``min`` to ``max`` inclusive."""

    def __init__(self, min: Value, max: Value) -> None:
        if max < min:
            raise ValueError("die with maximum %s below minimum %s" % (max, min))
        self.min = int(min)
        self.max = int(max)

    def probability_table(self) -> ProbabilityTable:
        prob = Fraction(1, self.max - self.min + 1)
        return {value: prob for value in range(self.min, self.max + 1)}

    def _key(self) -> tuple:
        return (self.min, self.max)

    def __str__(self) -> str:
        # no notation exists for dice not starting at 1
        return "d%s" % self.max if self.min == 1 else ""


class Compound(Expression):
    symbol = ""

    def __init__(self, *children: Expression) -> None:
        if not children:
            raise ValueError("%s needs at least one child" % type(self).__name__)
        self.children = tuple(children)

    def _key(self) -> tuple:
        return self.children

    def __str__(self) -> str:
        return self.symbol.join(
            child.render_as_child(self.precedence) for child in self.children
        )

    def render_as_child(self, parent_precedence: int) -> str:
        if self.precedence <= parent_precedence:
            return "(%s)" % self
        return str(self)


class PairwiseCompound(Compound):
    kind: Combinator

    def probability_table(self) -> ProbabilityTable:
        return convolve_all(
            [child.probability_table() for child in self.children], self.kind
        )


class SumCompound(PairwiseCompound):
    """The sum of several expressions, like ``d6+3+d20``."""

    kind = Combinator.SUM
    symbol = "+"
    precedence = 0

    def __str__(self) -> str:
        parts = [child.render_as_child(self.precedence) for child in self.children]
        return parts[0] + "".join(
            part if part.startswith("-") else "+" + part for part in parts[1:]
        )


class DivisionCompound(PairwiseCompound):
    """Left-associative division rounded to the nearest integer, like ``d6/2``.

    A divisor that can come out as 0 raises ``ZeroDivisionError`` on evaluation.
    """

    kind = Combinator.DIVISION
    symbol = "/"
    precedence = 1


class ProductCompound(PairwiseCompound):
    kind = Combinator.PRODUCT
    symbol = "*"
    precedence = 2

    def __str__(self) -> str:
        # the lexer reads "-x" as (-1)*x
        first, rest = self.children[0], self.children[1:]
        if rest and isinstance(first, Constant) and first.value == -1:
            return "-" + "*".join(
                child.render_as_child(self.precedence) for child in rest
            )
        return super().__str__()


class SelectionCompound(PairwiseCompound):
    def __str__(self) -> str:
        return "%s(%s)" % (
            self.kind.value,
            ",".join(str(child) for child in self.children),
        )

    def render_as_child(self, parent_precedence: int) -> str:
        return str(self)


class MaxCompound(SelectionCompound):
    kind = Combinator.MAX


class MinCompound(SelectionCompound):
    kind = Combinator.MIN


class SampleSumCompound(Compound):
    """``a x b``: ``b`` is rolled ``a`` times independently and summed.

    Left-associative, so ``a x b x c`` is ``(a x b) x c``. ``2d6`` is
    ``SampleSumCompound(Constant(2), FairDie(1, 6))``; with a die on the
    left, ``d3xd6`` rolls one to three six-sided dice.
    """

    symbol = "x"
    precedence = 3

    def probability_table(self) -> ProbabilityTable:
        return sample_sum_convolve_all(
            [child.probability_table() for child in self.children]
        )


class Absolute(Expression):
    """Negative outcomes of the child become positive."""

    def __init__(self, child: Expression) -> None:
        self.child = child

    def probability_table(self) -> ProbabilityTable:
        return absolute_table(self.child.probability_table())

    def _key(self) -> tuple:
        return (self.child,)

    def __str__(self) -> str:
        return "abs(%s)" % self.child


class Explode(Expression):
    """An exploding roll.

    Whenever the child rolls ``min_value`` or more (its maximum outcome when
    ``min_value`` is None) it is rolled again and the results are added.
    At most ``max_iterations`` rerolls happen; the last one is kept as it
    falls, so the distribution stays complete.
    """

    def __init__(
        self,
        child: Expression,
        min_value: typing.Optional[Value] = None,
        max_iterations: typing.Optional[int] = None,
    ) -> None:
        if max_iterations is None:
            from .settings import get_settings

            max_iterations = get_settings()["explode_max_iterations"]
        if max_iterations < 0:
            raise ValueError("max_iterations must not be negative")
        self.child = child
        self.min_value = min_value
        self.max_iterations = int(max_iterations)

    def probability_table(self) -> ProbabilityTable:
        table = self.child.probability_table()
        threshold = max(table) if self.min_value is None else self.min_value
        return explode_table(table, threshold, self.max_iterations)

    def _key(self) -> tuple:
        return (self.child, self.min_value, self.max_iterations)

    def __str__(self) -> str:
        return "explode(%s,%s,%s)" % (self.child, self.min_value, self.max_iterations)
