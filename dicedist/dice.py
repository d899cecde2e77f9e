import bisect
import logging
import math
import random
import time
import typing
from fractions import Fraction

from .formula import Expression, Prob, Value

logger = logging.getLogger(__name__)


class RandomSource(typing.Protocol):
    def random(self) -> float:
        ...


class ProbAll(typing.NamedTuple):
    lt: Prob
    lte: Prob
    eq: Prob
    gte: Prob
    gt: Prob


class Dice:
    """A computed discrete distribution with its statistics.

    Values are ints, probabilities are exact ``Fraction``s. ``distribution``
    and ``cumulative_distribution`` hold ``(value, probability)`` pairs in
    ascending value order. Instances are read-only snapshots; use
    ``summarize`` or ``evaluate`` to create them.
    """

    def __init__(
        self,
        *,
        builder_string: str,
        min: Value,
        max: Value,
        median: Value,
        mode: typing.Tuple[Value, ...],
        mean: Fraction,
        variance: Fraction,
        distribution: typing.List[typing.Tuple[Value, Prob]],
        cumulative_distribution: typing.List[typing.Tuple[Value, Prob]],
        build_time: int = 0,
        rng: typing.Optional[RandomSource] = None,
    ) -> None:
        self.builder_string = builder_string
        self.min = min
        self.max = max
        self.median = median
        self.mode = mode
        self.mean = mean
        self.variance = variance
        self.distribution = distribution
        self.cumulative_distribution = cumulative_distribution
        self.build_time = build_time
        self.rng = rng if rng is not None else random.Random()
        self._table = dict(distribution)
        self._values = [value for value, _ in cumulative_distribution]

    @property
    def standard_deviation(self) -> float:
        return math.sqrt(self.variance)

    def __repr__(self) -> str:
        return "<Dice %s mean=%s>" % (self.builder_string, self.mean)

    def roll(self, rng: typing.Optional[RandomSource] = None) -> Value:
        """Samples a value by drawing a float in [0, 1) and walking the cdf."""
        r = (rng if rng is not None else self.rng).random()
        for value, prob in self.cumulative_distribution:
            if prob >= r:
                return value
        raise RuntimeError("cumulative distribution does not reach %s" % r)

    def roll_many(
        self, n: int, rng: typing.Optional[RandomSource] = None
    ) -> typing.List[Value]:
        return [self.roll(rng) for _ in range(n)]

    def prob(self, value: Value) -> Prob:
        return self._table.get(value, Fraction(0))

    def prob_lte(self, value: Value) -> Prob:
        index = bisect.bisect_right(self._values, value)
        if index == 0:
            return Fraction(0)
        return self.cumulative_distribution[index - 1][1]

    def prob_lt(self, value: Value) -> Prob:
        index = bisect.bisect_left(self._values, value)
        if index == 0:
            return Fraction(0)
        return self.cumulative_distribution[index - 1][1]

    def prob_gte(self, value: Value) -> Prob:
        return 1 - self.prob_lt(value)

    def prob_gt(self, value: Value) -> Prob:
        return 1 - self.prob_lte(value)

    def prob_all(self, value: Value) -> ProbAll:
        gt = self.prob_gt(value)
        eq = self.prob(value)
        lte = 1 - gt
        return ProbAll(lt=lte - eq, lte=lte, eq=eq, gte=gt + eq, gt=gt)

    def quantile(self, p: typing.SupportsFloat) -> Value:
        """Smallest value q with P(X <= q) >= p.

        ``p`` is compared as a float, so fractions very close to a cdf step
        may land on the neighbouring value.
        """
        p = float(p)
        if p >= 1.0:
            return self.max
        for value, prob in self.cumulative_distribution:
            if float(prob) >= p:
                return value
        raise RuntimeError("cumulative distribution does not reach %s" % p)


def cumulative_distribution(
    distribution: typing.Sequence[typing.Tuple[Value, Prob]],
) -> typing.List[typing.Tuple[Value, Prob]]:
    result = []
    total = Fraction(0)
    for value, prob in distribution:
        total += prob
        result.append((value, total))
    return result


def summarize(
    distribution: typing.Union[
        typing.Mapping[Value, Prob], typing.Iterable[typing.Tuple[Value, Prob]]
    ],
    builder_string: str = "",
    build_time: int = 0,
    rng: typing.Optional[RandomSource] = None,
) -> Dice:
    items = sorted(dict(distribution).items())
    if not items:
        raise ValueError("cannot summarize an empty distribution")

    half = Fraction(1, 2)
    mean = Fraction(0)
    total = Fraction(0)
    median: typing.Optional[Value] = None
    mode: typing.List[Value] = []
    mode_prob = Fraction(-1)
    for value, prob in items:
        mean += value * prob
        total += prob
        if median is None and total >= half:
            median = value
        if prob > mode_prob:
            mode, mode_prob = [value], prob
        elif prob == mode_prob:
            mode.append(value)

    variance = sum(
        (prob * (value - mean) ** 2 for value, prob in items), Fraction(0)
    )

    return Dice(
        builder_string=builder_string,
        min=items[0][0],
        max=items[-1][0],
        median=median if median is not None else items[-1][0],
        mode=tuple(mode),
        mean=mean,
        variance=variance,
        distribution=items,
        cumulative_distribution=cumulative_distribution(items),
        build_time=build_time,
        rng=rng,
    )


def evaluate(
    expression: Expression,
    clock: typing.Optional[typing.Callable[[], float]] = None,
    rng: typing.Optional[RandomSource] = None,
) -> Dice:
    """Computes the distribution of ``expression`` and all its statistics.

    ``clock`` returns seconds and is only used for ``build_time``
    (milliseconds).
    """
    if clock is None:
        clock = time.perf_counter
    start = clock()
    dice = summarize(expression.probability_table(), str(expression), rng=rng)
    dice.build_time = int((clock() - start) * 1000)
    logger.debug("built %s in %d ms", dice.builder_string, dice.build_time)
    return dice
