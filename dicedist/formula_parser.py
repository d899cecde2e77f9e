import enum
import logging
import typing

from . import formula
from .errors import (
    EmptySubSequence,
    MultipleOperatorsBehindEachOther,
    NegativeScope,
    OneInputSymbolButNotAtomic,
    UnknownSyntaxError,
)
from .lexer import (
    OPENINGS,
    ConstantSymbol,
    DieSymbol,
    InputSymbol,
    Marker,
    is_atomic,
    lex,
)

logger = logging.getLogger(__name__)


class GraphKind(enum.Enum):
    ATOMIC = "atomic"
    ADD = "add"
    DIV = "div"
    MUL = "mul"
    SAMPLE_SUM = "sample_sum"
    MAX = "max"
    MIN = "min"


class GraphSeq(typing.NamedTuple):
    kind: GraphKind
    children: typing.Tuple["GraphSeq", ...] = ()
    atom: typing.Optional[InputSymbol] = None


# loosest first: the sequence is split on the first operator found at top level,
# so 4+3*d3xd2 is 4+(3*(d3xd2))
_PRECEDENCE = (
    (Marker.ADD, GraphKind.ADD),
    (Marker.DIV, GraphKind.DIV),
    (Marker.MUL, GraphKind.MUL),
    (Marker.SAMPLE_SUM, GraphKind.SAMPLE_SUM),
)

_SELECTIONS = {
    Marker.MAX_OPENING: GraphKind.MAX,
    Marker.MIN_OPENING: GraphKind.MIN,
}

_LOWERING: typing.Dict[GraphKind, typing.Type[formula.Compound]] = {
    GraphKind.ADD: formula.SumCompound,
    GraphKind.DIV: formula.DivisionCompound,
    GraphKind.MUL: formula.ProductCompound,
    GraphKind.SAMPLE_SUM: formula.SampleSumCompound,
    GraphKind.MAX: formula.MaxCompound,
    GraphKind.MIN: formula.MinCompound,
}


def _step_depth(symbol: InputSymbol, depth: int) -> int:
    if symbol in OPENINGS:
        return depth + 1
    if symbol is Marker.CLOSING:
        if depth == 0:
            raise NegativeScope()
        return depth - 1
    return depth


def global_scope_contains(
    symbols: typing.Sequence[InputSymbol], operator: Marker
) -> bool:
    depth = 0
    for symbol in symbols:
        if depth == 0 and symbol is operator:
            return True
        depth = _step_depth(symbol, depth)
    return False


def split_bracket_aware(
    symbols: typing.Sequence[InputSymbol], splitter: Marker
) -> typing.List[typing.Sequence[InputSymbol]]:
    segments: typing.List[typing.List[InputSymbol]] = [[]]
    depth = 0
    for symbol in symbols:
        if depth == 0 and symbol is splitter:
            segments.append([])
        else:
            segments[-1].append(symbol)
            depth = _step_depth(symbol, depth)
    if any(not segment for segment in segments):
        raise MultipleOperatorsBehindEachOther()
    return segments


def _split_and_assemble(
    symbols: typing.Sequence[InputSymbol], splitter: Marker
) -> typing.Tuple[GraphSeq, ...]:
    return tuple(
        symbols_to_graph_seq(segment)
        for segment in split_bracket_aware(symbols, splitter)
    )


def symbols_to_graph_seq(symbols: typing.Sequence[InputSymbol]) -> GraphSeq:
    if not symbols:
        raise EmptySubSequence()
    if len(symbols) == 1:
        symbol = symbols[0]
        if is_atomic(symbol):
            return GraphSeq(GraphKind.ATOMIC, atom=symbol)
        raise OneInputSymbolButNotAtomic(symbol)

    for operator, kind in _PRECEDENCE:
        if global_scope_contains(symbols, operator):
            return GraphSeq(kind, _split_and_assemble(symbols, operator))

    first, last = symbols[0], symbols[-1]
    if first in OPENINGS and last is Marker.CLOSING:
        inner = symbols[1:-1]
        if first is Marker.OPENING:
            return symbols_to_graph_seq(inner)
        return GraphSeq(_SELECTIONS[first], _split_and_assemble(inner, Marker.COMMA))

    raise UnknownSyntaxError(symbols)


def graph_seq_to_expression(graph_seq: GraphSeq) -> formula.Expression:
    if graph_seq.kind is GraphKind.ATOMIC:
        atom = graph_seq.atom
        if isinstance(atom, ConstantSymbol):
            return formula.Constant(atom.value)
        elif isinstance(atom, DieSymbol):
            return formula.FairDie(atom.min, atom.max)
        raise OneInputSymbolButNotAtomic(atom)
    return _LOWERING[graph_seq.kind](
        *(graph_seq_to_expression(child) for child in graph_seq.children)
    )


def parse(symbols: typing.Sequence[InputSymbol]) -> formula.Expression:
    return graph_seq_to_expression(symbols_to_graph_seq(symbols))


def parse_formula(text: str) -> formula.Expression:
    """Parses a formula like ``"max(d6,d6)-min(d6,d6)"`` into an expression.

    Raises a ``DiceBuildingError`` subclass describing the first problem found.
    A ``+`` with nothing before or after it is dropped silently, so ``"3+"``
    reads as ``"3"`` and ``"3++4"`` as ``"3+4"``.
    """
    result = parse(lex(text))
    logger.debug("parsed %r as %r", text, result)
    return result
