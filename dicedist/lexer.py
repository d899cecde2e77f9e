import enum
import logging
import re
import typing

from .errors import (
    InvalidCharacterInInput,
    InvalidDieSize,
    NonDigitNumericCharacter,
    NonDigitSymbolAfterDiceD,
)

logger = logging.getLogger(__name__)

PERMITTED_CHARACTERS = frozenset("minax(,)dw0123456789+-*/")

# placeholders for "max(" and "min(", never present after lowercasing
_MAX_OPENING_CHAR = "M"
_MIN_OPENING_CHAR = "N"

_NUMBER = re.compile(r"[0-9]+")


class Marker(enum.Enum):
    ADD = "+"
    MUL = "*"
    DIV = "/"
    SAMPLE_SUM = "x"
    COMMA = ","
    OPENING = "("
    MAX_OPENING = "max("
    MIN_OPENING = "min("
    CLOSING = ")"

    def __str__(self) -> str:
        return self.value


class ConstantSymbol(typing.NamedTuple):
    value: int

    def __str__(self) -> str:
        return str(self.value)


class DieSymbol(typing.NamedTuple):
    min: int
    max: int

    def __str__(self) -> str:
        return "d%s" % self.max if self.min == 1 else "d[%s..%s]" % self


InputSymbol = typing.Union[Marker, ConstantSymbol, DieSymbol]

OPERATORS = frozenset((Marker.ADD, Marker.MUL, Marker.DIV, Marker.SAMPLE_SUM))
OPENINGS = frozenset((Marker.OPENING, Marker.MAX_OPENING, Marker.MIN_OPENING))

_SINGLE_CHARACTER_SYMBOLS = {
    _MAX_OPENING_CHAR: Marker.MAX_OPENING,
    _MIN_OPENING_CHAR: Marker.MIN_OPENING,
    "(": Marker.OPENING,
    ")": Marker.CLOSING,
    ",": Marker.COMMA,
    "*": Marker.MUL,
    "x": Marker.SAMPLE_SUM,
    "+": Marker.ADD,
    "/": Marker.DIV,
}


def is_atomic(symbol: InputSymbol) -> bool:
    return isinstance(symbol, (ConstantSymbol, DieSymbol))


def clean_string(text: str) -> str:
    """Normalizes a formula and makes implicit sample-sums explicit.

    Whitespace is dropped, ``w`` becomes ``d`` and ``max(``/``min(`` are
    folded into single placeholder characters. Juxtaposition then gets an
    ``x`` inserted: ``3d6`` is ``3xd6``, ``)(`` is ``)x(`` (also in front of
    ``max(``/``min(``) and ``3(`` or ``d(`` become ``3x(`` and ``dx(``.
    """
    cleaned = []
    for char in text.lower():
        if char in PERMITTED_CHARACTERS:
            cleaned.append(char)
        elif not char.isspace():
            raise InvalidCharacterInInput(char)
    s = "".join(cleaned)
    s = s.replace("max(", _MAX_OPENING_CHAR)
    s = s.replace("min(", _MIN_OPENING_CHAR)
    s = s.replace("w", "d")

    s = re.sub(r"(?<=[0-9])d", "xd", s)
    s = re.sub(
        r"\)(?=[(%s%s])" % (_MAX_OPENING_CHAR, _MIN_OPENING_CHAR), ")x", s
    )
    s = re.sub(r"(?<=[0-9d])\(", "x(", s)
    return s


def _purge_empty_adds(symbols: typing.List[InputSymbol]) -> typing.List[InputSymbol]:
    # an add only survives between an operand and something else: "+-1*d3" => "-1*d3"
    last = len(symbols) - 1
    return [
        symbol
        for i, symbol in enumerate(symbols)
        if not (
            symbol is Marker.ADD
            and (
                i == 0
                or i == last
                or not (is_atomic(symbols[i - 1]) or symbols[i - 1] is Marker.CLOSING)
            )
        )
    ]


def lex(text: str) -> typing.List[InputSymbol]:
    s = clean_string(text)
    symbols: typing.List[InputSymbol] = []
    pos = 0
    while pos < len(s):
        char = s[pos]
        if char in _SINGLE_CHARACTER_SYMBOLS:
            symbols.append(_SINGLE_CHARACTER_SYMBOLS[char])
            pos += 1
        elif char == "-":
            # -X is read as +(-1)*X
            symbols.extend((Marker.ADD, ConstantSymbol(-1), Marker.MUL))
            pos += 1
        elif char == "d":
            match = _NUMBER.match(s, pos + 1)
            if match is None:
                raise NonDigitSymbolAfterDiceD()
            size = int(match.group())
            if size < 1:
                raise InvalidDieSize(size)
            symbols.append(DieSymbol(1, size))
            pos = match.end()
        else:
            match = _NUMBER.match(s, pos)
            if match is None:
                raise NonDigitNumericCharacter(char)
            symbols.append(ConstantSymbol(int(match.group())))
            pos = match.end()

    symbols = _purge_empty_adds(symbols)
    logger.debug("lexed %r into %d symbols", text, len(symbols))
    return symbols
