import typing


class DiceError(ValueError):
    pass


class DiceBuildingError(DiceError):
    """Raised when a formula string cannot be turned into an expression."""


class InvalidCharacterInInput(DiceBuildingError):
    def __init__(self, char: str) -> None:
        super().__init__("invalid character %r in input" % char)
        self.char = char


class NonDigitSymbolAfterDiceD(DiceBuildingError):
    def __init__(self) -> None:
        super().__init__("expected a number after 'd'")


class InvalidDieSize(DiceBuildingError):
    def __init__(self, size: int) -> None:
        super().__init__("a die needs at least one side, got d%s" % size)
        self.size = size


class NonDigitNumericCharacter(DiceBuildingError):
    def __init__(self, text: str = "") -> None:
        super().__init__("malformed number %r" % text)
        self.text = text


class NegativeScope(DiceBuildingError):
    def __init__(self) -> None:
        super().__init__("closing bracket without matching opening bracket")


class EmptySubSequence(DiceBuildingError):
    def __init__(self) -> None:
        super().__init__("empty sub-expression")


class MultipleOperatorsBehindEachOther(DiceBuildingError):
    def __init__(self) -> None:
        super().__init__("operator or separator without operand")


class OneInputSymbolButNotAtomic(DiceBuildingError):
    def __init__(self, symbol: typing.Any) -> None:
        super().__init__("expected a number or a die, got %s" % (symbol,))
        self.symbol = symbol


class UnknownSyntaxError(DiceBuildingError):
    def __init__(self, symbols: typing.Sequence[typing.Any]) -> None:
        super().__init__(
            "unknown syntax: %s" % " ".join(str(symbol) for symbol in symbols)
        )
        self.symbols = tuple(symbols)


class NegativeSampleCount(DiceError):
    """A sample-sum drew a negative number of repetitions."""

    def __init__(self, count: int) -> None:
        super().__init__("cannot sample a distribution %s times" % count)
        self.count = count
