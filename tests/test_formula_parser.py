import pytest

from dicedist.errors import (
    DiceBuildingError,
    EmptySubSequence,
    InvalidCharacterInInput,
    InvalidDieSize,
    MultipleOperatorsBehindEachOther,
    NegativeScope,
    OneInputSymbolButNotAtomic,
    UnknownSyntaxError,
)
from dicedist.formula import (
    Constant,
    DivisionCompound,
    Expression,
    FairDie,
    MaxCompound,
    MinCompound,
    ProductCompound,
    SampleSumCompound,
    SumCompound,
)
from dicedist.formula_parser import (
    GraphKind,
    GraphSeq,
    graph_seq_to_expression,
    parse_formula,
    symbols_to_graph_seq,
)
from dicedist.lexer import ConstantSymbol, lex

d = lambda n: FairDie(1, n)
c = Constant


def test_graph_seq_for_max():
    graph = symbols_to_graph_seq(lex("max(1,2,3)"))
    assert graph == GraphSeq(
        GraphKind.MAX,
        tuple(GraphSeq(GraphKind.ATOMIC, atom=ConstantSymbol(i)) for i in (1, 2, 3)),
    )
    assert graph_seq_to_expression(graph) == MaxCompound(c(1), c(2), c(3))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("26", c(26)),
        ("d20", d(20)),
        ("2d6", SampleSumCompound(c(2), d(6))),
        ("3 d6  ", SampleSumCompound(c(3), d(6))),
        ("3xd6", SampleSumCompound(c(3), d(6))),
        ("4*5+2*3", SumCompound(ProductCompound(c(4), c(5)), ProductCompound(c(2), c(3)))),
        ("max(1,2,3)  ", MaxCompound(c(1), c(2), c(3))),
        ("min(d6,d6)", MinCompound(d(6), d(6))),
        ("4+3*d3xd2", SumCompound(c(4), ProductCompound(c(3), SampleSumCompound(d(3), d(2))))),
        ("8/2*3", DivisionCompound(c(8), ProductCompound(c(2), c(3)))),
        ("1+8/2", SumCompound(c(1), DivisionCompound(c(8), c(2)))),
        ("(1+2)*3", ProductCompound(SumCompound(c(1), c(2)), c(3))),
        ("((7))", c(7)),
        (
            "3d6+4-2",
            SumCompound(SampleSumCompound(c(3), d(6)), c(4), ProductCompound(c(-1), c(2))),
        ),
        ("-3", ProductCompound(c(-1), c(3))),
        (
            "2x(d4xd5)+65",
            SumCompound(SampleSumCompound(c(2), SampleSumCompound(d(4), d(5))), c(65)),
        ),
        ("2(d4xd5)", SampleSumCompound(c(2), SampleSumCompound(d(4), d(5)))),
        ("(d2)(d3)", SampleSumCompound(d(2), d(3))),
        ("max(d6,3)min(1,2)", SampleSumCompound(MaxCompound(d(6), c(3)), MinCompound(c(1), c(2)))),
        (
            "max(d6,d6)-min(d6,d6)",
            SumCompound(
                MaxCompound(d(6), d(6)),
                ProductCompound(c(-1), MinCompound(d(6), d(6))),
            ),
        ),
        ("max(1+2,d4*2)", MaxCompound(SumCompound(c(1), c(2)), ProductCompound(d(4), c(2)))),
        ("max(min(1,2),3)", MaxCompound(MinCompound(c(1), c(2)), c(3))),
    ],
)
def test_parse_formula(text, expected):
    assert parse_formula(text) == expected


def test_from_string_is_parse_formula():
    assert Expression.from_string("2w6+4") == parse_formula("2d6+4")


def test_parse_is_deterministic():
    assert parse_formula("max(d6,d6)-min(d6,d6)") == parse_formula("max(d6,d6)-min(d6,d6)")


@pytest.mark.parametrize(
    "text, error",
    [
        ("max(1:,2,3)", InvalidCharacterInInput),
        ("", EmptySubSequence),
        ("()", EmptySubSequence),
        ("3)", NegativeScope),
        ("(3))+(4", NegativeScope),
        ("3**4", MultipleOperatorsBehindEachOther),
        ("3*", MultipleOperatorsBehindEachOther),
        ("max()", MultipleOperatorsBehindEachOther),
        ("max(1,,2)", MultipleOperatorsBehindEachOther),
        ("x", OneInputSymbolButNotAtomic),
        (",", OneInputSymbolButNotAtomic),
        ("(3", UnknownSyntaxError),
        ("3,4", UnknownSyntaxError),
        ("2max(1,2)", UnknownSyntaxError),
        ("d0", InvalidDieSize),
        ("3d0+1", InvalidDieSize),
    ],
)
def test_parse_errors(text, error):
    with pytest.raises(error) as exc:
        parse_formula(text)
    assert isinstance(exc.value, DiceBuildingError)


def test_unknown_syntax_carries_symbols():
    with pytest.raises(UnknownSyntaxError) as exc:
        parse_formula("3,4")
    assert exc.value.symbols == tuple(lex("3,4"))


def test_reconstructed_string():
    assert str(parse_formula("1xd6+7")) == "1xd6+7"
    assert str(parse_formula("2d6")) == "2xd6"
    assert str(parse_formula("max(d6, 3)")) == "max(d6,3)"
    assert str(parse_formula("3-d6")) == "3-d6"
    assert str(parse_formula("d20 - 2")) == "d20-2"
    assert str(parse_formula("2*(-d6)")) == "2*(-d6)"


def test_dangling_adds_are_dropped():
    assert parse_formula("3+") == c(3)
    assert parse_formula("+3") == c(3)
    assert parse_formula("3++4") == SumCompound(c(3), c(4))


@pytest.mark.parametrize(
    "text",
    [
        "2d6+4",
        "max(d6,d6)*min(d4,3)",
        "(1+2)*3",
        "2x(d4xd5)+65",
        "d20/2",
        "d6/2/3",
        "(d6+1)xd4",
        "max(d6+1,2)",
        "(d6/2)*(3+d4)",
        "3-d6",
        "max(d6,d6)-min(d6,d6)",
        "d20-2",
        "-d6/2",
        "2/-d6",
        "-(d6+1)*3",
        "(-d6)xd4",
    ],
)
def test_round_trip(text):
    tree = parse_formula(text)
    assert parse_formula(str(tree)) == tree


@pytest.mark.parametrize(
    "tree",
    [
        SumCompound(SumCompound(c(1), c(2)), c(3)),
        ProductCompound(SumCompound(c(1), d(4)), c(3)),
        SampleSumCompound(SampleSumCompound(d(2), d(3)), d(4)),
        DivisionCompound(d(8), DivisionCompound(c(4), c(2))),
        MinCompound(MaxCompound(d(4), d(6)), SampleSumCompound(c(2), d(3))),
        SumCompound(c(3), ProductCompound(c(-1), d(6))),
        ProductCompound(c(2), ProductCompound(c(-1), d(6))),
        DivisionCompound(ProductCompound(c(-1), d(6)), c(2)),
    ],
)
def test_round_trip_of_built_trees(tree):
    assert parse_formula(str(tree)) == tree
