import io
import typing

import pandas
import plotly.express as px
import plotly.graph_objects as go

from .dice import Dice
from .settings import get_settings

Dices = typing.Union[Dice, typing.Mapping[str, Dice]]


def _labelled(dices: Dices) -> typing.Mapping[str, Dice]:
    if isinstance(dices, Dice):
        return {dices.builder_string: dices}
    return dices


def to_dataframe(dice: Dice) -> pandas.DataFrame:
    records = [
        (value, float(prob), float(cumulative))
        for (value, prob), (_, cumulative) in zip(
            dice.distribution, dice.cumulative_distribution
        )
    ]
    return pandas.DataFrame.from_records(
        records, columns=["value", "probability", "cumulative"]
    )


def distribution_figure(dices: Dices) -> go.Figure:
    """Overlaid bar chart comparing the distributions of several dice."""
    labelled = _labelled(dices)

    possible_values = set()
    for dice in labelled.values():
        possible_values.update(value for value, _ in dice.distribution)
    possible_values = sorted(possible_values)

    records = [tuple(str(x) for x in possible_values)]
    record_labels = ["outcome"]
    for label, dice in labelled.items():
        records.append(tuple(float(dice.prob(value)) for value in possible_values))
        record_labels.append(label)

    data = pandas.DataFrame.from_records(zip(*records), columns=record_labels)
    fig = px.bar(data, x="outcome", y=record_labels[1:], barmode="overlay")
    fig.update_xaxes(title_text="value")
    fig.update_yaxes(title_text="probability", tickformat="%")
    return fig


def plot(dices: Dices, format: typing.Optional[str] = None) -> bytes:
    """Renders ``distribution_figure`` to image bytes (PNG unless configured)."""
    options = get_settings()["plot"]
    fig = distribution_figure(dices)
    stream = io.BytesIO()
    fig.write_image(
        file=stream,
        format=format or options["format"],
        width=options["width"],
        height=options["height"],
    )
    return stream.getvalue()
