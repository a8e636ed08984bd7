import io
from decimal import Decimal

import orjson
import pandas as pd

from analytics import generate_replay_report
from emission_gate import Emission


def test_report_summarises_each_line(tmp_path):
    emissions = [
        Emission(1, "S", Decimal("20.00")),
        Emission(2, "S", None),
        Emission(3, "B", Decimal("24.00")),
        Emission(4, "S", Decimal("18.00")),
    ]
    summary = generate_replay_report(emissions, 2, output_dir=str(tmp_path), stream=io.StringIO())

    assert summary["total_emissions"] == 4
    sell = summary["sell_line"]
    assert sell["emissions"] == 3
    assert sell["na_emissions"] == 1
    assert sell["min_notional"] == 18.0
    assert sell["max_notional"] == 20.0
    assert sell["last_notional"] == 18.0
    assert sell["avg_unit_price"] == 9.5
    assert summary["buy_line"]["last_notional"] == 24.0
    assert summary["first_timestamp"] == 1 and summary["last_timestamp"] == 4

    df = pd.read_csv(tmp_path / "emissions.csv")
    assert list(df.columns) == ["timestamp", "label", "value"]
    assert len(df) == 4
    saved = orjson.loads((tmp_path / "summary.json").read_bytes())
    assert saved["sell_line"]["na_emissions"] == 1


def test_report_with_no_emissions():
    stream = io.StringIO()
    summary = generate_replay_report([], 200, stream=stream)
    assert summary["total_emissions"] == 0
    assert summary["sell_line"]["last_notional"] is None
    assert summary["first_timestamp"] is None
    assert "Replay Report" in stream.getvalue()
