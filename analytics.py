import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

import orjson
import pandas as pd

from emission_gate import BUY_LABEL, SELL_LABEL, Emission


def _ensure_dir(path: str):
    os.makedirs(path, exist_ok=True)


def _line_summary(df: pd.DataFrame, label: str, target: int) -> Dict[str, Any]:
    line = df[df['label'] == label]
    filled = line.dropna(subset=['value'])
    values = filled['value']

    summary: Dict[str, Any] = {
        'emissions': int(len(line)),
        'na_emissions': int(line['value'].isna().sum()),
        'min_notional': None,
        'max_notional': None,
        'last_notional': None,
        'avg_unit_price': None,
    }
    if not values.empty:
        summary['min_notional'] = float(values.min())
        summary['max_notional'] = float(values.max())
        summary['avg_unit_price'] = float(values.mean() / target)
    if not line.empty:
        last = line['value'].iloc[-1]
        summary['last_notional'] = None if pd.isna(last) else float(last)
    return summary


def generate_replay_report(
    emissions: Iterable[Emission],
    target: int,
    output_dir: Optional[str] = None,
    stream=None,
) -> Dict[str, Any]:
    """Summarises the emitted lines of a replay run, prints it, and optionally saves artifacts."""
    records = [
        {
            'timestamp': e.timestamp,
            'label': e.label,
            'value': None if e.value is None else float(e.value),
        }
        for e in emissions
    ]
    df = pd.DataFrame(records, columns=['timestamp', 'label', 'value'])
    df['value'] = df['value'].astype(float)

    summary: Dict[str, Any] = {
        'target': int(target),
        'total_emissions': int(len(df)),
        'sell_line': _line_summary(df, SELL_LABEL, target),
        'buy_line': _line_summary(df, BUY_LABEL, target),
        'first_timestamp': int(df['timestamp'].min()) if not df.empty else None,
        'last_timestamp': int(df['timestamp'].max()) if not df.empty else None,
        'generated_at': datetime.now(timezone.utc).isoformat(),
    }

    out = stream if stream is not None else sys.stdout
    print("\n" + "=" * 50, file=out)
    print("--- Replay Report ---", file=out)
    print("=" * 50, file=out)
    print(f"Target Size:            {target}", file=out)
    print(f"Total Emissions:        {summary['total_emissions']}", file=out)
    for name, key in (("Sell (S)", 'sell_line'), ("Buy (B)", 'buy_line')):
        line = summary[key]
        print(f"\n--- {name} ---", file=out)
        print(f"Emissions:              {line['emissions']} ({line['na_emissions']} NA)", file=out)
        if line['min_notional'] is not None:
            print(f"Notional Range:         {line['min_notional']:,.2f} - {line['max_notional']:,.2f}", file=out)
            print(f"Avg Unit Price:         {line['avg_unit_price']:.4f}", file=out)
    print("=" * 50, file=out)

    if output_dir:
        _ensure_dir(output_dir)
        df.to_csv(os.path.join(output_dir, 'emissions.csv'), index=False)
        with open(os.path.join(output_dir, 'summary.json'), 'wb') as f:
            f.write(orjson.dumps(summary, option=orjson.OPT_INDENT_2))

    return summary
