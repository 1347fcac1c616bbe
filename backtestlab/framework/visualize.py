from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd

from ..util.logger import get_logger

try:  # optional dependency
    import matplotlib.pyplot as plt  # type: ignore
except Exception:  # pragma: no cover
    plt = None  # type: ignore

logger = get_logger(__name__)


def history_frame(portfolio_history: List[Dict[str, Any]]) -> pd.DataFrame:
    """Snapshot dicts (as in a report) -> DataFrame with a datetime ``date`` column."""
    df = pd.DataFrame(portfolio_history, columns=['date', 'cash', 'positions', 'total_value'])
    if not df.empty:
        df['date'] = pd.to_datetime(df['date'])
    return df


def plot_equity(history: pd.DataFrame, transactions: List[Dict[str, Any]] | None = None,
                title: str = 'Equity Curve', save_path: str | None = None):  # pragma: no cover
    if plt is None:
        logger.warning('matplotlib not available, skipping plot.')
        return
    if history.empty:
        logger.warning('empty history, nothing to plot.')
        return
    fig, ax = plt.subplots(figsize=(10, 5))
    ax.plot(history['date'], history['total_value'], label='Equity')
    values = history.set_index('date')['total_value']
    for side, marker, color in (('BUY', '^', 'green'), ('SELL', 'v', 'red')):
        dates = pd.to_datetime([t['date'] for t in transactions or () if t['type'] == side])
        if len(dates):
            ax.scatter(dates, values.reindex(dates), marker=marker, color=color, label=side, zorder=3)
    ax.set_title(title)
    ax.grid(alpha=0.3)
    ax.legend()
    fig.autofmt_xdate()
    if save_path:
        plt.savefig(save_path, dpi=300, bbox_inches='tight')
        logger.info('equity saved: %s', save_path)
    else:
        plt.show()


__all__ = ['history_frame', 'plot_equity']
