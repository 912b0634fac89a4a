"""Trace recording and statistical checks over interaction sequences.

These helpers read hidden state through the test-only surface and are meant
for validation and experiments, not for production paths.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, Iterable, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from .container import HiddenVariable, InteractionRecord

TRACE_COLUMNS = ["step", "state_before", "output", "state_after"]


def record_trace(hv: HiddenVariable[Any, Any], n: int) -> pd.DataFrame:
    """Runs `n` interactions and returns one row per InteractionRecord."""
    if n < 0:
        raise ValueError("n must be non-negative")
    rows = []
    for step in range(n):
        rec = hv.interact_for_testing()
        rows.append((step, rec.state_before, rec.output, rec.state_after))
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)


def replay_matches(factory: Callable[[], HiddenVariable[Any, Any]], n: int) -> bool:
    """True when two instances from `factory` produce identical traces."""
    a = record_trace(factory(), n)
    b = record_trace(factory(), n)
    return a.equals(b)


def is_chained(records: Sequence[InteractionRecord[Any, Any]]) -> bool:
    """Each record starts from the state the previous one left."""
    return all(prev.state_after == nxt.state_before for prev, nxt in zip(records, records[1:]))


def repeat_rate(states: Iterable[Any]) -> float:
    """Fraction of consecutive state pairs that are equal."""
    seq = list(states)
    if len(seq) < 2:
        return 0.0
    same = sum(1 for a, b in zip(seq, seq[1:]) if a == b)
    return same / (len(seq) - 1)


def repeat_test(states: Iterable[Any], expected_p: float) -> Dict[str, float]:
    """Binomial test of the repeat count against a designed collision probability."""
    if not 0.0 <= expected_p <= 1.0:
        raise ValueError("expected_p must be in [0, 1]")
    seq = list(states)
    trials = max(len(seq) - 1, 0)
    repeats = sum(1 for a, b in zip(seq, seq[1:]) if a == b)
    if trials == 0:
        return {"trials": 0.0, "repeats": 0.0, "rate": 0.0, "pvalue": 1.0}
    res = stats.binomtest(repeats, trials, expected_p, alternative="greater")
    return {
        "trials": float(trials),
        "repeats": float(repeats),
        "rate": repeats / trials,
        "pvalue": float(res.pvalue),
    }


def uniformity_test(values: Iterable[Hashable], domain: Sequence[Hashable]) -> Dict[str, Any]:
    """Chi-square goodness of fit of observed values against a uniform domain."""
    dom = list(domain)
    if len(dom) < 2:
        raise ValueError("domain must have at least two values")
    counts = pd.Series(list(values), dtype=object).value_counts()
    unknown = set(counts.index) - set(dom)
    if unknown:
        raise ValueError(f"values outside the domain: {sorted(map(repr, unknown))}")
    observed = np.array([int(counts.get(v, 0)) for v in dom], dtype=float)
    res = stats.chisquare(observed)
    return {
        "statistic": float(res.statistic),
        "pvalue": float(res.pvalue),
        "counts": {v: int(c) for v, c in zip(dom, observed)},
    }


def occupancy(trace: pd.DataFrame, column: str = "state_after") -> pd.Series:
    """Empirical distribution of a trace column, normalised to sum to 1."""
    if column not in trace.columns:
        raise ValueError(f"Missing column: {column}")
    return trace[column].value_counts(normalize=True).sort_index()


def summarize_trace(trace: pd.DataFrame) -> Dict[str, Any]:
    steps = int(len(trace))
    out: Dict[str, Any] = {
        "steps": steps,
        "distinct_states": int(trace["state_after"].nunique()) if steps else 0,
        "repeat_rate": repeat_rate(trace["state_after"]) if steps else 0.0,
    }
    return out

