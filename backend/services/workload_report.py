"""Tabular workload summaries consumed by the dashboard."""

from __future__ import annotations

from typing import Any, Sequence

import pandas as pd

from backend.domain.models import WorkloadBin
from backend.services.weight_model import format_minutes


_COLUMNS = [
    "staff_id",
    "staff_name",
    "rooms",
    "checkouts",
    "dailies",
    "minutes",
    "minutes_with_break",
    "exceeds_shift",
    "overage_minutes",
]


def workload_frame(bins: Sequence[WorkloadBin]) -> pd.DataFrame:
    """One row per staff member, in bin order."""
    rows = [
        {
            "staff_id": item.staff_id,
            "staff_name": item.staff_name,
            "rooms": len(item.rooms),
            "checkouts": item.checkout_count,
            "dailies": item.daily_count,
            "minutes": item.total_weight,
            "minutes_with_break": item.total_with_break,
            "exceeds_shift": item.exceeds_shift,
            "overage_minutes": item.overage_minutes,
        }
        for item in bins
    ]
    return pd.DataFrame(rows, columns=_COLUMNS)


def summarize_workload(bins: Sequence[WorkloadBin]) -> dict[str, Any]:
    frame = workload_frame(bins)
    active = frame[frame["rooms"] > 0]
    over = frame[frame["exceeds_shift"] & (frame["rooms"] > 0)]

    if active.empty:
        mean_minutes = min_minutes = max_minutes = 0.0
    else:
        mean_minutes = float(active["minutes"].mean())
        min_minutes = float(active["minutes"].min())
        max_minutes = float(active["minutes"].max())

    return {
        "total_rooms": int(frame["rooms"].sum()),
        "total_checkouts": int(frame["checkouts"].sum()),
        "total_dailies": int(frame["dailies"].sum()),
        "staff_count": int(len(frame)),
        "active_staff_count": int(len(active)),
        "total_minutes": int(frame["minutes"].sum()),
        "mean_minutes": round(mean_minutes, 2),
        "min_minutes": min_minutes,
        "max_minutes": max_minutes,
        "spread_minutes": max_minutes - min_minutes,
        "over_allocated_count": int(len(over)),
        "over_allocated": [
            {
                "staff_id": str(row.staff_id),
                "staff_name": str(row.staff_name),
                "overage_minutes": int(row.overage_minutes),
                "overage_label": f"+{format_minutes(int(row.overage_minutes))}",
            }
            for row in over.itertuples(index=False)
        ],
    }
