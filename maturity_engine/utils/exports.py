from __future__ import annotations

import io
import json
from typing import Any

import pandas as pd

from ..infrastructure.exceptions import ExportError

DIMENSION_COLUMNS = ["Rank", "DimensionKey", "Dimension", "Score", "Gap", "PriorityScore"]
RECOMMENDATION_COLUMNS = [
    "DimensionKey",
    "TopicKey",
    "Title",
    "Category",
    "Priority",
    "ActionItems",
    "Tags",
]


def _to_iso(val):
    if hasattr(val, "isoformat"):
        return val.isoformat()
    return val


def results_to_dataframe(results: dict[str, Any]) -> pd.DataFrame:
    """One row per dimension, in rank order."""
    rows = [
        {
            "Rank": dim["rank_order"],
            "DimensionKey": dim["dimension_key"],
            "Dimension": dim["title"],
            "Score": dim["score"],
            "Gap": dim["gap"],
            "PriorityScore": dim["priority_score"],
        }
        for dim in results.get("dimensions", [])
    ]
    df = pd.DataFrame(rows, columns=DIMENSION_COLUMNS)
    return df.sort_values("Rank", kind="stable").reset_index(drop=True)


def recommendations_to_dataframe(results: dict[str, Any]) -> pd.DataFrame:
    """One row per stored recommendation snapshot, grouped by dimension."""
    rows = [
        {
            "DimensionKey": dim["dimension_key"],
            "TopicKey": rec["topic_key"],
            "Title": rec["title"],
            "Category": rec["category"],
            "Priority": rec["priority"],
            "ActionItems": "; ".join(rec.get("action_items") or []),
            "Tags": ", ".join(rec.get("tags") or []),
        }
        for dim in results.get("dimensions", [])
        for rec in dim.get("recommendations", [])
    ]
    return pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS)


def make_json_export_payload(results: dict[str, Any]) -> str:
    payload = {key: _to_iso(value) for key, value in results.items()}
    return json.dumps(payload, indent=2)


def make_xlsx_export_bytes(results: dict[str, Any]) -> bytes:
    """Workbook with a ``Summary``, a ``Dimensions`` and a ``Recommendations`` sheet."""
    summary = pd.DataFrame(
        [
            {
                "ResponseID": results.get("response_id"),
                "OverallScore": results.get("overall_score"),
                "OverallGap": results.get("overall_gap"),
                "CompletedAt": _to_iso(results.get("completed_at")),
            }
        ]
    )

    bio = io.BytesIO()
    try:
        with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
            summary.to_excel(writer, index=False, sheet_name="Summary")
            results_to_dataframe(results).to_excel(writer, index=False, sheet_name="Dimensions")
            recommendations_to_dataframe(results).to_excel(
                writer, index=False, sheet_name="Recommendations"
            )
    except (ValueError, OSError) as e:
        raise ExportError(str(e), export_format="xlsx") from e
    return bio.getvalue()
