"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from roomclimate.common.fs import write_json
from roomclimate.pipeline.freshness import StaleSource

SUMMARY_FIELDS = ("source", "status", "station_id", "rows_in", "fetched", "latest_timestamp", "charts", "error_code", "error")


def write_run_summary(
    data_dir: Path,
    *,
    run_id: str,
    run_at: str,
    results: list[dict],
    stale: list[StaleSource],
    alert_error: str | None = None,
) -> Path:
    source_reports = {}
    totals = {"rows_in": 0, "fetched": 0}
    error_count = 0

    for result in results:
        source_reports[result["source"]] = {key: result.get(key) for key in SUMMARY_FIELDS if key in result}
        if result.get("status") != "ok":
            error_count += 1
            continue
        totals["rows_in"] += int(result.get("rows_in", 0))
        totals["fetched"] += int(result.get("fetched", 0))

    status = "success"
    if error_count > 0 or alert_error:
        status = "partial"
    if results and error_count == len(results):
        status = "error"

    summary_path = data_dir / "out" / "reports" / "run_summary.json"
    payload = {
        "run_id": run_id,
        "run_at": run_at,
        "status": status,
        "totals": totals,
        "error_count": error_count,
        "stale_sources": [
            {
                "source": item.name,
                "latest": item.latest.isoformat() if item.latest else None,
                "age_minutes": int(item.age.total_seconds() // 60) if item.age else None,
            }
            for item in stale
        ],
        "alert_error": alert_error,
        "sources": source_reports,
    }
    write_json(summary_path, payload)
    return summary_path
