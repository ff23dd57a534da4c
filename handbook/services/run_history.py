import json
import os
from typing import Any, Dict, List, Optional


def _parse_run_file(filepath: str) -> Optional[Dict[str, Any]]:
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        return None


def get_rename_history(run_logs_path: Optional[str], limit: int = 10) -> Dict[str, Any]:
    if not run_logs_path or not os.path.exists(run_logs_path):
        return {"last_rename": None, "recent_runs": [], "failed_runs": 0}

    runs: List[Dict[str, Any]] = []
    for entry in os.scandir(run_logs_path):
        if not (entry.is_file() and entry.name.endswith(".json")):
            continue
        data = _parse_run_file(entry.path)
        if not data or data.get("component") != "rename":
            continue
        runs.append(data)

    runs.sort(key=lambda r: (r.get("started_at") or "", r.get("run_id") or ""), reverse=True)

    return {
        "last_rename": runs[0] if runs else None,
        "recent_runs": runs[:limit],
        "failed_runs": sum(1 for r in runs if r.get("status") == "failed"),
    }
