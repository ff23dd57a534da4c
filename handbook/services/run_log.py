import json
import logging
import os
import time
import uuid
from datetime import datetime
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)


class RenameRunLog:
    """JSON record of one rename attempt, rewritten as the run progresses.

    Nothing is written when ``run_logs_path`` is empty.
    """

    component = "rename"

    def __init__(self, run_logs_path: Optional[str], old_id: str, new_id: str):
        self.run_id = str(uuid.uuid4())
        self.run_logs_path = run_logs_path
        self.old_id = old_id
        self.new_id = new_id
        self.start_time = datetime.now()
        self.status: str = "running"
        self.error: Optional[str] = None
        self.failed_check: Optional[str] = None
        self.migrated: Dict[str, int] = {}
        self.filename = f"{self.component}_{int(time.time())}_{self.run_id[:8]}.json"
        self._write()

    @property
    def filepath(self) -> Optional[str]:
        if not self.run_logs_path:
            return None
        return os.path.join(self.run_logs_path, self.filename)

    def _to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "component": self.component,
            "type": "chapter_rename",
            "old_id": self.old_id,
            "new_id": self.new_id,
            "started_at": self.start_time.isoformat(),
            "finished_at": datetime.now().isoformat() if self.status in ("success", "failed") else None,
            "status": self.status,
            "error": self.error,
            "failed_check": self.failed_check,
            "migrated": self.migrated,
            "rows_migrated": sum(self.migrated.values()),
        }

    def _write(self):
        if not self.filepath:
            return
        try:
            os.makedirs(self.run_logs_path, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2)
        except OSError as exc:
            logger.warning("could not write rename run log %s: %s", self.filepath, exc)

    def finish(self, migrated: Dict[str, int]):
        self.migrated = dict(migrated)
        self.status = "success"
        self._write()

    def fail(self, error: str, failed_check: Optional[str] = None):
        self.error = error
        self.failed_check = failed_check
        self.status = "failed"
        self._write()
