import json
import os
from datetime import datetime, timezone
from pathlib import Path

from conjuga.config import settings


def _get_log_path() -> Path:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"interactions_{today}.jsonl"


def log_interaction(
    event: str,
    user_id: str | None = None,
    lemma: str | None = None,
    cell: str | None = None,
    selection_method: str | None = None,
    **extra,
) -> None:
    """Append one JSONL record of a drill event; None-valued fields are dropped."""
    if os.environ.get("TESTING") == "1":
        return

    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "user_id": user_id,
        "lemma": lemma,
        "cell": cell,
        "selection_method": selection_method,
        **extra,
    }
    entry = {k: v for k, v in entry.items() if v is not None}

    log_path = _get_log_path()
    with open(log_path, "a") as f:
        f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
