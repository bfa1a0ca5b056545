from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from mender.config import get_config


def audit_file() -> Optional[Path]:
    """Absolute location of the audit trail, or None when auditing is off."""
    config = get_config()
    if not config.audit_enabled:
        return None
    return Path(config.audit_path).expanduser().resolve()


def append_audit(event: Dict[str, Any]) -> None:
    """Append one JSON line to the audit trail when auditing is enabled."""
    path = audit_file()
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    enriched = {"ts": datetime.now(timezone.utc).isoformat(), **event}
    with path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(enriched, ensure_ascii=False, default=str) + "\n")
