from datetime import datetime, timezone
from typing import Dict, List, Optional


def now() -> str:
    return utc_now().isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_z(dt: datetime) -> str:
    """Format an aware datetime the way the Kubernetes API does (second precision, Z)."""
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def upsert_condition(conds, newc, timestamp: Optional[str] = None):
    """In-memory merge by .type. Only bump lastTransitionTime when status flips."""
    timestamp = timestamp or now()
    conds = list(conds or [])
    for i, c in enumerate(conds):
        if c.get("type") == newc["type"]:
            ltt = c.get("lastTransitionTime") or timestamp
            if c.get("status") != newc["status"]:
                ltt = timestamp
            conds[i] = {**c, **newc, "lastTransitionTime": ltt}
            break
    else:
        conds.append({**newc, "lastTransitionTime": timestamp})
    return conds


def find_condition(conds: List[Dict], cond_type: str) -> Optional[Dict]:
    for c in conds or []:
        if c.get("type") == cond_type:
            return c
    return None
