# portal/operations/health_monitor.py
# Liveness/Readiness health checks (DB, disk, storage configuration)

import os
import shutil
from typing import Dict
from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from portal import db

MIN_FREE_DISK_GB = float(os.getenv("MIN_FREE_DISK_GB", "1"))


def _check_db() -> Dict:
    try:
        db.session.execute(text("SELECT 1"))
        return {"ok": True, "detail": "database reachable"}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"ok": False, "error": str(e)}


def _check_disk() -> Dict:
    log_dir = current_app.config.get("AUDIT_LOG_DIR", ".")
    total, used, free = shutil.disk_usage(log_dir if os.path.isdir(log_dir) else ".")
    free_gb = free / (1024**3)
    return {"ok": free_gb >= MIN_FREE_DISK_GB, "free_gb": round(free_gb, 2), "min_required_gb": MIN_FREE_DISK_GB}


def _check_storage_config() -> Dict:
    configured = bool(current_app.config.get("STORAGE_URL")) and bool(current_app.config.get("STORAGE_API_KEY"))
    return {"ok": configured, "bucket": current_app.config.get("STORAGE_BUCKET")}


def check_health() -> Dict:
    """Aggregate overall system health."""
    database = _check_db()
    disk = _check_disk()
    storage = _check_storage_config()
    # uploads degrade without storage, the rest of the portal keeps working
    overall = database["ok"] and disk["ok"]
    return {"db": database, "disk": disk, "storage": storage, "overall_ok": overall}


def check_readiness() -> Dict:
    database = _check_db()
    return {"db": database, "overall_ok": database["ok"]}
