from backoffice.services.base import BaseService
from backoffice.models.audit_log import AuditLog
from typing import Optional

class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        actor_id: Optional[int],
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None
    ):
        """
        Create a centralized audit log entry.
        Strictly append-only. The entry joins the caller's transaction and is
        only flushed here; the caller decides when to commit.
        """
        try:
            def sanitize(obj):
                if hasattr(obj, "model_dump"):
                    return obj.model_dump(mode="json")
                if isinstance(obj, dict):
                    return {k: sanitize(v) for k, v in obj.items()}
                if isinstance(obj, (list, tuple)):
                    return [sanitize(i) for i in obj]
                if obj is None or isinstance(obj, (str, int, float, bool)):
                    return obj
                return str(obj)

            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor_id=actor_id,
                details=sanitize(details),
                before_state=sanitize(before_state),
                after_state=sanitize(after_state)
            )
            with self.db.begin_nested():
                self.db.add(db_log)
            return db_log
        except Exception as e:
            # Never break the main flow because of an audit failure
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            return None

    def log_operational_event(self, event_type: str, status: str, details: dict):
        """
        Specialized logger for sweeps and engine anomalies.
        """
        return self.log_action(
            action=f"ops_{event_type}",
            entity_type="system",
            entity_id=None,
            actor_id=None,
            details={**details, "ops_status": status}
        )

    def flag_anomaly(self, kind: str, details: dict, entity_type: str = "system", entity_id: Optional[int] = None):
        """
        Record a data-integrity anomaly the engine resolved on its own.
        """
        self.log_warning(f"Anomaly flagged: {kind}", anomaly=kind)
        return self.log_action(
            action=f"anomaly_{kind}",
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=None,
            details=details
        )

    # Static shortcut for one-off calls from routers
    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)
