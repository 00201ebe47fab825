"""
Configuración de Celery para tareas asíncronas y de mantenimiento periódico.
"""

from celery import Celery

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "endoflow",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# ── Celery Beat: barridos del odontograma ────────────
celery_app.conf.beat_schedule = {
    "repair-tooth-linkages": {
        "task": "maintenance.repair_tooth_linkages",
        "schedule": settings.LINKAGE_REPAIR_INTERVAL_MINUTES * 60,
    },
    "audit-tooth-colors": {
        "task": "maintenance.audit_tooth_colors",
        "schedule": settings.TOOTH_AUDIT_INTERVAL_MINUTES * 60,
    },
}

# Auto-descubrir tareas en app/tasks/
celery_app.autodiscover_tasks(["app.tasks"], related_name="maintenance_tasks")
