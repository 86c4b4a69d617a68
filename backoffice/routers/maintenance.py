"""
Maintenance Router

On-demand triggers for the scheduled jobs. Runs inline by default so the
response carries the job's result; ``background=true`` defers it until after
the response.
"""

from datetime import datetime
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from backoffice.database import get_db
from backoffice.services.scheduler import JOBS, MaintenanceScheduler

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.get("")
def list_jobs():
    return [
        {"name": job.name, "schedule": job.schedule, "description": job.description}
        for job in JOBS.values()
    ]


@router.post("/{job_name}")
def trigger_job(
    job_name: str,
    background_tasks: BackgroundTasks,
    background: bool = False,
    now: Optional[datetime] = None,
    db: Session = Depends(get_db)
):
    if job_name not in JOBS:
        raise HTTPException(status_code=404, detail=f"Unknown maintenance job: {job_name}")

    if background:
        MaintenanceScheduler().enqueue(background_tasks, job_name)
        return {"job": job_name, "status": "queued"}

    result = JOBS[job_name].handler(db, now or datetime.now())
    return {"job": job_name, "status": "completed", "result": result}
