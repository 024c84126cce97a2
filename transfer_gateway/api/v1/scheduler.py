"""POST /v1/scheduler/run - trigger one recurring transfer run on demand"""

from fastapi import APIRouter, Depends

from transfer_gateway.api.dependencies import get_scheduler
from transfer_gateway.api.v1.schemas import SchedulerRunResponse
from transfer_gateway.services.scheduler import RecurringTransferScheduler

router = APIRouter()


@router.post("/scheduler/run", response_model=SchedulerRunResponse)
async def run_scheduler(scheduler: RecurringTransferScheduler = Depends(get_scheduler)):
    report = await scheduler.run_once()
    return SchedulerRunResponse(run_at=report.run_at, cutoff=report.cutoff, counts=report.counts())
