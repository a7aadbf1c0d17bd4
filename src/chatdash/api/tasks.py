"""Background task API — hand work to the queue worker.

Accepted tasks are pushed onto the task queue and the call returns 202
immediately. Whether a worker ever picks them up is not our concern
here; if Redis is down the task is dropped and logged.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from chatdash.api.deps import get_task_queue
from chatdash.auth.dependencies import CurrentIdentity, get_current_user
from chatdash.tasks.queue import TASK_QUEUE, TaskQueue

router = APIRouter()


class TaskSubmit(BaseModel):
    type: str = Field(..., min_length=1, max_length=100)
    data: dict[str, Any] = Field(default_factory=dict)


@router.post("/tasks", status_code=202)
async def submit_task(
    body: TaskSubmit,
    identity: CurrentIdentity = Depends(get_current_user),
    tasks: TaskQueue = Depends(get_task_queue),
):
    queued = await tasks.publish(
        TASK_QUEUE,
        {"type": body.type, "data": body.data, "user_id": identity.user_id},
    )
    return {"message": "Task queued for processing", "queued": queued}
