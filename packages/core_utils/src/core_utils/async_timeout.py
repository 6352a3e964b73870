import asyncio, logging
from typing import Awaitable, TypeVar

import core_metrics
from core_config.constants import timeout_for_stage

T = TypeVar("T")


async def run_with_stage_timeout(stage: str, task: Awaitable[T], logger: logging.Logger,
                                 *, timeout_s: float | None = None) -> T:
    """Executes *task* under the per-stage budget; raises ``asyncio.TimeoutError`` on expiry."""
    budget = timeout_s if timeout_s is not None else timeout_for_stage(stage)
    try:
        return await asyncio.wait_for(task, budget)
    except asyncio.TimeoutError:
        logger.warning("stage_timeout", extra={"stage": stage, "timeout_s": budget})
        core_metrics.counter("stage_timeouts_total", 1, stage=stage)
        raise
