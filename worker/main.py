# worker/main.py
"""
Background worker: consumes delayed tasks and forwards outbox events.
"""
from __future__ import annotations

import asyncio
import logging
import os
import platform
import sys
import traceback
import uuid

# Ensure project root is on path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.app.config import Settings, get_settings
from services.context import AppContext
from services.events import dispatch_pending_events
from tasks.handlers import Handler, build_handlers
from tasks.queue import QueueHandle

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("worker")


WORKER_ID = f"worker-{platform.node()}-{uuid.uuid4().hex[:8]}"


async def process_next(ctx: AppContext, queue: QueueHandle, handler: Handler, worker_id: str) -> bool:
    """Claims and runs one due task. Returns False when the queue had nothing due."""
    async with ctx.session_factory() as db:
        task = await queue.claim(db, worker_id)
        await db.commit()

    if task is None:
        return False

    try:
        # handler writes and the ack commit together
        async with ctx.session_factory() as db:
            result = await handler(db, task.payload)
            await queue.complete(db, task, result)
            await db.commit()
    except Exception as exc:
        tb = traceback.format_exc()
        async with ctx.session_factory() as db:
            await queue.fail(db, task, f"{exc}\n{tb}")
            await db.commit()

    return True


async def consume(ctx: AppContext, queue: QueueHandle, handler: Handler, worker_id: str) -> None:
    poll = ctx.settings.worker_poll_interval
    while True:
        try:
            if await process_next(ctx, queue, handler, worker_id):
                continue
        except Exception as exc:
            logger.exception("Worker %s loop error: %s", worker_id, exc)

        await asyncio.sleep(poll)


async def dispatch_outbox(ctx: AppContext) -> None:
    settings = ctx.settings
    url = f"{settings.chat_app_url.rstrip('/')}{settings.chat_update_path}"
    logger.info("Outbox dispatcher forwarding to %s", url)

    while True:
        delivered = 0
        try:
            delivered = await dispatch_pending_events(
                ctx.session_factory,
                ctx.http,
                url,
                batch_size=settings.outbox_batch_size,
                max_attempts=settings.outbox_max_attempts,
            )
        except Exception as exc:
            logger.exception("Outbox dispatch error: %s", exc)

        if not delivered:
            await asyncio.sleep(settings.worker_poll_interval)


async def run_loop(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    ctx = AppContext(settings)
    await ctx.init()

    handlers = build_handlers(settings.jobs_queue_name)
    logger.info(
        "Worker %s starting (queues=%s slots=%d poll=%.1fs)",
        WORKER_ID,
        ",".join(handlers),
        settings.worker_concurrency,
        settings.worker_poll_interval,
    )

    loops = []
    for queue_name, handler in handlers.items():
        queue = ctx.queues.get_queue(queue_name)
        for slot in range(max(settings.worker_concurrency, 1)):
            loops.append(consume(ctx, queue, handler, f"{WORKER_ID}-{slot}"))

    if settings.chat_app_url:
        loops.append(dispatch_outbox(ctx))
    else:
        logger.warning("CHAT_APP_URL not set; outbox events stay pending")

    try:
        await asyncio.gather(*loops)
    finally:
        await ctx.close()


def main() -> None:
    asyncio.run(run_loop())


if __name__ == "__main__":
    main()
