"""Registry of deployment_id -> asyncio.Task for the running advancement workers."""
import asyncio
import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class TaskRegistry:
    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def register(self, deployment_id: str, task: asyncio.Task) -> None:
        self._tasks[deployment_id] = task
        logger.debug(f"Registered task for deployment {deployment_id}")

    def unregister(self, deployment_id: str) -> None:
        self._tasks.pop(deployment_id, None)
        logger.debug(f"Unregistered deployment {deployment_id}")

    def get_task(self, deployment_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(deployment_id)

    def cancel(self, deployment_id: str) -> bool:
        """Cancel the worker for deployment_id. Returns True if a running task was found."""
        task = self._tasks.pop(deployment_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def cancel_all(self) -> int:
        tasks = [t for t in self._tasks.values() if not t.done()]
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        return len(tasks)

    def __len__(self) -> int:
        return len(self._tasks)
