import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lastmile_server.modules.deployments.service import DeploymentRegistry

logger = logging.getLogger(__name__)


async def advance_deployment_async(registry: "DeploymentRegistry", deployment_id: str):
    """
    Background advancement worker.
    Waits stage_delay before each stage and steps the record forward until it is terminal.
    Stops silently once the record has been deleted.
    """
    try:
        while True:
            await asyncio.sleep(registry.stage_delay)
            status = registry.step(deployment_id)
            if status is None:
                logger.debug(f"Deployment {deployment_id} no longer advancing")
                return
            if status.is_terminal:
                logger.info(f"Deployment {deployment_id} completed successfully")
                return
    except asyncio.CancelledError:
        logger.debug(f"Advancement cancelled for deployment {deployment_id}")
        raise
    except Exception as e:
        logger.error(f"Deployment worker error: {str(e)}")
        registry.mark_failed(deployment_id, str(e))
    finally:
        registry.tasks.unregister(deployment_id)
