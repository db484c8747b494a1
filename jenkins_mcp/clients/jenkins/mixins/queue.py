from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_queue, decode_queue_item
from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.types import QueueItem
from jenkins_mcp.clients.jenkins.utils import bounded, validate_queue_id

QUEUE_ITEM_FIELDS = "id,task[name],why,blocked,buildable,stuck,inQueueSince,params"
QUEUE_TREE = f"items[{QUEUE_ITEM_FIELDS}]"


class QueueClientMixin(JenkinsApiMixin):
    @bounded("get_queue")
    async def get_queue(self) -> list[QueueItem]:
        logger.info("Fetching the Jenkins build queue")
        response = await self._send_api_request(
            "GET", "/queue/api/json", resource="queue", tree=QUEUE_TREE
        )
        return decode_queue(response.content)

    @bounded("get_queue_item")
    async def get_queue_item(self, queue_id: int) -> QueueItem:
        validate_queue_id(queue_id)
        logger.info(f"Fetching queue item {queue_id}")
        response = await self._send_api_request(
            "GET",
            f"/queue/item/{queue_id}/api/json",
            resource="queue item",
            key=queue_id,
            tree=QUEUE_ITEM_FIELDS,
        )
        return decode_queue_item(response.content)

    @bounded("cancel_queue_item")
    async def cancel_queue_item(self, queue_id: int) -> None:
        validate_queue_id(queue_id)
        logger.info(f"Cancelling queue item {queue_id}")
        await self._send_api_request(
            "POST",
            "/queue/cancelItem",
            resource="queue item",
            key=queue_id,
            params={"id": queue_id},
            accept_redirects=True,
        )
