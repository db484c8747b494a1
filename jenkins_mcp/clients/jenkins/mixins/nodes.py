from loguru import logger

from jenkins_mcp.clients.jenkins.decoders import decode_nodes, decode_server_health
from jenkins_mcp.clients.jenkins.mixins.base import JenkinsApiMixin
from jenkins_mcp.clients.jenkins.types import Node, ServerHealth
from jenkins_mcp.clients.jenkins.utils import bounded

NODES_TREE = "computer[displayName,offline,temporarilyOffline,numExecutors]"
SERVER_HEALTH_TREE = "mode,quietingDown"


class NodeClientMixin(JenkinsApiMixin):
    @bounded("get_nodes")
    async def get_nodes(self) -> list[Node]:
        logger.info("Listing Jenkins nodes")
        response = await self._send_api_request(
            "GET", "/computer/api/json", resource="nodes", tree=NODES_TREE
        )
        return decode_nodes(response.content)

    @bounded("server_health")
    async def server_health(self) -> ServerHealth:
        response = await self._send_api_request(
            "GET", "/api/json", resource="server", tree=SERVER_HEALTH_TREE
        )
        return decode_server_health(response.content, response.headers.get("X-Jenkins"))
