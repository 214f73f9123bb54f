import logging
from typing import Any, Dict, Optional

from appreg.constants import ICON_LOADING
from appreg.model.graph_result import GraphResult
from appreg.model.icon import Icon
from appreg.model.node.app_reg_node import AppRegNode

logger = logging.getLogger(__name__)


class ServiceBase:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS ServiceBase

    Glue for services which perform one mutation against the directory and then refresh the tree.
    The usual sequence is: indicate_change() -> client call -> trigger_refresh(token) on success,
    or handle_error(error, token) on failure.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, provider, client):
        self.provider = provider
        self.client = client
        self.host_ui = provider.host_ui
        self.tree_id: str = provider.tree_id

        self.node: Optional[AppRegNode] = None
        """The node which the current operation was started on. Its icon is restored if the operation fails"""

    def indicate_change(self, message: Optional[str] = None, node: Optional[AppRegNode] = None) -> Optional[str]:
        """Shows the busy indicator (if message given) and puts a spinner on the node (if given).
        Returns the status token, or None if no message was given."""
        status_token = None
        if message is not None:
            status_token = self.provider.status_bar.set_status_message(message)

        if node is not None:
            self.node = node
            node.set_busy(Icon(ICON_LOADING))
            self.provider.notify_node_changed(node)

        return status_token

    async def trigger_refresh(self, status_token: Optional[str] = None):
        await self.provider.render(status_token)

    async def handle_error(self, error, status_token: Optional[str] = None):
        await self.provider.handle_error(error, node=self.node, status_token=status_token)

    async def update_application(self, object_id: str, patch: Dict[str, Any], status_token: Optional[str] = None):
        logger.debug(f'[{self.tree_id}] Updating application {object_id}: {list(patch.keys())}')
        result: GraphResult = await self.client.update_application(object_id, patch)
        if result.success:
            await self.trigger_refresh(status_token)
        else:
            await self.handle_error(result.error, status_token)

    def reset_node_icon(self, node: AppRegNode):
        node.reset_icon()
        self.provider.notify_node_changed(node)

    def dispose(self):
        self.provider.status_bar.clear_all()
        self.node = None
