import logging
from typing import Optional

from pydispatch import dispatcher

from appreg import logging_constants
from appreg.model.node.app_reg_node import AppRegNode
from appreg.signal_constants import ID_APP_REG_TREE, Signal

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Tells the host view to re-render. A node-scoped event re-renders only that node (and its subtree);
    an event with node=None re-renders the whole tree."""

    def __init__(self, tree_id: str = ID_APP_REG_TREE):
        self.tree_id: str = tree_id

    def notify_node_changed(self, node: Optional[AppRegNode] = None):
        if logging_constants.SUPER_DEBUG_ENABLED:
            logger.debug(f'[{self.tree_id}] Firing TREE_CHANGED for {node if node else "whole tree"}')
        dispatcher.send(signal=Signal.TREE_CHANGED, sender=self.tree_id, node=node)

    def notify_tree_state_changed(self, old_state, new_state):
        logger.debug(f'[{self.tree_id}] Tree state: {old_state.name if old_state else None} -> {new_state.name}')
        dispatcher.send(signal=Signal.TREE_STATE_CHANGED, sender=self.tree_id, old_state=old_state, new_state=new_state)
