import asyncio
import logging
from typing import List, Optional

from appreg.backend.change_notifier import ChangeNotifier
from appreg.backend.error_handler import ErrorHandler
from appreg.backend.filter_controller import FilterController
from appreg.backend.lazy_resolver import LazyExpansionResolver
from appreg.backend.status_bar import StatusBar
from appreg.backend.tree_builder import TreeBuilder
from appreg.client.directory_client import DirectoryClient
from appreg.constants import CFG_MAXIMUM_APPLICATIONS_SHOWN, CFG_MAXIMUM_QUERY_APPS, CFG_SHOW_DELETED_APPLICATIONS, \
    CFG_SHOW_OWNED_APPLICATIONS_ONLY, CFG_USE_EVENTUAL_CONSISTENCY, STATUS_LOADING, TreeState
from appreg.model.category import Category
from appreg.model.node.app_reg_node import AppRegNode
from appreg.signal_constants import ID_APP_CONFIG, ID_APP_REG_TREE, Signal
from appreg.ui.host_ui import HostUi
from appreg.util.ensure import ensure_bool
from appreg.util.has_lifecycle import HasLifecycle, start_func, stop_func

logger = logging.getLogger(__name__)

# Changing any of these changes what the listing returns
_LISTING_CFG_PATHS = frozenset({
    CFG_USE_EVENTUAL_CONSISTENCY,
    CFG_SHOW_OWNED_APPLICATIONS_ONLY,
    CFG_SHOW_DELETED_APPLICATIONS,
    CFG_MAXIMUM_APPLICATIONS_SHOWN,
    CFG_MAXIMUM_QUERY_APPS,
})


class AppRegTreeDataProvider(HasLifecycle):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS AppRegTreeDataProvider

    The face of the tree which the host view and the mutation services talk to. Wires together the TreeBuilder,
    LazyExpansionResolver, FilterController and ErrorHandler, which share one StatusBar and one ChangeNotifier.

    The host asks get_children(None) for the root, and get_children(node) when a node is expanded. It re-renders on
    Signal.TREE_CHANGED.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, app_config, client: DirectoryClient, host_ui: HostUi, tree_id: str = ID_APP_REG_TREE,
                 status_bar: Optional[StatusBar] = None):
        HasLifecycle.__init__(self)
        self.app_config = app_config
        self.client: DirectoryClient = client
        self.host_ui: HostUi = host_ui
        self.tree_id: str = tree_id

        self.status_bar: StatusBar = status_bar if status_bar else StatusBar()
        self.change_notifier: ChangeNotifier = ChangeNotifier(tree_id)
        self.tree_builder: TreeBuilder = TreeBuilder(app_config, client, host_ui, self.status_bar, self.change_notifier)
        self.error_handler: ErrorHandler = ErrorHandler(self.tree_builder, host_ui, self.status_bar, self.change_notifier)
        self.tree_builder.error_handler = self.error_handler
        self.resolver: LazyExpansionResolver = LazyExpansionResolver(client, self.error_handler, tree_id)
        self.filter_controller: FilterController = FilterController(self.tree_builder, host_ui, self.status_bar)

        self._pending_tasks = set()

    @start_func
    def start(self):
        self.connect_dispatch_listener(signal=Signal.CONFIG_CHANGED, receiver=self._on_config_changed, sender=ID_APP_CONFIG)

    @stop_func
    def shutdown(self):
        self.status_bar.clear_all()

    # State
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    @property
    def root_nodes(self) -> List[AppRegNode]:
        return self.tree_builder.root_nodes

    @property
    def tree_state(self) -> Optional[TreeState]:
        return self.tree_builder.tree_state

    @property
    def is_tree_empty(self) -> bool:
        return self.tree_builder.is_tree_empty

    @property
    def is_updating(self) -> bool:
        return self.tree_builder.is_updating

    @property
    def filter_text(self) -> Optional[str]:
        return self.filter_controller.filter_text

    # Host-facing
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def initialise(self):
        await self.tree_builder.initialise()

    async def render(self, status_token: Optional[str] = None, target_state: TreeState = TreeState.APPLICATIONS):
        await self.tree_builder.render(status_token, target_state)

    async def get_children(self, node: Optional[AppRegNode] = None) -> Optional[List[AppRegNode]]:
        """Root nodes for None; the resolved list for a RESOLVED node; a fresh fetch for a LAZY node (None on failure)"""
        if node is None:
            return self.tree_builder.root_nodes
        if node.is_lazy():
            return await self.resolver.resolve_children(node)
        return node.children

    async def filter(self):
        await self.filter_controller.filter()

    async def apply_filter(self, prompted_text: Optional[str]):
        await self.filter_controller.apply_filter(prompted_text)

    # For mutation callers
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def trigger_rebuild(self, status_token: Optional[str] = None, target_state: Optional[TreeState] = None):
        await self.tree_builder.render(status_token, target_state if target_state else TreeState.APPLICATIONS)

    def notify_node_changed(self, node: Optional[AppRegNode] = None):
        self.change_notifier.notify_node_changed(node)

    def get_application_parent(self, object_id: str) -> AppRegNode:
        return self.tree_builder.get_application_parent(object_id)

    def find_descendant_by_category(self, node: AppRegNode, category: Category) -> Optional[AppRegNode]:
        return self.tree_builder.find_descendant_by_category(node, category)

    async def handle_error(self, error: Optional[BaseException], node: Optional[AppRegNode] = None, status_token: Optional[str] = None):
        await self.error_handler.handle_error(error, node=node, status_token=status_token)

    # Listeners
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    def _on_config_changed(self, cfg_path: str, value):
        if cfg_path not in _LISTING_CFG_PATHS:
            return

        if cfg_path == CFG_USE_EVENTUAL_CONSISTENCY and not ensure_bool(value) and self.filter_controller.filter_text is not None:
            # Server-side filters need eventual consistency
            logger.info(f'[{self.tree_id}] Eventual consistency disabled; dropping filter "{self.filter_controller.filter_text}"')
            self.filter_controller.filter_text = None
            self.tree_builder.filter_predicate = None

        if self.tree_builder.tree_state not in (TreeState.APPLICATIONS, TreeState.EMPTY):
            logger.debug(f'[{self.tree_id}] Setting "{cfg_path}" changed while in state {self.tree_builder.tree_state}; not rebuilding')
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f'[{self.tree_id}] Setting "{cfg_path}" changed outside the event loop; not rebuilding')
            return

        logger.debug(f'[{self.tree_id}] Setting "{cfg_path}" changed; rebuilding')
        task = loop.create_task(self.tree_builder.rebuild(self.status_bar.set_status_message(STATUS_LOADING)))
        self._pending_tasks.add(task)
        task.add_done_callback(self._pending_tasks.discard)

    async def join_pending_tasks(self):
        """Waits for rebuilds triggered by setting changes, and for open dialogs"""
        while True:
            await self.tree_builder.join_background_tasks()
            if not self._pending_tasks:
                return
            await asyncio.gather(*list(self._pending_tasks))
