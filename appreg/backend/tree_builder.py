import asyncio
import logging
from typing import Awaitable, List, Optional, Set, Tuple

import treelib
from pydispatch import dispatcher

from appreg import logging_constants
from appreg.backend import app_node_factory, consistency_advisor
from appreg.backend.change_notifier import ChangeNotifier
from appreg.backend.consistency_advisor import Advisory
from appreg.backend.status_bar import StatusBar
from appreg.client.directory_client import DirectoryClient
from appreg.constants import ACTION_DISABLE_WARNING, ACTION_NO, ACTION_YES, APPLICATION_SELECT_PROPERTIES, ApplicationListView, \
    CFG_MAXIMUM_APPLICATIONS_SHOWN, CFG_MAXIMUM_QUERY_APPS, CFG_SHOW_APPLICATION_COUNT_WARNING, CFG_SHOW_DELETED_APPLICATIONS, \
    CFG_SHOW_OWNED_APPLICATIONS_ONLY, CFG_USE_EVENTUAL_CONSISTENCY, DEFAULT_MAXIMUM_APPLICATIONS_SHOWN, DEFAULT_MAXIMUM_QUERY_APPS, \
    RebuildState, TreeState
from appreg.error import ApplicationNotFoundError, GraphError
from appreg.model.category import Category
from appreg.model.graph_result import GraphResult
from appreg.model.node import ephemeral_node
from appreg.model.node.app_reg_node import AppRegNode
from appreg.signal_constants import Signal
from appreg.ui.host_ui import HostUi
from appreg.util.ensure import ensure_bool, ensure_int
from appreg.util.text_util import normalize_for_sort

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS TreeBuilder

    Owns the root-level node list and the single-flight rebuild guard.

    A rebuild fetches the listing of applications, then fetches the fixed property projection of each application
    concurrently, and builds each application's static subtree. The root list is only ever replaced wholesale (never
    patched), at the end of a rebuild or when the tree switches to one of the single-node states.

    Rebuild requests which arrive while a rebuild is in flight are dropped, not queued. Callers which need a fresh view
    must trigger again afterwards.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, app_config, client: DirectoryClient, host_ui: HostUi, status_bar: StatusBar, change_notifier: ChangeNotifier):
        self.app_config = app_config
        self.client: DirectoryClient = client
        self.host_ui: HostUi = host_ui
        self.status_bar: StatusBar = status_bar
        self.change_notifier: ChangeNotifier = change_notifier
        self.tree_id: str = change_notifier.tree_id

        self.error_handler = None
        """Set by the owner after construction (the error handler itself needs a TreeBuilder)"""

        self.root_nodes: List[AppRegNode] = []
        self.tree_state: Optional[TreeState] = None
        self.rebuild_state: RebuildState = RebuildState.IDLE

        self.filter_predicate: Optional[str] = None
        """OData predicate applied to the listing, or None. Set by FilterController"""

        self._background_tasks: Set[asyncio.Future] = set()

    # Queries
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    @property
    def is_updating(self) -> bool:
        return self.rebuild_state == RebuildState.REBUILDING

    @property
    def is_tree_empty(self) -> bool:
        if not self.root_nodes:
            return True
        return len(self.root_nodes) == 1 and self.root_nodes[0].category == Category.EMPTY

    def get_application_parent(self, object_id: str) -> AppRegNode:
        for node in self.root_nodes:
            if node.category in (Category.APPLICATION, Category.APPLICATION_DELETED) and node.object_id == object_id:
                return node
        raise ApplicationNotFoundError(object_id)

    @staticmethod
    def find_descendant_by_category(node: AppRegNode, category: Category) -> Optional[AppRegNode]:
        """Depth-first search of the resolved part of the subtree below the given node"""
        for descendant in node.iter_descendants():
            if descendant.category == category:
                return descendant
        return None

    def get_list_view(self) -> ApplicationListView:
        if ensure_bool(self.app_config.get_config(CFG_SHOW_DELETED_APPLICATIONS, False, is_required=False)):
            return ApplicationListView.DELETED
        if ensure_bool(self.app_config.get_config(CFG_SHOW_OWNED_APPLICATIONS_ONLY, True, is_required=False)):
            return ApplicationListView.OWNED
        return ApplicationListView.ALL

    def use_eventual_consistency(self) -> bool:
        return ensure_bool(self.app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY, False, is_required=False))

    # Root replacement
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    def replace_root(self, node_list: List[AppRegNode], new_state: TreeState):
        """Assigns a new root list (never mutates the old one), then fires a whole-tree change event"""
        old_state = self.tree_state
        self.root_nodes = node_list
        self.tree_state = new_state
        if old_state != new_state:
            self.change_notifier.notify_tree_state_changed(old_state, new_state)
        self.change_notifier.notify_node_changed(None)

        if logging_constants.SUPER_DEBUG_ENABLED:
            self.print_tree_contents_debug()

    def print_tree_contents_debug(self):
        debug_tree = treelib.Tree()
        debug_tree.create_node(tag=f'[{self.tree_id}] {self.tree_state.name if self.tree_state else None}', identifier='root')
        stack = [('root', node) for node in self.root_nodes]
        while stack:
            parent_identifier, node = stack.pop()
            debug_tree.add_node(node, parent=parent_identifier)
            for child in node.children or []:
                stack.append((node.identifier, child))
        logger.debug(f'[{self.tree_id}] Tree contents:\n' + debug_tree.show(stdout=False))

    # State machine
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def render(self, status_token: Optional[str] = None, target_state: TreeState = TreeState.APPLICATIONS):
        logger.debug(f'[{self.tree_id}] Render requested: {target_state.name}')
        if target_state == TreeState.INITIALISING:
            self.replace_root([ephemeral_node.build_initialising_node()], TreeState.INITIALISING)
        elif target_state == TreeState.AUTHENTICATING:
            self.replace_root([ephemeral_node.build_authenticating_node()], TreeState.AUTHENTICATING)
        elif target_state == TreeState.EMPTY:
            self.replace_root([ephemeral_node.build_empty_node()], TreeState.EMPTY)
            self.status_bar.clear(status_token)
        elif target_state == TreeState.SIGN_IN:
            self.replace_root([ephemeral_node.build_sign_in_node()], TreeState.SIGN_IN)
            self.status_bar.clear(status_token)
        elif target_state == TreeState.AUTHENTICATED:
            # Show the initialising node while the first rebuild runs
            self.replace_root([ephemeral_node.build_initialising_node()], TreeState.AUTHENTICATED)
            await self.rebuild(status_token)
        elif target_state == TreeState.APPLICATIONS:
            await self.rebuild(status_token)
        else:
            raise RuntimeError(f'Unrecognized tree state: {target_state}')

    async def initialise(self):
        """Checks whether credentials are available, then shows either the sign-in node or the applications"""
        await self.render(target_state=TreeState.AUTHENTICATING)
        try:
            is_signed_in = await self.client.initialise()
        except Exception as err:
            logger.warning(f'[{self.tree_id}] Client initialisation failed: {err!r}')
            await self.error_handler.handle_error(err)
            return

        if is_signed_in:
            await self.render(target_state=TreeState.AUTHENTICATED)
        else:
            await self.render(target_state=TreeState.SIGN_IN)

    # Rebuild
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def rebuild(self, status_token: Optional[str] = None):
        """Never raises. The status token (if any) is released on every path."""
        if self.rebuild_state == RebuildState.REBUILDING:
            logger.debug(f'[{self.tree_id}] Rebuild already in progress; dropping request')
            self.status_bar.clear(status_token)
            return

        self.rebuild_state = RebuildState.REBUILDING
        dispatcher.send(signal=Signal.REBUILD_STARTED, sender=self.tree_id)
        error: Optional[GraphError] = None
        try:
            error = await self._populate()
        except Exception as err:
            # Transport-level rejections from the client, or bad data from the remote
            logger.exception(f'[{self.tree_id}] Unexpected error during rebuild')
            error = GraphError.from_exception(err)
        finally:
            # Clear the guard first, so that error recovery may itself trigger a rebuild
            self.rebuild_state = RebuildState.IDLE

        dispatcher.send(signal=Signal.REBUILD_DONE, sender=self.tree_id)
        if error:
            await self.error_handler.handle_error(error, status_token=status_token)
        else:
            self.status_bar.clear(status_token)

    async def _populate(self) -> Optional[GraphError]:
        """Returns the error to be surfaced (if any). The root list is left untouched if the count or listing fails."""
        list_view = self.get_list_view()
        use_eventual_consistency = self.use_eventual_consistency()

        if ensure_bool(self.app_config.get_config(CFG_SHOW_APPLICATION_COUNT_WARNING, False, is_required=False)):
            count_result = await self._fetch_count(list_view)
            if not count_result.success:
                logger.debug(f'[{self.tree_id}] Count failed; aborting rebuild: {count_result.error!r}')
                return count_result.error

            advisory = consistency_advisor.advise(count_result.value, use_eventual_consistency)
            if advisory:
                self._present_advisory(advisory)

        list_result = await self._fetch_listing(list_view)
        if not list_result.success:
            logger.debug(f'[{self.tree_id}] Listing failed; aborting rebuild: {list_result.error!r}')
            return list_result.error

        listing = list_result.value or []
        if not listing:
            logger.debug(f'[{self.tree_id}] Listing is empty')
            self.replace_root([ephemeral_node.build_empty_node()], TreeState.EMPTY)
            return None

        if not use_eventual_consistency:
            # Without eventual consistency the server cannot order by name
            listing = sorted(listing, key=lambda a: normalize_for_sort(a.get('displayName')))

        if list_view == ApplicationListView.DELETED:
            node_list = [app_node_factory.build_deleted_application_node(app, order) for order, app in enumerate(listing)]
            first_error = None
        else:
            task_list = [self._build_application_node(app, order) for order, app in enumerate(listing)]
            result_list = await asyncio.gather(*task_list)

            node_list = []
            first_error = None
            for node, error in result_list:
                if node:
                    node_list.append(node)
                elif error and not first_error:
                    first_error = error

        node_list.sort(key=lambda n: n.order)
        logger.info(f'[{self.tree_id}] Rebuilt tree: {len(node_list)} of {len(listing)} applications ({list_view.name})')
        self.replace_root(node_list, TreeState.APPLICATIONS)
        return first_error

    async def _build_application_node(self, app: dict, order: int) -> Tuple[Optional[AppRegNode], Optional[GraphError]]:
        object_id = app.get('id')
        try:
            result = await self.client.get_partial(object_id, APPLICATION_SELECT_PROPERTIES, expand_owners=True)
        except Exception as err:
            result = GraphResult.fail(GraphError.from_exception(err))

        if result.success:
            return app_node_factory.build_application_node(result.value, order), None

        if result.is_not_found():
            # Deleted since the listing was fetched: still listed under eventual consistency
            logger.info(f'[{self.tree_id}] Application no longer exists; dropping: {object_id}')
            return None, None

        logger.warning(f'[{self.tree_id}] Failed to fetch application {object_id}; dropping it: {result.error!r}')
        return None, result.error

    async def _fetch_count(self, list_view: ApplicationListView) -> GraphResult[int]:
        try:
            if list_view == ApplicationListView.OWNED:
                return await self.client.count_owned()
            elif list_view == ApplicationListView.ALL:
                return await self.client.count_all()
            else:
                return await self.client.count_deleted()
        except Exception as err:
            return GraphResult.fail(GraphError.from_exception(err))

    async def _fetch_listing(self, list_view: ApplicationListView) -> GraphResult[list]:
        if self.filter_predicate is None:
            top = ensure_int(self.app_config.get_config(CFG_MAXIMUM_APPLICATIONS_SHOWN, DEFAULT_MAXIMUM_APPLICATIONS_SHOWN, is_required=False))
        else:
            top = ensure_int(self.app_config.get_config(CFG_MAXIMUM_QUERY_APPS, DEFAULT_MAXIMUM_QUERY_APPS, is_required=False))

        logger.debug(f'[{self.tree_id}] Fetching {list_view.name} listing (filter={self.filter_predicate} top={top})')
        try:
            if list_view == ApplicationListView.OWNED:
                return await self.client.list_owned(self.filter_predicate, top)
            elif list_view == ApplicationListView.ALL:
                return await self.client.list_all(self.filter_predicate, top)
            else:
                return await self.client.list_deleted(self.filter_predicate, top)
        except Exception as err:
            return GraphResult.fail(GraphError.from_exception(err))

    # Advisory
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    def _present_advisory(self, advisory: Advisory):
        """Shows the prompt in the background. The rebuild does not wait for the operator"""
        logger.debug(f'[{self.tree_id}] Presenting advisory: {advisory}')
        self.run_in_background(self._prompt_advisory(advisory), f'advisory {advisory}')

    async def _prompt_advisory(self, advisory: Advisory):
        action = await self.host_ui.show_warning_message(advisory.message, ACTION_YES, ACTION_NO, ACTION_DISABLE_WARNING)
        consistency_advisor.apply_resolution(advisory, consistency_advisor.resolution_from_action(action), self.app_config)

    # Background tasks
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    def run_in_background(self, coro: Awaitable, description: str):
        """For dialogs which the operator may leave open: the caller carries on without waiting for an answer"""
        task = asyncio.ensure_future(self._run_logged(coro, description))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _run_logged(self, coro: Awaitable, description: str):
        try:
            await coro
        except Exception:
            logger.exception(f'[{self.tree_id}] Background task failed: {description}')

    async def join_background_tasks(self):
        """Waits for any prompts or messages which are still open"""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))
