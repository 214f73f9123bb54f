import asyncio
import logging

from appreg.backend.error_handler import MSG_NOT_SIGNED_IN
from appreg.constants import ACTION_DISABLE_WARNING, ACTION_YES, CFG_SHOW_APPLICATION_COUNT_WARNING, CFG_SHOW_DELETED_APPLICATIONS, \
    CFG_USE_EVENTUAL_CONSISTENCY, STATUS_LOADING, RebuildState, TreeState
from appreg.error import ApplicationNotFoundError, ErrorCode, GraphError
from appreg.model.category import Category
from appreg.model.node.app_reg_node import Expansion
from appreg.signal_constants import Signal
from test.tree_test_base import AppRegTestBase, build_app, node_signature

logger = logging.getLogger(__name__)


class TreeBuilderTest(AppRegTestBase):
    """Rebuild of the root list, the state machine, and the single-flight guard"""

    # TESTS
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def test_rebuild_sorts_by_name_without_eventual_consistency(self):
        self.add_apps('Bravo', 'alpha', 'Charlie')

        await self.provider.trigger_rebuild()

        self.assertEqual(['alpha', 'Bravo', 'Charlie'], self.root_labels)
        self.assertEqual([0, 1, 2], [node.order for node in self.provider.root_nodes])
        self.assertEqual([Category.APPLICATION] * 3, self.root_categories)
        self.assertEqual(TreeState.APPLICATIONS, self.provider.tree_state)
        self.assertFalse(self.provider.is_tree_empty)
        self.assertEqual(3, self.client.count_calls('get_partial'))

    async def test_rebuild_keeps_server_order_with_eventual_consistency(self):
        self.app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, True)
        self.add_apps('Bravo', 'alpha', 'Charlie')

        await self.provider.trigger_rebuild()

        self.assertEqual(['Bravo', 'alpha', 'Charlie'], self.root_labels)
        self.assertEqual([0, 1, 2], [node.order for node in self.provider.root_nodes])

    async def test_rebuild_is_idempotent(self):
        self.add_apps('One', 'Two', 'Three')
        self.client.owners['obj-1'] = [{'id': 'user-1', 'displayName': 'Jo Smith', 'mail': 'jo@example.com'}]

        await self.provider.trigger_rebuild()
        first = [node_signature(node) for node in self.provider.root_nodes]
        first_identifiers = {node.identifier for node in self.provider.root_nodes}

        await self.provider.trigger_rebuild()
        second = [node_signature(node) for node in self.provider.root_nodes]

        self.assertEqual(first, second)
        # Fresh node instances each time
        self.assertFalse(first_identifiers & {node.identifier for node in self.provider.root_nodes})

    async def test_empty_listing(self):
        await self.provider.trigger_rebuild()

        self.assertEqual([Category.EMPTY], self.root_categories)
        self.assertEqual(TreeState.EMPTY, self.provider.tree_state)
        self.assertTrue(self.provider.is_tree_empty)
        self.assertEqual(0, self.client.count_calls('get_partial'))

    async def test_deleted_since_listing_are_dropped(self):
        self.add_apps('Alpha', 'Bravo', 'Charlie')
        self.client.partial_errors['obj-2'] = GraphError('Resource does not exist', code=ErrorCode.NOT_FOUND, status_code=404)

        await self.provider.trigger_rebuild()

        self.assertEqual(['Alpha', 'Charlie'], self.root_labels)
        # Order is the index in the listing, so it may have gaps
        self.assertEqual([0, 2], [node.order for node in self.provider.root_nodes])
        await self.settle()
        self.assertEqual([], self.host_ui.messages)

    async def test_other_detail_errors_are_surfaced_once(self):
        self.add_apps('Alpha', 'Bravo', 'Charlie')
        self.client.partial_errors['obj-1'] = GraphError('Service unavailable', status_code=503)
        self.client.partial_errors['obj-3'] = GraphError('Service unavailable', status_code=503)

        await self.provider.trigger_rebuild()

        self.assertEqual(['Bravo'], self.root_labels)
        await self.settle()
        self.assertEqual(1, len(self.host_ui.get_messages('error')))
        self.assertEqual(1, len(self.signals.get(Signal.ERROR_OCCURRED)))
        self.assertFalse(self.provider.is_updating)

    async def test_rebuild_while_updating_is_dropped(self):
        self.add_apps('Alpha')
        self.provider.tree_builder.rebuild_state = RebuildState.REBUILDING
        status_token = self.provider.status_bar.set_status_message(STATUS_LOADING)

        await self.provider.trigger_rebuild(status_token)

        self.assertEqual([], self.client.calls)
        self.assertFalse(self.provider.status_bar.is_outstanding(status_token))
        self.assertEqual([], self.provider.root_nodes)

    async def test_concurrent_rebuild_is_dropped_not_queued(self):
        self.add_apps('Alpha', 'Bravo')
        self.client.listing_gate = asyncio.Event()

        first_rebuild = asyncio.ensure_future(self.provider.trigger_rebuild())
        await asyncio.sleep(0)
        self.assertTrue(self.provider.is_updating)

        second_token = self.provider.status_bar.set_status_message(STATUS_LOADING)
        await self.provider.trigger_rebuild(second_token)
        self.assertFalse(self.provider.status_bar.is_outstanding(second_token))

        self.client.listing_gate.set()
        await first_rebuild

        self.assertEqual(1, self.client.count_calls('list_owned'))
        self.assertEqual(['Alpha', 'Bravo'], self.root_labels)
        self.assertFalse(self.provider.is_updating)

    async def test_status_token_released_after_rebuild(self):
        self.add_apps('Alpha')
        status_token = self.provider.status_bar.set_status_message(STATUS_LOADING)

        await self.provider.trigger_rebuild(status_token)

        self.assertEqual(0, self.provider.status_bar.outstanding)

    async def test_authentication_lost_shows_sign_in(self):
        self.add_apps('Alpha')
        self.client.listing_error = GraphError("Please run 'az login' to setup account.")
        status_token = self.provider.status_bar.set_status_message(STATUS_LOADING)

        await self.provider.trigger_rebuild(status_token)

        self.assertEqual([Category.SIGN_IN], self.root_categories)
        self.assertEqual(TreeState.SIGN_IN, self.provider.tree_state)
        await self.settle()
        self.assertEqual([MSG_NOT_SIGNED_IN], self.host_ui.get_messages('error'))
        self.assertEqual(0, self.provider.status_bar.outstanding)

    async def test_listing_failure_keeps_previous_root(self):
        self.add_apps('Alpha')
        await self.provider.trigger_rebuild()
        old_root = self.provider.root_nodes

        self.client.listing_error = GraphError('Service unavailable', status_code=503)
        await self.provider.trigger_rebuild()

        self.assertIs(old_root, self.provider.root_nodes)
        await self.settle()
        self.assertEqual(1, len(self.host_ui.get_messages('error')))

    async def test_count_failure_aborts_rebuild(self):
        self.app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)
        self.add_apps('Alpha')
        self.client.count_error = GraphError('Service unavailable', status_code=503)
        status_token = self.provider.status_bar.set_status_message(STATUS_LOADING)

        await self.provider.trigger_rebuild(status_token)
        await self.settle()

        self.assertEqual(['count_owned'], self.client.call_names())
        self.assertFalse(self.provider.status_bar.is_outstanding(status_token))
        self.assertFalse(self.provider.is_updating)
        self.assertEqual(['An error occurred trying to complete your task: Service unavailable.'], self.host_ui.get_messages('error'))
        self.assertEqual([], self.host_ui.get_messages('warning'))

        # Guard was cleared, so the next rebuild goes ahead
        self.client.count_error = None
        await self.provider.trigger_rebuild()
        self.assertEqual(['Alpha'], self.root_labels)

    async def test_count_raising_aborts_rebuild(self):
        self.app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)
        self.add_apps('Alpha')
        self.client.raised_errors['count_owned'] = ConnectionError('Connection reset by peer')

        await self.provider.trigger_rebuild()
        await self.settle()

        self.assertEqual(0, self.client.count_calls('list_owned'))
        self.assertFalse(self.provider.is_updating)
        self.assertEqual(['An error occurred trying to complete your task: Connection reset by peer.'], self.host_ui.get_messages('error'))

    async def test_listing_raising_is_surfaced_once(self):
        self.add_apps('Alpha')
        await self.provider.trigger_rebuild()
        old_root = self.provider.root_nodes
        self.client.raised_errors['list_owned'] = ConnectionError('Connection reset by peer')
        status_token = self.provider.status_bar.set_status_message(STATUS_LOADING)

        await self.provider.trigger_rebuild(status_token)
        await self.settle()

        self.assertIs(old_root, self.provider.root_nodes)
        self.assertEqual(['An error occurred trying to complete your task: Connection reset by peer.'], self.host_ui.get_messages('error'))
        self.assertEqual(1, len(self.signals.get(Signal.ERROR_OCCURRED)))
        self.assertEqual(0, self.provider.status_bar.outstanding)
        self.assertFalse(self.provider.is_updating)

    async def test_detail_fetch_raising_drops_all_and_surfaces_once(self):
        self.add_apps('Alpha', 'Bravo')
        self.client.raised_errors['get_partial'] = TimeoutError('Request timed out')

        await self.provider.trigger_rebuild()
        await self.settle()

        self.assertEqual([], self.provider.root_nodes)
        self.assertEqual(TreeState.APPLICATIONS, self.provider.tree_state)
        self.assertEqual(['An error occurred trying to complete your task: Request timed out.'], self.host_ui.get_messages('error'))
        self.assertFalse(self.provider.is_updating)

    async def test_deleted_view_does_not_fetch_details(self):
        self.app_config.write(CFG_SHOW_DELETED_APPLICATIONS, True)
        self.client.deleted_apps = [build_app('del-1', 'Gone App', deletedDateTime='2024-03-01T00:00:00Z')]

        await self.provider.trigger_rebuild()

        self.assertEqual([Category.APPLICATION_DELETED], self.root_categories)
        self.assertEqual(1, self.client.count_calls('list_deleted'))
        self.assertEqual(0, self.client.count_calls('get_partial'))
        client_id_node = self.provider.root_nodes[0].children[0]
        self.assertEqual(Category.APPID_PARENT, client_id_node.category)

    async def test_application_subtree_shape(self):
        self.client.add_app(build_app('obj-1', 'Full', identifierUris=['api://full'], web={'redirectUris': ['https://a/cb']},
                                      passwordCredentials=[{'keyId': 'k1'}], requiredResourceAccess=[{'resourceAppId': 'r1'}],
                                      api={'oauth2PermissionScopes': [{'id': 's1'}]}, appRoles=[{'id': 'role1'}]))
        self.client.owners['obj-1'] = [{'id': 'user-1', 'displayName': 'Jo Smith'}]
        self.client.add_app(build_app('obj-2', 'Minimal'))

        await self.provider.trigger_rebuild()

        full, minimal = self.provider.root_nodes
        for category in (Category.APPID_URIS, Category.WEB_REDIRECT, Category.PASSWORD_CREDENTIALS, Category.API_PERMISSIONS,
                         Category.EXPOSED_API_PERMISSIONS, Category.APP_ROLES, Category.OWNERS):
            self.assertEqual(Expansion.LAZY, self.provider.find_descendant_by_category(full, category).expansion, category)
        self.assertEqual([], self.provider.find_descendant_by_category(full, Category.SPA_REDIRECT).children)
        self.assertIsNotNone(self.provider.find_descendant_by_category(full, Category.LOGOUT_URL_PARENT))

        self.assertIsNotNone(self.provider.find_descendant_by_category(minimal, Category.APPID_URIS_EMPTY))
        self.assertIsNone(self.provider.find_descendant_by_category(minimal, Category.LOGOUT_URL_PARENT))
        owners = self.provider.find_descendant_by_category(minimal, Category.OWNERS)
        self.assertEqual(Expansion.RESOLVED, owners.expansion)
        self.assertEqual([], owners.children)

    async def test_get_application_parent(self):
        self.add_apps('Alpha', 'Bravo')
        await self.provider.trigger_rebuild()

        self.assertEqual('Bravo', self.provider.get_application_parent('obj-2').label)
        with self.assertRaises(ApplicationNotFoundError):
            self.provider.get_application_parent('obj-missing')

    async def test_count_advisory_accepted(self):
        self.app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)
        self.add_apps('Alpha')
        self.client.count = 250
        self.host_ui.responses['warning'].append(ACTION_YES)

        await self.provider.trigger_rebuild()
        await self.provider.join_pending_tasks()

        self.assertEqual(1, len(self.host_ui.get_messages('warning')))
        self.assertTrue(self.app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY))
        # Changing the setting rebuilds the tree, and the advisory does not apply any more
        self.assertEqual(2, self.client.count_calls('list_owned'))
        self.assertEqual(1, len(self.host_ui.get_messages('warning')))

    async def test_count_advisory_suppressed(self):
        self.app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)
        self.add_apps('Alpha')
        self.client.count = 250
        self.host_ui.responses['warning'].append(ACTION_DISABLE_WARNING)

        await self.provider.trigger_rebuild()
        await self.provider.join_pending_tasks()

        self.assertFalse(self.app_config.get_config(CFG_SHOW_APPLICATION_COUNT_WARNING))
        self.assertFalse(self.app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY))
        self.assertEqual(1, self.client.count_calls('list_owned'))

        await self.provider.trigger_rebuild()
        self.assertEqual(1, self.client.count_calls('count_owned'))

    async def test_initialise_signed_in(self):
        self.add_apps('Alpha')

        await self.provider.initialise()

        self.assertEqual(TreeState.APPLICATIONS, self.provider.tree_state)
        states = [kwargs['new_state'] for kwargs in self.signals.get(Signal.TREE_STATE_CHANGED)]
        self.assertEqual([TreeState.AUTHENTICATING, TreeState.AUTHENTICATED, TreeState.APPLICATIONS], states)

    async def test_initialise_signed_out(self):
        self.client.signed_in = False

        await self.provider.initialise()

        self.assertEqual([Category.SIGN_IN], self.root_categories)
        self.assertEqual(0, self.client.count_calls('list_owned'))

    async def test_render_single_node_states(self):
        await self.provider.render(target_state=TreeState.INITIALISING)
        self.assertEqual([Category.INITIALISING], self.root_categories)

        await self.provider.render(target_state=TreeState.EMPTY)
        self.assertEqual([Category.EMPTY], self.root_categories)

        whole_tree_events = [kwargs for kwargs in self.signals.get(Signal.TREE_CHANGED) if kwargs['node'] is None]
        self.assertEqual(2, len(whole_tree_events))
