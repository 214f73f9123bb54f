import logging
import unittest

from appreg.backend.filter_controller import build_filter_predicate, FILTER_PROMPT, MSG_CANNOT_FILTER
from appreg.constants import CFG_USE_EVENTUAL_CONSISTENCY
from appreg.model.category import Category
from test.tree_test_base import AppRegTestBase, build_app

logger = logging.getLogger(__name__)

GUID = '0b1c2d3e-4f50-6172-8394-a5b6c7d8e9f0'


class FilterPredicateTest(unittest.TestCase):
    def test_display_name_prefix(self):
        self.assertEqual("startswith(displayName, 'Web')", build_filter_predicate('Web'))

    def test_quotes_are_doubled(self):
        self.assertEqual("startswith(displayName, 'O''Brien''s')", build_filter_predicate("O'Brien's"))

    def test_guid_matches_app_id(self):
        self.assertEqual(f"appId eq '{GUID}'", build_filter_predicate(GUID))
        self.assertEqual(f"appId eq '{GUID}'", build_filter_predicate(f' {GUID} '))


class FilterWithoutEventualConsistencyTest(AppRegTestBase):

    async def asyncSetUp(self):
        self.add_apps('Alpha', 'Beta')
        await self.provider.trigger_rebuild()
        self.baseline_calls = list(self.client.calls)

    async def test_apply_filter_shows_message_only(self):
        await self.provider.apply_filter('Al')

        self.assertEqual([MSG_CANNOT_FILTER], self.host_ui.get_messages('information'))
        self.assertEqual(self.baseline_calls, self.client.calls)
        self.assertEqual(['Alpha', 'Beta'], self.root_labels)
        self.assertIsNone(self.provider.filter_text)

    async def test_filter_does_not_prompt(self):
        await self.provider.filter()

        self.assertEqual([], self.host_ui.input_prompts)
        self.assertEqual([MSG_CANNOT_FILTER], self.host_ui.get_messages('information'))
        self.assertEqual(self.baseline_calls, self.client.calls)


class FilterTest(AppRegTestBase):

    async def asyncSetUp(self):
        self.app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, True)
        self.add_apps('Alpha', 'Beta', 'Alpine')
        self.client.add_app(build_app('obj-guid', 'Gamma', app_id=GUID))
        await self.provider.trigger_rebuild()

    async def test_filter_then_clear(self):
        await self.provider.apply_filter('Al')

        self.assertEqual(['Alpha', 'Alpine'], self.root_labels)
        self.assertEqual(('startswith(displayName, \'Al\')', 100), self.client.get_calls('list_owned')[-1])
        self.assertEqual('Al', self.provider.filter_text)
        self.assertEqual(0, self.provider.status_bar.outstanding)

        await self.provider.apply_filter('')

        self.assertEqual(['Alpha', 'Beta', 'Alpine', 'Gamma'], self.root_labels)
        self.assertEqual((None, 50), self.client.get_calls('list_owned')[-1])
        self.assertIsNone(self.provider.filter_text)

    async def test_guid_filter(self):
        await self.provider.apply_filter(GUID)

        self.assertEqual(['Gamma'], self.root_labels)

    async def test_unchanged_filter_is_noop(self):
        await self.provider.apply_filter('Al')
        list_calls = self.client.count_calls('list_owned')

        await self.provider.apply_filter('Al')

        self.assertEqual(list_calls, self.client.count_calls('list_owned'))

    async def test_cancelled_prompt_is_noop(self):
        list_calls = self.client.count_calls('list_owned')

        await self.provider.filter()

        self.assertEqual(1, len(self.host_ui.input_prompts))
        self.assertEqual(FILTER_PROMPT, self.host_ui.input_prompts[0][0])
        self.assertEqual(list_calls, self.client.count_calls('list_owned'))

    async def test_clear_without_filter_is_noop(self):
        list_calls = self.client.count_calls('list_owned')

        await self.provider.apply_filter('')

        self.assertEqual(list_calls, self.client.count_calls('list_owned'))

    async def test_prompt_offers_current_filter(self):
        await self.provider.apply_filter('Al')
        self.host_ui.responses['input'].append('Be')

        await self.provider.filter()

        self.assertEqual('Al', self.host_ui.input_prompts[-1][1])
        self.assertEqual(['Beta'], self.root_labels)

    async def test_filter_with_no_match_can_be_cleared(self):
        await self.provider.apply_filter('Zed')
        self.assertEqual([Category.EMPTY], self.root_categories)
        self.assertTrue(self.provider.is_tree_empty)

        await self.provider.apply_filter('')

        self.assertEqual(4, len(self.provider.root_nodes))

    async def test_disabling_eventual_consistency_drops_filter(self):
        await self.provider.apply_filter('Al')

        self.app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, False)
        await self.provider.join_pending_tasks()

        self.assertIsNone(self.provider.filter_text)
        self.assertEqual((None, 50), self.client.get_calls('list_owned')[-1])
        self.assertEqual(4, len(self.provider.root_nodes))


class FilterEmptyTreeTest(AppRegTestBase):

    async def test_empty_tree_without_filter_cannot_filter(self):
        self.app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, True)
        await self.provider.trigger_rebuild()
        list_calls = self.client.count_calls('list_owned')

        await self.provider.filter()

        self.assertEqual([], self.host_ui.input_prompts)
        self.assertEqual(list_calls, self.client.count_calls('list_owned'))
