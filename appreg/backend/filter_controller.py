import logging
from typing import Optional

from appreg.constants import ACTION_OK, STATUS_FILTERING, STATUS_LOADING
from appreg.util.text_util import escape_filter_value, is_guid

logger = logging.getLogger(__name__)

MSG_CANNOT_FILTER = 'Filtering is only available when eventual consistency is enabled. ' \
                    'Enable "use_eventual_consistency" in your settings to filter applications.'
FILTER_PROMPT = 'Filter applications by display name or application ID'
FILTER_PLACEHOLDER = 'Name starts with or Application ID equals'


def build_filter_predicate(filter_text: str) -> str:
    """A GUID matches the application id exactly; anything else is a case-preserving display name prefix"""
    if is_guid(filter_text):
        return f"appId eq '{filter_text.strip()}'"
    return f"startswith(displayName, '{escape_filter_value(filter_text)}')"


class FilterController:
    """Turns free text from the operator into a server-side filter on the listing. Server-side filtering needs the
    eventually-consistent query path, so filtering is refused when that is disabled."""

    def __init__(self, tree_builder, host_ui, status_bar):
        self.tree_builder = tree_builder
        self.host_ui = host_ui
        self.status_bar = status_bar
        self.tree_id: str = tree_builder.tree_id

        self.filter_text: Optional[str] = None

    async def filter(self):
        """Prompts for the filter text, then applies it"""
        if not self._can_filter():
            return
        if not self.tree_builder.use_eventual_consistency():
            await self._show_cannot_filter()
            return

        prompted_text = await self.host_ui.show_input_box(FILTER_PROMPT, placeholder=FILTER_PLACEHOLDER, value=self.filter_text)
        await self.apply_filter(prompted_text)

    async def apply_filter(self, prompted_text: Optional[str]):
        if not self._can_filter():
            return
        if not self.tree_builder.use_eventual_consistency():
            await self._show_cannot_filter()
            return

        if prompted_text is None:
            logger.debug(f'[{self.tree_id}] Filter prompt cancelled')
            return

        if prompted_text == '':
            if not self.filter_text:
                logger.debug(f'[{self.tree_id}] Filter unchanged (empty)')
                return
            logger.info(f'[{self.tree_id}] Clearing filter (was: "{self.filter_text}")')
            self.filter_text = None
            self.tree_builder.filter_predicate = None
            await self.tree_builder.rebuild(self.status_bar.set_status_message(STATUS_LOADING))
            return

        if prompted_text == self.filter_text:
            logger.debug(f'[{self.tree_id}] Filter unchanged: "{prompted_text}"')
            return

        self.filter_text = prompted_text
        self.tree_builder.filter_predicate = build_filter_predicate(prompted_text)
        logger.info(f'[{self.tree_id}] Applying filter: {self.tree_builder.filter_predicate}')
        await self.tree_builder.rebuild(self.status_bar.set_status_message(STATUS_FILTERING))

    def _can_filter(self) -> bool:
        if self.tree_builder.is_updating:
            logger.debug(f'[{self.tree_id}] Cannot filter while the tree is updating')
            return False
        if self.tree_builder.is_tree_empty and self.filter_text is None:
            logger.debug(f'[{self.tree_id}] Nothing to filter')
            return False
        return True

    async def _show_cannot_filter(self):
        logger.debug(f'[{self.tree_id}] Eventual consistency is disabled; cannot filter')
        await self.host_ui.show_information_message(MSG_CANNOT_FILTER, ACTION_OK)
