import logging
from enum import IntEnum
from typing import Optional

from appreg.constants import ACTION_DISABLE_WARNING, ACTION_YES, APPLICATION_COUNT_ADVISORY_THRESHOLD, CFG_SHOW_APPLICATION_COUNT_WARNING, \
    CFG_USE_EVENTUAL_CONSISTENCY

logger = logging.getLogger(__name__)


class AdvisoryAction(IntEnum):
    DISABLE_EVENTUAL_CONSISTENCY = 1
    ENABLE_EVENTUAL_CONSISTENCY = 2


class Resolution(IntEnum):
    ACCEPT = 1
    """Flip the setting"""
    DECLINE = 2
    """Do nothing"""
    SUPPRESS = 3
    """Do nothing, and never show the advisory again"""


class Advisory:
    def __init__(self, action: AdvisoryAction, total_count: int):
        self.action: AdvisoryAction = action
        self.total_count: int = total_count

    @property
    def message(self) -> str:
        if self.action == AdvisoryAction.DISABLE_EVENTUAL_CONSISTENCY:
            return f'You have enabled eventual consistency for Graph API calls but only have {self.total_count} applications ' \
                   f'in your tenant. You would likely benefit from disabling eventual consistency in user settings. ' \
                   f'Would you like to do this now?'
        return f'You do not have eventual consistency enabled for Graph API calls and have {self.total_count} applications ' \
               f'in your tenant. You would likely benefit from enabling eventual consistency in user settings. ' \
               f'Would you like to do this now?'

    @property
    def new_consistency_value(self) -> bool:
        return self.action == AdvisoryAction.ENABLE_EVENTUAL_CONSISTENCY

    def __eq__(self, other):
        return isinstance(other, Advisory) and self.action == other.action and self.total_count == other.total_count

    def __repr__(self):
        return f'Advisory({self.action.name} count={self.total_count})'


def advise(total_count: int, use_eventual_consistency: bool) -> Optional[Advisory]:
    """Decides whether to suggest flipping use_eventual_consistency, given the number of applications. Pure."""
    if 0 < total_count <= APPLICATION_COUNT_ADVISORY_THRESHOLD and use_eventual_consistency:
        return Advisory(AdvisoryAction.DISABLE_EVENTUAL_CONSISTENCY, total_count)
    if total_count > APPLICATION_COUNT_ADVISORY_THRESHOLD and not use_eventual_consistency:
        return Advisory(AdvisoryAction.ENABLE_EVENTUAL_CONSISTENCY, total_count)
    return None


def apply_resolution(advisory: Advisory, resolution: Optional[Resolution], app_config):
    """Applies the operator's answer to an advisory. A dismissed prompt (None) is the same as DECLINE."""
    if resolution == Resolution.ACCEPT:
        logger.info(f'Advisory accepted: setting {CFG_USE_EVENTUAL_CONSISTENCY} = {advisory.new_consistency_value}')
        app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, advisory.new_consistency_value)
    elif resolution == Resolution.SUPPRESS:
        logger.info(f'Advisory suppressed: setting {CFG_SHOW_APPLICATION_COUNT_WARNING} = False')
        app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, False)
    else:
        logger.debug(f'Advisory declined: {advisory}')


def resolution_from_action(action: Optional[str]) -> Resolution:
    """Maps the button chosen in the advisory prompt to a Resolution"""
    if action == ACTION_YES:
        return Resolution.ACCEPT
    if action == ACTION_DISABLE_WARNING:
        return Resolution.SUPPRESS
    return Resolution.DECLINE
