import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from appreg.constants import ACTION_NO, ACTION_OK, ACTION_YES, DATE_DISPLAY_FMT, PASSWORD_CREDENTIAL_DEFAULT_EXPIRY_DAYS, \
    PASSWORD_CREDENTIAL_MAX_EXPIRY_YEARS
from appreg.model.graph_result import GraphResult
from appreg.model.node.app_reg_node import AppRegNode
from appreg.service.service_base import ServiceBase

logger = logging.getLogger(__name__)

MSG_EXPIRY_INVALID = 'Expiry must be a valid date.'
MSG_EXPIRY_IN_PAST = 'Expiry must be in the future.'
MSG_EXPIRY_TOO_LATE = f'Expiry must be less than {PASSWORD_CREDENTIAL_MAX_EXPIRY_YEARS} years in the future.'

MSG_CONFIRM_DELETE = 'Do you want to delete this password credential?'
MSG_PASSWORD_COPIED = 'New password copied to clipboard.'

STATUS_ADDING = 'Adding Password Credential...'
STATUS_DELETING = 'Deleting Password Credential...'


def validate_password_credential_expiry_date(expiry: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """Returns an error message for the operator, or None if the expiry is acceptable"""
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        expiry_date = date_parser.parse(expiry)
    except (ValueError, TypeError, OverflowError):
        return MSG_EXPIRY_INVALID

    if expiry_date.tzinfo is None:
        expiry_date = expiry_date.replace(tzinfo=timezone.utc)

    if expiry_date < now:
        return MSG_EXPIRY_IN_PAST
    if expiry_date > now + relativedelta(years=PASSWORD_CREDENTIAL_MAX_EXPIRY_YEARS):
        return MSG_EXPIRY_TOO_LATE
    return None


class PasswordCredentialService(ServiceBase):
    """Adds and deletes client secrets of an application"""

    def __init__(self, provider, client):
        super().__init__(provider, client)

    async def add(self, node: AppRegNode):
        description = await self.host_ui.show_input_box('Set new password credential description', placeholder='Password description')
        if description is None:
            return

        default_expiry = datetime.now() + timedelta(days=PASSWORD_CREDENTIAL_DEFAULT_EXPIRY_DAYS)
        expiry = await self.host_ui.show_input_box('Set password expiry date', placeholder='Password expiry',
                                                   value=default_expiry.strftime(DATE_DISPLAY_FMT),
                                                   validate=validate_password_credential_expiry_date)
        if expiry is None:
            return

        status_token = self.indicate_change(STATUS_ADDING, node)
        result: GraphResult = await self.client.add_password_credential(node.object_id, description, expiry)
        if result.success and result.value is not None:
            await self.host_ui.write_clipboard(result.value.get('secretText'))
            await self.trigger_refresh(status_token)
            await self.host_ui.show_information_message(MSG_PASSWORD_COPIED, ACTION_OK)
        else:
            await self.handle_error(result.error, status_token)

    async def delete(self, node: AppRegNode):
        answer = await self.host_ui.show_warning_message(MSG_CONFIRM_DELETE, ACTION_YES, ACTION_NO)
        if answer != ACTION_YES:
            logger.debug(f'[{self.tree_id}] Delete of password credential {node.value} not confirmed')
            return

        status_token = self.indicate_change(STATUS_DELETING, node)
        result: GraphResult = await self.client.delete_password_credential(node.object_id, node.value)
        if result.success:
            await self.trigger_refresh(status_token)
        else:
            await self.handle_error(result.error, status_token)
