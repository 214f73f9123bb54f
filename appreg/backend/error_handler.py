import logging
from typing import Optional

from appreg.constants import ACTION_OK, ACTION_OPEN_DOCUMENTATION, AUTHENTICATION_LOST_MARKERS, SIGN_IN_AUDIENCE_CONFLICT_MARKER, \
    SIGNIN_AUDIENCE_DOCUMENTATION_URI, TreeState
from appreg.error import ErrorCode, ErrorKind, GraphError
from appreg.global_actions import GlobalActions
from appreg.model.node.app_reg_node import AppRegNode
from appreg.signal_constants import ID_ERROR_HANDLER

logger = logging.getLogger(__name__)

MSG_NOT_SIGNED_IN = "You are not logged in to the Azure CLI. Please click the option to sign in, or run 'az login' in a terminal window."
MSG_SIGN_IN_AUDIENCE_CONFLICT = 'An error occurred while attempting to change the Sign In Audience. This is likely because some ' \
                                'properties of the application are not supported by the new sign in audience. Please consult the ' \
                                f'Azure AD documentation for more information at {SIGNIN_AUDIENCE_DOCUMENTATION_URI}.'

_KIND_BY_CODE = {
    ErrorCode.NOT_FOUND: ErrorKind.NOT_FOUND,
    ErrorCode.CREDENTIAL_UNAVAILABLE: ErrorKind.CREDENTIAL_UNAVAILABLE,
    ErrorCode.AUTHENTICATION_REQUIRED: ErrorKind.AUTHENTICATION_REQUIRED,
    ErrorCode.SIGN_IN_AUDIENCE_CONFLICT: ErrorKind.DOMAIN_CONFLICT,
}


def classify(error: GraphError) -> ErrorKind:
    """Structured code first. Only when the error carries no recognised code is the message text searched for the
    markers which the Azure CLI and Graph put in their messages."""
    kind = _KIND_BY_CODE.get(error.code, None)
    if kind is not None:
        return kind
    if error.status_code == 404:
        return ErrorKind.NOT_FOUND

    msg = error.message or ''
    for marker in AUTHENTICATION_LOST_MARKERS:
        if marker in msg:
            return ErrorKind.AUTHENTICATION_REQUIRED
    if SIGN_IN_AUDIENCE_CONFLICT_MARKER in msg:
        return ErrorKind.DOMAIN_CONFLICT
    return ErrorKind.GENERIC


class ErrorHandler:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS ErrorHandler

    Error recovery for the tree. Every failure in a rebuild, an expansion or a mutation ends up in handle_error(), which:
    1. restores the icon of the given node (if any), so that no spinner is left behind;
    2. releases the given status token (if any);
    3. classifies the error and reacts: sign-in prompt, explanatory dialog, silent retry, log only, or error toast.

    Dialogs are shown as background tasks of the TreeBuilder: handle_error() returns before the operator answers.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, tree_builder, host_ui, status_bar, change_notifier):
        self.tree_builder = tree_builder
        self.host_ui = host_ui
        self.status_bar = status_bar
        self.change_notifier = change_notifier
        self.tree_id: str = change_notifier.tree_id

        self._is_retrying_credentials: bool = False

    async def handle_error(self, error: Optional[BaseException], node: Optional[AppRegNode] = None, status_token: Optional[str] = None):
        if node is not None:
            node.reset_icon()
            self.change_notifier.notify_node_changed(node)

        self.status_bar.clear(status_token)

        if error is None:
            return

        graph_error = GraphError.from_exception(error)
        kind = classify(graph_error)
        logger.error(f'[{self.tree_id}] {kind.name}: {graph_error!r}')

        if kind != ErrorKind.CREDENTIAL_UNAVAILABLE:
            self._is_retrying_credentials = False

        if kind == ErrorKind.AUTHENTICATION_REQUIRED:
            await self._on_authentication_required()
        elif kind == ErrorKind.DOMAIN_CONFLICT:
            await self._on_domain_conflict()
        elif kind == ErrorKind.NOT_FOUND:
            logger.info(f'[{self.tree_id}] Object not found (it may have been deleted): {graph_error.message}')
        elif kind == ErrorKind.CREDENTIAL_UNAVAILABLE:
            await self._on_credential_unavailable()
        else:
            await self._on_generic(graph_error)

    async def _on_authentication_required(self):
        self.status_bar.clear_all()
        await self.tree_builder.render(target_state=TreeState.SIGN_IN)
        GlobalActions.display_error_in_ui(ID_ERROR_HANDLER, MSG_NOT_SIGNED_IN)
        self.tree_builder.run_in_background(self.host_ui.show_error_message(MSG_NOT_SIGNED_IN, ACTION_OK), 'not-signed-in message')

    async def _on_domain_conflict(self):
        GlobalActions.display_error_in_ui(ID_ERROR_HANDLER, MSG_SIGN_IN_AUDIENCE_CONFLICT)
        self.tree_builder.run_in_background(self._prompt_documentation(), 'sign-in audience message')

    async def _prompt_documentation(self):
        action = await self.host_ui.show_error_message(MSG_SIGN_IN_AUDIENCE_CONFLICT, ACTION_OK, ACTION_OPEN_DOCUMENTATION)
        if action == ACTION_OPEN_DOCUMENTATION:
            await self.host_ui.open_external(SIGNIN_AUDIENCE_DOCUMENTATION_URI)

    async def _on_credential_unavailable(self):
        self.status_bar.clear_all()
        if self._is_retrying_credentials:
            # Second in a row: stop retrying and ask the operator to sign in
            logger.info(f'[{self.tree_id}] Credentials still unavailable after re-initialising; showing sign-in')
            self._is_retrying_credentials = False
            await self.tree_builder.render(target_state=TreeState.SIGN_IN)
            return

        logger.info(f'[{self.tree_id}] Credentials unavailable; re-initialising')
        self._is_retrying_credentials = True
        try:
            await self.tree_builder.initialise()
        finally:
            # Only a failure raised during this retry counts as consecutive
            self._is_retrying_credentials = False

    async def _on_generic(self, error: GraphError):
        self.status_bar.clear_all()
        msg = f'An error occurred trying to complete your task: {error.message}.'
        GlobalActions.display_error_in_ui(ID_ERROR_HANDLER, msg)
        self.tree_builder.run_in_background(self.host_ui.show_error_message(msg, ACTION_OK), 'error message')
