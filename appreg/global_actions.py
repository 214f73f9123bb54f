import logging

from pydispatch import dispatcher

from appreg.signal_constants import Signal

logger = logging.getLogger(__name__)


class GlobalActions:
    @staticmethod
    def display_error_in_ui(sender: str, msg: str, secondary_msg: str = None):
        """Note: it is up to the sender to decide how & whether to log the error"""
        logger.debug(f'Sender "{sender}" sent an error msg to display: "{msg}"')
        dispatcher.send(signal=Signal.ERROR_OCCURRED, sender=sender, msg=msg, secondary_msg=secondary_msg)

    @staticmethod
    def shutdown_app(sender: str):
        logger.debug(f'Sender "{sender}" requested app shutdown')
        dispatcher.send(signal=Signal.SHUTDOWN_APP, sender=sender)
