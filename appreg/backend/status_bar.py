import logging
import uuid
from typing import Dict, Optional

from pydispatch import dispatcher

from appreg.signal_constants import ID_STATUS_BAR, Signal

logger = logging.getLogger(__name__)


class StatusBar:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS StatusBar

    The busy indicator. Each call to set_status_message() acquires a handle (its status id), which is shown until it is
    released by clear(). Any number of handles may be outstanding. Releasing a handle which is unknown (or was already
    released) is a no-op, so each handle is released at most once.

    The host listens for Signal.SET_STATUS / Signal.CLEAR_STATUS to draw the messages, and for
    Signal.START_PROGRESS_INDETERMINATE / Signal.STOP_PROGRESS to draw a spinner.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self):
        self._status_dict: Dict[str, str] = {}

    def set_status_message(self, msg: str) -> str:
        status_id = str(uuid.uuid4())
        self._status_dict[status_id] = msg
        logger.debug(f'[{ID_STATUS_BAR}] Acquired status {status_id}: "{msg}" (outstanding: {len(self._status_dict)})')
        dispatcher.send(signal=Signal.SET_STATUS, sender=ID_STATUS_BAR, status_id=status_id, msg=msg)
        dispatcher.send(signal=Signal.START_PROGRESS_INDETERMINATE, sender=ID_STATUS_BAR, status_id=status_id)
        return status_id

    def clear(self, status_id: Optional[str]):
        if not status_id:
            return

        msg = self._status_dict.pop(status_id, None)
        if msg is None:
            logger.debug(f'[{ID_STATUS_BAR}] Status {status_id} is not outstanding; ignoring')
            return

        logger.debug(f'[{ID_STATUS_BAR}] Released status {status_id}: "{msg}" (outstanding: {len(self._status_dict)})')
        dispatcher.send(signal=Signal.CLEAR_STATUS, sender=ID_STATUS_BAR, status_id=status_id)
        dispatcher.send(signal=Signal.STOP_PROGRESS, sender=ID_STATUS_BAR, status_id=status_id)

    def clear_all(self):
        for status_id in list(self._status_dict.keys()):
            self.clear(status_id)

    @property
    def outstanding(self) -> int:
        return len(self._status_dict)

    def is_outstanding(self, status_id: str) -> bool:
        return status_id in self._status_dict

    def get_message(self, status_id: str) -> Optional[str]:
        return self._status_dict.get(status_id, None)
