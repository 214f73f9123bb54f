import logging
import unittest

from appreg.backend.status_bar import StatusBar
from appreg.constants import STATUS_FILTERING, STATUS_LOADING
from appreg.signal_constants import Signal
from test.tree_test_base import SignalRecorder

logger = logging.getLogger(__name__)


class StatusBarTest(unittest.TestCase):
    def setUp(self) -> None:
        self.status_bar = StatusBar()
        self.signals = SignalRecorder(Signal.SET_STATUS, Signal.CLEAR_STATUS, Signal.START_PROGRESS_INDETERMINATE, Signal.STOP_PROGRESS)

    def tearDown(self) -> None:
        self.signals.close()

    def test_acquire_and_release(self):
        status_id = self.status_bar.set_status_message(STATUS_LOADING)

        self.assertTrue(self.status_bar.is_outstanding(status_id))
        self.assertEqual(STATUS_LOADING, self.status_bar.get_message(status_id))
        self.assertEqual([{'status_id': status_id, 'msg': STATUS_LOADING}], self.signals.get(Signal.SET_STATUS))
        self.assertEqual(1, len(self.signals.get(Signal.START_PROGRESS_INDETERMINATE)))

        self.status_bar.clear(status_id)

        self.assertFalse(self.status_bar.is_outstanding(status_id))
        self.assertEqual([{'status_id': status_id}], self.signals.get(Signal.CLEAR_STATUS))
        self.assertEqual(1, len(self.signals.get(Signal.STOP_PROGRESS)))

    def test_release_is_idempotent(self):
        status_id = self.status_bar.set_status_message(STATUS_LOADING)
        self.status_bar.clear(status_id)
        self.status_bar.clear(status_id)
        self.status_bar.clear(None)
        self.status_bar.clear('not-a-status-id')

        self.assertEqual(1, len(self.signals.get(Signal.CLEAR_STATUS)))

    def test_clear_all(self):
        first = self.status_bar.set_status_message(STATUS_LOADING)
        second = self.status_bar.set_status_message(STATUS_FILTERING)
        self.assertNotEqual(first, second)
        self.assertEqual(2, self.status_bar.outstanding)

        self.status_bar.clear_all()

        self.assertEqual(0, self.status_bar.outstanding)
        self.assertEqual({first, second}, {kwargs['status_id'] for kwargs in self.signals.get(Signal.CLEAR_STATUS)})
