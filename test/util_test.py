import json
import logging
import os
import shutil
import tempfile
import unittest

from pydispatch import dispatcher

from appreg.signal_constants import Signal
from appreg.util.ensure import ensure_bool, ensure_int, ensure_list
from appreg.util.file_util import write_json_atomically
from appreg.util.has_lifecycle import HasLifecycle, start_func, stop_func
from appreg.util.text_util import escape_filter_value, is_guid, normalize_for_sort

logger = logging.getLogger(__name__)


class TextUtilTest(unittest.TestCase):
    def test_normalize_for_sort(self):
        self.assertEqual('elanapp', normalize_for_sort('Élan-App'))
        self.assertEqual(normalize_for_sort('elanapp'), normalize_for_sort('Élan-App'))
        self.assertEqual('', normalize_for_sort(None))

        names = ['zeta', 'Émile', 'alpha', 'Beta']
        self.assertEqual(['alpha', 'Beta', 'Émile', 'zeta'], sorted(names, key=normalize_for_sort))

    def test_escape_filter_value(self):
        self.assertEqual("O''Brien", escape_filter_value("O'Brien"))
        self.assertEqual('plain', escape_filter_value('plain'))

    def test_is_guid(self):
        self.assertTrue(is_guid('0b1c2d3e-4f50-6172-8394-a5b6c7d8e9f0'))
        self.assertTrue(is_guid('0B1C2D3E-4F50-6172-8394-A5B6C7D8E9F0'))
        self.assertFalse(is_guid('0b1c2d3e-4f50-6172-8394'))
        self.assertFalse(is_guid('My App'))
        self.assertFalse(is_guid(None))


class EnsureTest(unittest.TestCase):
    def test_ensure_bool(self):
        self.assertTrue(ensure_bool(True))
        self.assertTrue(ensure_bool('true'))
        self.assertTrue(ensure_bool('Yes'))
        self.assertFalse(ensure_bool('false'))
        self.assertFalse(ensure_bool('0'))
        self.assertFalse(ensure_bool(''))
        self.assertFalse(ensure_bool(None))
        self.assertFalse(ensure_bool(0))

    def test_ensure_int(self):
        self.assertEqual(50, ensure_int('50'))
        self.assertEqual(50, ensure_int(50))

    def test_ensure_list(self):
        self.assertEqual([], ensure_list(None))
        self.assertEqual(['asyncio'], ensure_list('asyncio'))
        self.assertEqual(['a', 'b'], ensure_list(('a', 'b')))
        self.assertEqual([5], ensure_list(5))


class FileUtilTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp(prefix='appreg-test-')

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_write_json_atomically(self):
        json_file = os.path.join(self.tmp_dir, 'user_settings.json')
        write_json_atomically(json_file, json.dumps({'settings': {'a': 1}}))
        write_json_atomically(json_file, json.dumps({'settings': {'a': 2}}))

        with open(json_file) as f:
            self.assertEqual({'settings': {'a': 2}}, json.load(f))
        self.assertEqual(['user_settings.json'], os.listdir(self.tmp_dir))


class LifecycleComponent(HasLifecycle):
    def __init__(self):
        HasLifecycle.__init__(self)
        self.received = []
        self.shutdown_count = 0

    @start_func
    def start(self):
        self.connect_dispatch_listener(signal=Signal.ERROR_OCCURRED, receiver=self._on_error, sender='lifecycle_test')

    @stop_func
    def shutdown(self):
        self.shutdown_count += 1

    def _on_error(self, sender, **kwargs):
        self.received.append(sender)


class HasLifecycleTest(unittest.TestCase):
    def test_listeners_dropped_on_shutdown(self):
        component = LifecycleComponent()
        component.start()

        dispatcher.send(signal=Signal.ERROR_OCCURRED, sender='lifecycle_test')
        dispatcher.send(signal=Signal.ERROR_OCCURRED, sender='someone_else')
        self.assertEqual(['lifecycle_test'], component.received)

        component.shutdown()
        dispatcher.send(signal=Signal.ERROR_OCCURRED, sender='lifecycle_test')

        self.assertEqual(['lifecycle_test'], component.received)
        self.assertTrue(component.was_shutdown)
        self.assertEqual(1, component.shutdown_count)

    def test_shutdown_app_signal(self):
        component = LifecycleComponent()
        component.start()

        dispatcher.send(signal=Signal.SHUTDOWN_APP, sender='lifecycle_test')
        dispatcher.send(signal=Signal.ERROR_OCCURRED, sender='lifecycle_test')

        self.assertTrue(component.was_shutdown)
        self.assertEqual([], component.received)
        # the component's own shutdown body is not run by the signal
        self.assertEqual(0, component.shutdown_count)
