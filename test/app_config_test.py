import json
import logging
import os
import shutil
import tempfile
import unittest

from appreg.app_config import AppConfig
from appreg.constants import CFG_MAXIMUM_APPLICATIONS_SHOWN, CFG_SHOW_APPLICATION_COUNT_WARNING, CFG_USE_EVENTUAL_CONSISTENCY
from appreg.signal_constants import Signal
from test.tree_test_base import DEFAULT_TEST_SETTINGS, SignalRecorder, write_test_cfg

logger = logging.getLogger(__name__)


class AppConfigTest(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp_dir = tempfile.mkdtemp(prefix='appreg-test-')
        self.cfg_path = write_test_cfg(self.tmp_dir, DEFAULT_TEST_SETTINGS)
        self.signals = SignalRecorder(Signal.CONFIG_CHANGED)

    def tearDown(self) -> None:
        self.signals.close()
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def test_read(self):
        app_config = AppConfig(self.cfg_path, configure_logging=False)

        self.assertFalse(app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY))
        self.assertEqual(50, app_config.get_config(CFG_MAXIMUM_APPLICATIONS_SHOWN))
        self.assertEqual('fallback', app_config.get_config('settings.no_such_key', 'fallback', is_required=False))
        with self.assertRaises(RuntimeError):
            app_config.get_config('settings.no_such_key')

    def test_write_goes_to_overlay(self):
        app_config = AppConfig(self.cfg_path, configure_logging=False)

        app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, True)

        self.assertTrue(app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY))
        with open(os.path.join(self.tmp_dir, 'user_settings.json')) as f:
            self.assertEqual({'settings': {'use_eventual_consistency': True}}, json.load(f))
        self.assertFalse(os.path.exists(os.path.join(self.tmp_dir, 'user_settings.json.part')))
        self.assertEqual([{'cfg_path': CFG_USE_EVENTUAL_CONSISTENCY, 'value': True}], self.signals.get(Signal.CONFIG_CHANGED))

        # A fresh instance sees the overlay
        self.assertTrue(AppConfig(self.cfg_path, configure_logging=False).get_config(CFG_USE_EVENTUAL_CONSISTENCY))

    def test_unchanged_write_is_noop(self):
        app_config = AppConfig(self.cfg_path, configure_logging=False)
        app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)
        app_config.write(CFG_SHOW_APPLICATION_COUNT_WARNING, True)

        self.assertEqual(1, len(self.signals.get(Signal.CONFIG_CHANGED)))

    def test_only_settings_may_be_written(self):
        app_config = AppConfig(self.cfg_path, configure_logging=False)

        with self.assertRaises(RuntimeError):
            app_config.write('user_settings_filename', 'other.json')

    def test_read_only(self):
        cfg_path = write_test_cfg(self.tmp_dir, DEFAULT_TEST_SETTINGS, read_only=True)
        app_config = AppConfig(cfg_path, configure_logging=False)

        app_config.write(CFG_USE_EVENTUAL_CONSISTENCY, True)

        self.assertFalse(app_config.get_config(CFG_USE_EVENTUAL_CONSISTENCY))
        self.assertEqual([], self.signals.get(Signal.CONFIG_CHANGED))

    def test_missing_file(self):
        with self.assertRaises(RuntimeError):
            AppConfig(os.path.join(self.tmp_dir, 'missing.cfg'), configure_logging=False)

    def test_default_config_file(self):
        app_config = AppConfig(configure_logging=False)

        self.assertTrue(app_config.get_config(CFG_SHOW_APPLICATION_COUNT_WARNING))
        self.assertEqual(100, app_config.get_config('settings.maximum_query_apps'))

    def test_config_list(self):
        app_config = AppConfig(configure_logging=False)

        self.assertEqual(['asyncio', 'urllib3'], app_config.get_config_list('logging.loglevel_info'))
        self.assertEqual(['pydispatch'], app_config.get_config_list('logging.loglevel_warning'))
        self.assertEqual([], app_config.get_config_list('logging.loglevel_nothing'))
