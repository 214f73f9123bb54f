import json
import logging
import os
import threading
from typing import Any, List

import config
from pydispatch import dispatcher

from appreg import logging_config
from appreg.constants import DEFAULT_CONFIG_PATH, PROJECT_DIR, PROJECT_DIR_TOKEN, USER_SETTINGS_CFG_SEGMENT, USER_SETTINGS_FILENAME_CFG
from appreg.signal_constants import ID_APP_CONFIG, Signal
from appreg.util.ensure import ensure_list
from appreg.util.file_util import get_resource_path, write_json_atomically

logger = logging.getLogger(__name__)


class AppConfig:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS AppConfig

    Read-mostly configuration. Static values come from a CFG file (the "config" library); values which are changed
    at runtime (only those under the "settings" segment) are written to a JSON overlay file which lives next to the
    CFG file, and which takes precedence over the CFG file when reading.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, config_file_path: str = None, configure_logging: bool = True):
        self._project_dir = get_resource_path(PROJECT_DIR)
        self._lock = threading.Lock()

        if not config_file_path:
            config_file_path = get_resource_path(DEFAULT_CONFIG_PATH)

        try:
            logger.debug(f'Reading config file: "{config_file_path}"')
            self._cfg = config.Config(config_file_path)
            # Cache the overlay in memory rather than risk reading a half-written file later
            with self._lock:
                self._user_settings_json = self._load_user_settings()

            self.read_only = self.get_config('read_only_config', False, is_required=False)
        except Exception as err:
            raise RuntimeError(f'Could not read config file ({config_file_path})') from err

        if configure_logging:
            logging_config.configure_logging(self)
        if self.read_only:
            logger.info('Config is set to read-only')

    def get_config(self, cfg_path: str, default_val=None, is_required: bool = True):
        found, val = self._get_from_user_settings(cfg_path)
        if found:
            logger.debug(f'Read user setting "{cfg_path}" = "{val}"')
            return val

        try:
            val = self._cfg[cfg_path]
            if val is None and default_val is None and is_required:
                raise RuntimeError(f'Config entry not found but is required: "{cfg_path}"')

            if val is not None and type(val) == str:
                val = val.replace(PROJECT_DIR_TOKEN, self._project_dir)
            logger.debug(f'Read config entry "{cfg_path}" = "{val}"')
            return val
        except (KeyError, config.KeyNotFoundError):
            logger.debug(f'Path not found: {cfg_path}')

        # raise outside the except block above, so that the KeyError is not chained
        if is_required:
            raise RuntimeError(f'Path not found but is required: "{cfg_path}"')
        return default_val

    def get_config_list(self, cfg_path: str) -> List[Any]:
        """Optional list entry, as a plain list (the config library returns its own sequence type). Missing => []"""
        return ensure_list(self.get_config(cfg_path, default_val=[], is_required=False))

    def _get_from_user_settings(self, cfg_path: str):
        path_segments = cfg_path.split('.')
        if path_segments[0] != USER_SETTINGS_CFG_SEGMENT:
            return False, None

        sub_dict = self._user_settings_json
        for segment in path_segments:
            if not isinstance(sub_dict, dict) or segment not in sub_dict:
                return False, None
            sub_dict = sub_dict[segment]
        return True, sub_dict

    def _get_user_settings_filename(self) -> str:
        filename = self.get_config(USER_SETTINGS_FILENAME_CFG)
        return os.path.join(self._cfg.rootdir, filename)

    def _load_user_settings(self) -> dict:
        json_file = self._get_user_settings_filename()
        if not os.path.exists(json_file):
            logger.debug(f'No user settings file found at "{json_file}"; starting with none')
            return {}
        with open(json_file) as f:
            return json.load(f)

    def write(self, json_path: str, value: Any, insert_new_ok=True):
        """Writes a value under the "settings" segment to the JSON overlay, then fires Signal.CONFIG_CHANGED"""
        if self.read_only:
            logger.debug(f'No change to config "{json_path}"; we are read-only')
            return

        assert json_path is not None
        assert value is not None, f'For path "{json_path}"'

        # Update JSON in memory:
        path_segments = json_path.split('.')
        if path_segments[0] != USER_SETTINGS_CFG_SEGMENT:
            raise RuntimeError(f'Only "{USER_SETTINGS_CFG_SEGMENT}" may be written to! (path: "{json_path}")')

        sub_dict = self._user_settings_json
        last = len(path_segments) - 1
        for num, segment in enumerate(path_segments):
            val = sub_dict.get(segment, None)
            if num == last:
                if val == value:
                    logger.debug(f'No change to config {json_path}')
                    return
                sub_dict[segment] = value
            elif val is None:
                if not insert_new_ok:
                    raise RuntimeError(f'Path segment "{segment}" not found in path "{json_path}"')
                sub_dict[segment] = {}
                sub_dict = sub_dict[segment]
            else:
                # go to next segment
                sub_dict = val

        # Dump JSON to file atomically:
        json_file = self._get_user_settings_filename()
        with self._lock:
            write_json_atomically(json_file, json.dumps(self._user_settings_json, indent=4, sort_keys=True))

        logger.debug(f'Wrote {json_path} := "{value}" in file: {json_file}')
        dispatcher.send(signal=Signal.CONFIG_CHANGED, sender=ID_APP_CONFIG, cfg_path=json_path, value=value)
