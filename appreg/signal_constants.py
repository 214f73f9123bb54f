from enum import IntEnum

# Note: this file cannot be named "signal.py" because it will result in a namespace conflict with an imported library


class Signal(IntEnum):
    # --- Tree notifications ---
    TREE_CHANGED = 1
    """Fired when the host view should re-render. Carries 'node': None means the whole tree"""
    TREE_STATE_CHANGED = 2
    """Fired when the top-level TreeState changes (e.g. APPLICATIONS -> SIGN_IN)"""
    REBUILD_STARTED = 3
    REBUILD_DONE = 4

    CONFIG_CHANGED = 20
    """Fired by AppConfig after a runtime write. Carries 'cfg_path' and 'value'"""

    ERROR_OCCURRED = 50

    # --- Status bar ---
    SET_STATUS = 100
    """A busy handle was acquired. Carries 'status_id' and 'msg'"""
    CLEAR_STATUS = 101
    """A busy handle was released. Carries 'status_id'"""

    # --- Progress indicator ---
    START_PROGRESS_INDETERMINATE = 110
    STOP_PROGRESS = 111

    SHUTDOWN_APP = 200


# --- Sender identifiers ---
ID_APP_REG_TREE = 'app_reg_tree'
ID_STATUS_BAR = 'status_bar'
ID_APP_CONFIG = 'app_config'
ID_ERROR_HANDLER = 'error_handler'
ID_SERVICE = 'service'
