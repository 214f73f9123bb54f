import os

# Verbose per-node logging. Set the env var to "1" to enable.
TRACE_ENABLED = os.environ.get('APPREG_TRACE', '0') == '1'
SUPER_DEBUG_ENABLED = os.environ.get('APPREG_SUPER_DEBUG', '0') == '1'

# do not modify this behavior
if TRACE_ENABLED:
    SUPER_DEBUG_ENABLED = True
