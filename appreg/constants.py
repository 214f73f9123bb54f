from enum import IntEnum

# When parsing config file:
PROJECT_DIR_TOKEN = '$PROJECT_DIR'

PROJECT_DIR = '.'
RESOURCES_DIR = 'resources'
DEFAULT_CONFIG_PATH = f'{RESOURCES_DIR}/appreg-default.cfg'
USER_SETTINGS_FILENAME_CFG = 'user_settings_filename'

USER_SETTINGS_CFG_SEGMENT = 'settings'

# ---- Settings (read under the "settings" segment) ----

CFG_USE_EVENTUAL_CONSISTENCY = f'{USER_SETTINGS_CFG_SEGMENT}.use_eventual_consistency'
CFG_SHOW_APPLICATION_COUNT_WARNING = f'{USER_SETTINGS_CFG_SEGMENT}.show_application_count_warning'
CFG_SHOW_OWNED_APPLICATIONS_ONLY = f'{USER_SETTINGS_CFG_SEGMENT}.show_owned_applications_only'
CFG_SHOW_DELETED_APPLICATIONS = f'{USER_SETTINGS_CFG_SEGMENT}.show_deleted_applications'
CFG_MAXIMUM_APPLICATIONS_SHOWN = f'{USER_SETTINGS_CFG_SEGMENT}.maximum_applications_shown'
CFG_MAXIMUM_QUERY_APPS = f'{USER_SETTINGS_CFG_SEGMENT}.maximum_query_apps'

DEFAULT_MAXIMUM_APPLICATIONS_SHOWN = 50
DEFAULT_MAXIMUM_QUERY_APPS = 100

# ---- Tree ----

APPLICATION_COUNT_ADVISORY_THRESHOLD = 200

CREDENTIAL_EXPIRY_WARNING_DAYS = 30

PASSWORD_CREDENTIAL_DEFAULT_EXPIRY_DAYS = 90
PASSWORD_CREDENTIAL_MAX_EXPIRY_YEARS = 2

DATE_DISPLAY_FMT = '%Y-%m-%d'

# Fields needed to build the static subtree of one application. Nested contents are not fetched until expanded.
APPLICATION_SELECT_PROPERTIES = 'id,displayName,appId,notes,createdDateTime,signInAudience,identifierUris,web,spa,publicClient,' \
                                'passwordCredentials,keyCredentials,requiredResourceAccess,api,appRoles'

# ---- Error classification: legacy message markers ----

AUTHENTICATION_LOST_MARKERS = ['az login', 'az account set']
SIGN_IN_AUDIENCE_CONFLICT_MARKER = 'signInAudience'

SIGNIN_COMMAND_TEXT = 'Sign in to Azure CLI...'
SIGNIN_COMMAND_ID = 'appRegistrations.cliSignIn'

SIGNIN_AUDIENCE_DOCUMENTATION_URI = 'https://learn.microsoft.com/en-gb/azure/active-directory/develop/supported-accounts-validation'

# ---- Status messages ----

STATUS_LOADING = 'Loading Application Registrations...'
STATUS_FILTERING = 'Filtering Application Registrations...'

# ---- Dialog actions ----

ACTION_OK = 'OK'
ACTION_YES = 'Yes'
ACTION_NO = 'No'
ACTION_DISABLE_WARNING = 'Disable Warning'
ACTION_OPEN_DOCUMENTATION = 'Open Documentation'

# ---- Icons ----

ICON_APP = 'app'
ICON_APP_DELETED = 'app-deleted'
ICON_LOADING = 'loading~spin'
ICON_INFO = 'info'
ICON_SIGN_IN = 'sign-in'
ICON_SIGN_OUT = 'sign-out'
ICON_PREVIEW = 'preview'
ICON_GLOBE = 'globe'
ICON_ACCOUNT = 'account'
ICON_FIELD = 'symbol-field'
ICON_GO_TO_FILE = 'go-to-file'
ICON_BROWSER = 'browser'
ICON_EDITOR_LAYOUT = 'editor-layout'
ICON_SHIELD = 'shield'
ICON_KEY = 'key'
ICON_SYMBOL_KEY = 'symbol-key'
ICON_GIST_SECRET = 'gist-secret'
ICON_CHECKLIST = 'checklist'
ICON_LIST_TREE = 'list-tree'
ICON_NOTE = 'note'
ICON_ORGANIZATION = 'organization'
ICON_PERSON = 'person'
ICON_MAIL = 'mail'
ICON_ERROR = 'error'

COLOUR_FOREGROUND = 'editor.foreground'
COLOUR_ERROR = 'list.errorForeground'
COLOUR_WARNING = 'list.warningForeground'
COLOUR_DISABLED = 'disabledForeground'


class TreeState(IntEnum):
    """Top-level states of the tree. Only APPLICATIONS produces a multi-node tree."""
    INITIALISING = 1
    AUTHENTICATING = 2
    SIGN_IN = 3
    AUTHENTICATED = 4
    APPLICATIONS = 5
    EMPTY = 6


class RebuildState(IntEnum):
    IDLE = 0
    REBUILDING = 1


class ApplicationListView(IntEnum):
    OWNED = 1
    ALL = 2
    DELETED = 3
