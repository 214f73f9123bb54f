from enum import Enum
from typing import FrozenSet


class Category(Enum):
    """Closed set of node categories. The value is the context string handed to the host view (used for menus)."""

    # --- Applications ---
    APPLICATION = 'APPLICATION'
    APPLICATION_DELETED = 'APPLICATION-DELETED'

    APPID_PARENT = 'APPID-PARENT'
    APPID_URIS = 'APPID-URIS'
    APPID_URIS_EMPTY = 'APPID-URIS-EMPTY'
    APPID_URI = 'APPID-URI'

    AUDIENCE_PARENT = 'AUDIENCE-PARENT'
    AUDIENCE = 'AUDIENCE'

    LOGOUT_URL_PARENT = 'LOGOUT-URL-PARENT'
    LOGOUT_URL = 'LOGOUT-URL'
    LOGOUT_URL_EMPTY = 'LOGOUT-URL-EMPTY'

    # --- Redirect URIs ---
    REDIRECT_PARENT = 'REDIRECT-PARENT'
    WEB_REDIRECT = 'WEB-REDIRECT'
    SPA_REDIRECT = 'SPA-REDIRECT'
    NATIVE_REDIRECT = 'NATIVE-REDIRECT'
    WEB_REDIRECT_URI = 'WEB-REDIRECT-URI'
    SPA_REDIRECT_URI = 'SPA-REDIRECT-URI'
    NATIVE_REDIRECT_URI = 'NATIVE-REDIRECT-URI'

    # --- Credentials ---
    PROPERTY_ARRAY = 'PROPERTY-ARRAY'
    PASSWORD_CREDENTIALS = 'PASSWORD-CREDENTIALS'
    PASSWORD = 'PASSWORD'
    PASSWORD_VALUE = 'PASSWORD-VALUE'
    CERTIFICATE_CREDENTIALS = 'CERTIFICATE-CREDENTIALS'
    CERTIFICATE = 'CERTIFICATE'
    CERTIFICATE_VALUE = 'CERTIFICATE-VALUE'

    # --- API permissions ---
    API_PERMISSIONS = 'API-PERMISSIONS'
    API_PERMISSIONS_APP = 'API-PERMISSIONS-APP'
    API_PERMISSIONS_APP_UNKNOWN = 'API-PERMISSIONS-APP-UNKNOWN'
    API_PERMISSIONS_SCOPE = 'API-PERMISSIONS-SCOPE'
    API_PERMISSIONS_SCOPE_UNKNOWN = 'API-PERMISSIONS-SCOPE-UNKNOWN'

    # --- Exposed API permissions ---
    EXPOSED_API_PERMISSIONS = 'EXPOSED-API-PERMISSIONS'
    AUTHORIZED_CLIENTS = 'AUTHORIZED-CLIENTS'
    AUTHORIZED_CLIENT = 'AUTHORIZED-CLIENT'
    AUTHORIZED_CLIENT_SCOPE = 'AUTHORIZED-CLIENT-SCOPE'
    AUTHORIZED_CLIENT_SCOPE_UNKNOWN = 'AUTHORIZED-CLIENT-SCOPE-UNKNOWN'
    SCOPE_ENABLED = 'SCOPE-ENABLED'
    SCOPE_DISABLED = 'SCOPE-DISABLED'
    SCOPE_VALUE = 'SCOPE-VALUE'
    SCOPE_NAME = 'SCOPE-NAME'
    SCOPE_DESCRIPTION = 'SCOPE-DESCRIPTION'
    SCOPE_CONSENT = 'SCOPE-CONSENT'
    SCOPE_STATE = 'SCOPE-STATE'

    # --- App roles ---
    APP_ROLES = 'APP-ROLES'
    ROLE_ENABLED = 'ROLE-ENABLED'
    ROLE_DISABLED = 'ROLE-DISABLED'
    ROLE_VALUE = 'ROLE-VALUE'
    ROLE_NAME = 'ROLE-NAME'
    ROLE_DESCRIPTION = 'ROLE-DESCRIPTION'
    ROLE_ALLOWED = 'ROLE-ALLOWED'
    ROLE_STATE = 'ROLE-STATE'

    # --- Owners ---
    OWNERS = 'OWNERS'
    OWNER = 'OWNER'

    # --- Misc ---
    COPY = 'COPY'
    ERROR = 'ERROR'

    # --- Ephemeral (single parentless node which replaces the whole tree) ---
    SIGN_IN = 'SIGN-IN'
    INITIALISING = 'INITIALISING'
    AUTHENTICATING = 'AUTHENTICATING'
    EMPTY = 'EMPTY'

    def is_lazy_capable(self) -> bool:
        """True if a node of this category may be built with an unresolved subtree"""
        return self in LAZY_CATEGORIES

    def is_ephemeral(self) -> bool:
        return self in EPHEMERAL_CATEGORIES

    @classmethod
    def for_scope_state(cls, is_enabled: bool) -> 'Category':
        return Category.SCOPE_ENABLED if is_enabled else Category.SCOPE_DISABLED

    @classmethod
    def for_role_state(cls, is_enabled: bool) -> 'Category':
        return Category.ROLE_ENABLED if is_enabled else Category.ROLE_DISABLED


LAZY_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.OWNERS,
    Category.APPID_URIS,
    Category.WEB_REDIRECT,
    Category.SPA_REDIRECT,
    Category.NATIVE_REDIRECT,
    Category.PASSWORD_CREDENTIALS,
    Category.CERTIFICATE_CREDENTIALS,
    Category.API_PERMISSIONS,
    Category.EXPOSED_API_PERMISSIONS,
    Category.APP_ROLES,
})

EPHEMERAL_CATEGORIES: FrozenSet[Category] = frozenset({
    Category.SIGN_IN,
    Category.INITIALISING,
    Category.AUTHENTICATING,
    Category.EMPTY,
})
