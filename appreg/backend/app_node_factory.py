import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from appreg import logging_constants
from appreg.backend import credential_expiry
from appreg.constants import COLOUR_DISABLED, COLOUR_ERROR, COLOUR_FOREGROUND, ICON_ACCOUNT, ICON_APP, ICON_APP_DELETED, \
    ICON_BROWSER, ICON_CHECKLIST, ICON_EDITOR_LAYOUT, ICON_ERROR, ICON_FIELD, ICON_GIST_SECRET, ICON_GLOBE, ICON_GO_TO_FILE, ICON_KEY, \
    ICON_LIST_TREE, ICON_MAIL, ICON_NOTE, ICON_ORGANIZATION, ICON_PERSON, ICON_PREVIEW, ICON_SHIELD, ICON_SIGN_OUT, ICON_SYMBOL_KEY
from appreg.model.category import Category
from appreg.model.icon import Icon
from appreg.model.node.app_reg_node import AppRegNode

logger = logging.getLogger(__name__)

NOT_SET = 'Not set'
NEVER = 'Never'

SIGN_IN_AUDIENCE_DESCRIPTIONS = {
    'AzureADMyOrg': 'Single Tenant',
    'AzureADMultipleOrgs': 'Multiple Tenants',
    'AzureADandPersonalMicrosoftAccount': 'Multiple Tenants and Personal Microsoft Accounts',
    'PersonalMicrosoftAccount': 'Personal Microsoft Accounts',
}

_REDIRECT_URI_CATEGORY = {
    Category.WEB_REDIRECT: Category.WEB_REDIRECT_URI,
    Category.SPA_REDIRECT: Category.SPA_REDIRECT_URI,
    Category.NATIVE_REDIRECT: Category.NATIVE_REDIRECT_URI,
}


def get_sign_in_audience_description(audience: Optional[str]) -> str:
    """Unknown audiences are shown as-is"""
    return SIGN_IN_AUDIENCE_DESCRIPTIONS.get(audience, audience)


def _field_icon(colour: str = COLOUR_FOREGROUND) -> Icon:
    return Icon(ICON_FIELD, colour)


def _has_items(collection: Optional[list]) -> bool:
    return bool(collection)


def _redirect_uris(app: Dict[str, Any], section: str) -> list:
    return (app.get(section) or {}).get('redirectUris') or []


def _lazy_capable_node(label: str, category: Category, present: bool, **kwargs) -> AppRegNode:
    if present:
        return AppRegNode.lazy(label, category, **kwargs)
    return AppRegNode(label, category, children=[], **kwargs)


# Root-level nodes
# ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

def _build_client_id_node(object_id: str, app_id: str) -> AppRegNode:
    tooltip = 'The Application (Client) Id is used to identify the application to Azure AD.'
    return AppRegNode('Client Id', Category.APPID_PARENT, icon=Icon(ICON_PREVIEW), object_id=object_id, tooltip=tooltip, children=[
        AppRegNode(app_id, Category.COPY, icon=_field_icon(), value=app_id, object_id=object_id, tooltip=tooltip)
    ])


def build_application_node(app: Dict[str, Any], order: int) -> AppRegNode:
    """Builds the fixed-shape subtree of one application from the partial fetch of APPLICATION_SELECT_PROPERTIES
    (with owners expanded). Collections which the remote object reports as non-empty are left LAZY."""
    object_id = app['id']
    app_id = app.get('appId')
    display_name = app.get('displayName') or ''

    tooltip = f'Name: {display_name}\nClient Id: {app_id}'
    created = app.get('createdDateTime')
    if created:
        tooltip += f'\nCreated: {credential_expiry.format_date(created)}'
    if app.get('notes'):
        tooltip += f'\nNotes: {app["notes"]}'

    children: List[AppRegNode] = [_build_client_id_node(object_id, app_id)]

    identifier_uris = app.get('identifierUris') or []
    category = Category.APPID_URIS if identifier_uris else Category.APPID_URIS_EMPTY
    appid_uri_tooltip = 'The Application Id URI is a globally unique URI used to identify this web API. It is the prefix for scopes ' \
                        'and in access tokens, it is the value of the audience claim. Also referred to as an identifier URI.'
    if identifier_uris:
        children.append(AppRegNode.lazy('Application Id URIs', category, icon=Icon(ICON_GLOBE), object_id=object_id, app_id=app_id,
                                        value='Set', tooltip=appid_uri_tooltip))
    else:
        children.append(AppRegNode('Application Id URIs', category, icon=Icon(ICON_GLOBE), object_id=object_id, app_id=app_id,
                                   value=NOT_SET, tooltip=appid_uri_tooltip))

    audience = app.get('signInAudience')
    audience_tooltip = 'The Sign In Audience determines whether the application can be used by accounts in the same Azure AD ' \
                       'tenant or accounts in any Azure AD tenant.'
    children.append(AppRegNode('Sign In Audience', Category.AUDIENCE_PARENT, icon=Icon(ICON_ACCOUNT), value=audience,
                               object_id=object_id, tooltip=audience_tooltip, children=[
                                   AppRegNode(get_sign_in_audience_description(audience), Category.AUDIENCE, icon=_field_icon(),
                                              value=audience, object_id=object_id, tooltip=audience_tooltip)
                               ]))

    web_uris = _redirect_uris(app, 'web')
    spa_uris = _redirect_uris(app, 'spa')
    native_uris = _redirect_uris(app, 'publicClient')
    if web_uris or spa_uris:
        logout_url = (app.get('web') or {}).get('logoutUrl') or None
        logout_value = logout_url if logout_url else NOT_SET
        logout_tooltip = 'The URL to logout of the application.'
        children.append(AppRegNode('Front-channel Logout URL', Category.LOGOUT_URL_PARENT, icon=Icon(ICON_SIGN_OUT), value=logout_value,
                                   object_id=object_id, tooltip=logout_tooltip, children=[
                                       AppRegNode(logout_value, Category.LOGOUT_URL if logout_url else Category.LOGOUT_URL_EMPTY,
                                                  icon=_field_icon(), value=logout_value, object_id=object_id, tooltip=logout_tooltip)
                                   ]))

    children.append(AppRegNode('Redirect URIs', Category.REDIRECT_PARENT, icon=Icon(ICON_GO_TO_FILE, COLOUR_FOREGROUND), object_id=object_id,
                               tooltip='The Redirect URIs are the endpoints where Azure AD will return responses containing tokens or errors.',
                               children=[
                                   _lazy_capable_node('Web', Category.WEB_REDIRECT, _has_items(web_uris), icon=Icon(ICON_GLOBE),
                                                      object_id=object_id, tooltip='Redirect URIs for web applications.'),
                                   _lazy_capable_node('SPA', Category.SPA_REDIRECT, _has_items(spa_uris), icon=Icon(ICON_BROWSER),
                                                      object_id=object_id, tooltip='Redirect URIs for single page applications.'),
                                   _lazy_capable_node('Mobile and Desktop', Category.NATIVE_REDIRECT, _has_items(native_uris),
                                                      icon=Icon(ICON_EDITOR_LAYOUT), object_id=object_id,
                                                      tooltip='Redirect URIs for mobile and desktop applications.'),
                               ]))

    children.append(AppRegNode('Credentials', Category.PROPERTY_ARRAY, icon=Icon(ICON_SHIELD, COLOUR_FOREGROUND), object_id=object_id,
                               tooltip='Credentials enable confidential applications to identify themselves to the authentication service.',
                               children=[
                                   _lazy_capable_node('Client Secrets', Category.PASSWORD_CREDENTIALS, _has_items(app.get('passwordCredentials')),
                                                      icon=Icon(ICON_KEY, COLOUR_FOREGROUND), object_id=object_id,
                                                      tooltip='Client secrets are used to authenticate confidential applications.'),
                                   _lazy_capable_node('Certificates', Category.CERTIFICATE_CREDENTIALS, _has_items(app.get('keyCredentials')),
                                                      icon=Icon(ICON_GIST_SECRET, COLOUR_FOREGROUND), object_id=object_id,
                                                      tooltip='Certificates are used to authenticate confidential applications.'),
                               ]))

    children.append(_lazy_capable_node('API Permissions', Category.API_PERMISSIONS, _has_items(app.get('requiredResourceAccess')),
                                       icon=Icon(ICON_CHECKLIST, COLOUR_FOREGROUND), object_id=object_id,
                                       tooltip='API permissions define the access that an application has to an API.'))

    scopes = (app.get('api') or {}).get('oauth2PermissionScopes')
    children.append(_lazy_capable_node('Exposed API Permissions', Category.EXPOSED_API_PERMISSIONS, _has_items(scopes),
                                       icon=Icon(ICON_LIST_TREE, COLOUR_FOREGROUND), object_id=object_id, resource_app_id=app_id,
                                       tooltip='Exposed API permissions define custom scopes to restrict access to data and '
                                               'functionality protected by this API.'))

    children.append(_lazy_capable_node('App Roles', Category.APP_ROLES, _has_items(app.get('appRoles')),
                                       icon=Icon(ICON_NOTE, COLOUR_FOREGROUND), object_id=object_id,
                                       tooltip='App roles define custom roles that can be assigned to users and groups, or assigned '
                                               'as application-only scopes to a client application.'))

    children.append(_lazy_capable_node('Owners', Category.OWNERS, _has_items(app.get('owners')),
                                       icon=Icon(ICON_ORGANIZATION, COLOUR_FOREGROUND), object_id=object_id,
                                       tooltip='Owners are users who can manage the application.'))

    node = AppRegNode(display_name, Category.APPLICATION, icon=Icon(ICON_APP), value=display_name, object_id=object_id,
                      app_id=app_id, tooltip=tooltip, order=order, children=children)
    if logging_constants.SUPER_DEBUG_ENABLED:
        logger.debug(f'Built application node: {node}')
    return node


def build_deleted_application_node(app: Dict[str, Any], order: int) -> AppRegNode:
    """Deleted applications are shown from the listing alone: no detail fetch, and only the Client Id subtree"""
    object_id = app['id']
    app_id = app.get('appId')
    display_name = app.get('displayName') or ''
    tooltip = f'Name: {display_name}\nClient Id: {app_id}'
    if app.get('deletedDateTime'):
        tooltip += f'\nDeleted: {credential_expiry.format_date(app["deletedDateTime"])}'

    return AppRegNode(display_name, Category.APPLICATION_DELETED, icon=Icon(ICON_APP_DELETED), value=display_name,
                      object_id=object_id, app_id=app_id, tooltip=tooltip, order=order,
                      children=[_build_client_id_node(object_id, app_id)])


# Lazily-resolved children
# ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

def build_owner_nodes(parent: AppRegNode, owners: List[Dict[str, Any]]) -> List[AppRegNode]:
    node_list = []
    for owner in owners:
        owner_children = []
        if owner.get('mail'):
            owner_children.append(AppRegNode(owner['mail'], Category.COPY, icon=Icon(ICON_MAIL, COLOUR_FOREGROUND), value=owner['mail'],
                                             object_id=parent.object_id, tooltip='Email address of user'))
        if owner.get('userPrincipalName'):
            upn = owner['userPrincipalName']
            owner_children.append(AppRegNode(upn, Category.COPY, icon=Icon(ICON_ACCOUNT, COLOUR_FOREGROUND), value=upn,
                                             object_id=parent.object_id, tooltip='User principal name of user'))
        node_list.append(AppRegNode(owner.get('displayName') or owner.get('id'), Category.OWNER, icon=Icon(ICON_PERSON, COLOUR_FOREGROUND),
                                    object_id=parent.object_id, user_id=owner.get('id'), children=owner_children))
    return node_list


def build_app_id_uri_nodes(parent: AppRegNode, identifier_uris: List[str]) -> List[AppRegNode]:
    return [AppRegNode(uri, Category.APPID_URI, icon=_field_icon(), value=uri, object_id=parent.object_id) for uri in identifier_uris]


def build_redirect_uri_nodes(parent: AppRegNode, redirect_uris: List[str]) -> List[AppRegNode]:
    category = _REDIRECT_URI_CATEGORY[parent.category]
    return [AppRegNode(uri, category, icon=_field_icon(), value=uri, object_id=parent.object_id) for uri in redirect_uris]


def build_password_credential_nodes(parent: AppRegNode, credentials: List[Dict[str, Any]], now: datetime = None) -> List[AppRegNode]:
    node_list = []
    for credential in credentials:
        end = credential.get('endDateTime')
        state = credential_expiry.get_expiry_state(end, now)
        colour = credential_expiry.get_colour(state)
        field_icon = _field_icon(colour)
        children = [
            AppRegNode(f'Value: {credential.get("hint") or ""}******************', Category.PASSWORD_VALUE, icon=field_icon,
                       object_id=parent.object_id,
                       tooltip='Client secret values cannot be viewed or accessed, except for immediately after creation.'),
            AppRegNode(f'Created: {credential_expiry.format_date(credential.get("startDateTime"))}', Category.PASSWORD_VALUE,
                       icon=field_icon, object_id=parent.object_id),
            AppRegNode(f'Expires: {credential_expiry.format_date(end) or NEVER}', Category.PASSWORD_VALUE, icon=field_icon,
                       object_id=parent.object_id),
        ]
        node_list.append(AppRegNode(credential.get('displayName') or credential.get('keyId'), Category.PASSWORD,
                                    icon=Icon(ICON_SYMBOL_KEY, colour), value=credential.get('keyId'), key_id=credential.get('keyId'),
                                    object_id=parent.object_id, tooltip=credential_expiry.get_tooltip(state, end), children=children))
    return node_list


def build_certificate_credential_nodes(parent: AppRegNode, credentials: List[Dict[str, Any]], now: datetime = None) -> List[AppRegNode]:
    node_list = []
    for credential in credentials:
        end = credential.get('endDateTime')
        state = credential_expiry.get_expiry_state(end, now)
        colour = credential_expiry.get_colour(state)
        field_icon = _field_icon(colour)
        key_identifier = credential.get('customKeyIdentifier')
        children = [
            AppRegNode(f'Type: {credential.get("type")}', Category.CERTIFICATE_VALUE, icon=field_icon, object_id=parent.object_id),
            AppRegNode(f'Key Identifier: {key_identifier}', Category.COPY, icon=field_icon, value=key_identifier, object_id=parent.object_id),
            AppRegNode(f'Created: {credential_expiry.format_date(credential.get("startDateTime"))}', Category.CERTIFICATE_VALUE,
                       icon=field_icon, object_id=parent.object_id),
            AppRegNode(f'Expires: {credential_expiry.format_date(end) or NEVER}', Category.CERTIFICATE_VALUE, icon=field_icon,
                       object_id=parent.object_id),
        ]
        node_list.append(AppRegNode(credential.get('displayName') or credential.get('keyId'), Category.CERTIFICATE,
                                    icon=Icon(ICON_GIST_SECRET, colour), key_id=credential.get('keyId'), object_id=parent.object_id,
                                    tooltip=credential_expiry.get_tooltip(state, end), children=children))
    return node_list


def _scope_label(resource_access: Dict[str, Any], value: Optional[str]) -> str:
    prefix = 'Delegated' if resource_access.get('type') == 'Scope' else 'Application'
    return f'{prefix}: {value if value is not None else resource_access.get("id")}'


def build_api_permission_app_node(parent: AppRegNode, permission: Dict[str, Any], service_principal: Dict[str, Any]) -> AppRegNode:
    resource_app_id = permission.get('resourceAppId')
    scope_nodes = []
    for resource_access in permission.get('resourceAccess') or []:
        access_id = resource_access.get('id')
        if resource_access.get('type') == 'Scope':
            found = next((s for s in service_principal.get('oauth2PermissionScopes') or [] if s.get('id') == access_id), None)
            tooltip = found.get('adminConsentDescription') if found else 'Scope not found'
        else:
            found = next((r for r in service_principal.get('appRoles') or [] if r.get('id') == access_id), None)
            tooltip = found.get('description') if found else 'Role not found'
        colour = COLOUR_FOREGROUND if found else COLOUR_ERROR
        scope_nodes.append(AppRegNode(_scope_label(resource_access, found.get('value') if found else None), Category.API_PERMISSIONS_SCOPE,
                                      icon=_field_icon(colour), object_id=parent.object_id, resource_app_id=resource_app_id,
                                      resource_scope_id=access_id, tooltip=tooltip))

    return AppRegNode(service_principal.get('displayName') or resource_app_id, Category.API_PERMISSIONS_APP,
                      icon=Icon(ICON_PREVIEW, COLOUR_FOREGROUND), object_id=parent.object_id, resource_app_id=resource_app_id,
                      children=scope_nodes)


def build_api_permission_unknown_app_node(parent: AppRegNode, permission: Dict[str, Any]) -> AppRegNode:
    """For a resource app which has no service principal in this tenant"""
    resource_app_id = permission.get('resourceAppId')
    scope_nodes = []
    for resource_access in permission.get('resourceAccess') or []:
        is_scope = resource_access.get('type') == 'Scope'
        scope_nodes.append(AppRegNode(_scope_label(resource_access, None), Category.API_PERMISSIONS_SCOPE_UNKNOWN,
                                      icon=_field_icon(COLOUR_ERROR), value=resource_access.get('id'), object_id=parent.object_id,
                                      resource_app_id=resource_app_id, resource_scope_id=resource_access.get('id'),
                                      tooltip='Scope not found' if is_scope else 'Role not found'))

    return AppRegNode(resource_app_id, Category.API_PERMISSIONS_APP_UNKNOWN, icon=Icon(ICON_PREVIEW, COLOUR_ERROR),
                      object_id=parent.object_id, resource_app_id=resource_app_id, tooltip='Application not found', children=scope_nodes)


def build_error_node(parent: AppRegNode, msg: Optional[str] = None) -> AppRegNode:
    return AppRegNode('Error', Category.ERROR, icon=Icon(ICON_ERROR, COLOUR_ERROR), object_id=parent.object_id, tooltip=msg)


def _enabled_colour(is_enabled: bool) -> str:
    return COLOUR_FOREGROUND if is_enabled else COLOUR_DISABLED


def build_authorized_client_node(parent: AppRegNode, client: Dict[str, Any], scopes: List[Dict[str, Any]],
                                 service_principal: Optional[Dict[str, Any]]) -> AppRegNode:
    """service_principal is None if the client app could not be found"""
    client_app_id = client.get('appId')
    if service_principal:
        client_name = service_principal.get('displayName') or client_app_id
        colour = COLOUR_FOREGROUND
        tooltip = client_name
    else:
        client_name = client_app_id
        colour = COLOUR_ERROR
        tooltip = 'Application not found'

    scope_nodes = []
    for scope_id in client.get('delegatedPermissionIds') or []:
        scope = next((s for s in scopes if s.get('id') == scope_id), None)
        if scope:
            is_enabled = bool(scope.get('isEnabled'))
            scope_nodes.append(AppRegNode(scope.get('value'), Category.AUTHORIZED_CLIENT_SCOPE,
                                          icon=Icon(ICON_LIST_TREE, _enabled_colour(is_enabled)), object_id=parent.object_id,
                                          resource_app_id=client_app_id, value=scope_id,
                                          tooltip=f'{scope.get("adminConsentDisplayName")}{"" if is_enabled else " (Disabled)"}'))
        else:
            scope_nodes.append(AppRegNode(f'Not Found: {scope_id}', Category.AUTHORIZED_CLIENT_SCOPE_UNKNOWN,
                                          icon=Icon(ICON_LIST_TREE, COLOUR_ERROR), object_id=parent.object_id,
                                          resource_app_id=client_app_id, value=scope_id, tooltip='Scope not found'))

    return AppRegNode(client_name, Category.AUTHORIZED_CLIENT, icon=Icon(ICON_PREVIEW, colour), object_id=parent.object_id,
                      resource_app_id=client_app_id, value=parent.resource_app_id, tooltip=tooltip, children=scope_nodes)


def build_authorized_clients_node(parent: AppRegNode, client_nodes: List[AppRegNode]) -> AppRegNode:
    return AppRegNode('Authorized Client Applications', Category.AUTHORIZED_CLIENTS, icon=Icon(ICON_PREVIEW), object_id=parent.object_id,
                      value=parent.resource_app_id, children=client_nodes,
                      tooltip='Authorizing a client application indicates that this API trusts the application and users should '
                              'not be asked to consent when the client calls this API.')


def build_scope_nodes(parent: AppRegNode, scopes: List[Dict[str, Any]]) -> List[AppRegNode]:
    node_list = []
    for scope in scopes:
        is_enabled = bool(scope.get('isEnabled'))
        field_icon = _field_icon(_enabled_colour(is_enabled))
        scope_id = scope.get('id')
        children = [
            AppRegNode(f'Scope: {scope.get("value")}', Category.SCOPE_VALUE, icon=field_icon, object_id=parent.object_id, value=scope_id),
            AppRegNode(f'Name: {scope.get("adminConsentDisplayName")}', Category.SCOPE_NAME, icon=field_icon, object_id=parent.object_id,
                       value=scope_id),
            AppRegNode(f'Description: {scope.get("adminConsentDescription")}', Category.SCOPE_DESCRIPTION, icon=field_icon,
                       object_id=parent.object_id, value=scope_id),
            AppRegNode(f'Consent: {"Admins and Users" if scope.get("type") == "User" else "Admins Only"}', Category.SCOPE_CONSENT,
                       icon=field_icon, object_id=parent.object_id, value=scope_id),
            AppRegNode(f'Enabled: {"Yes" if is_enabled else "No"}', Category.SCOPE_STATE, icon=field_icon, object_id=parent.object_id,
                       value=scope_id),
        ]
        node_list.append(AppRegNode(scope.get('value'), Category.for_scope_state(is_enabled), icon=Icon(ICON_LIST_TREE, _enabled_colour(is_enabled)),
                                    object_id=parent.object_id, value=scope_id, state=is_enabled,
                                    tooltip=f'{scope.get("adminConsentDisplayName")}{"" if is_enabled else " (Disabled)"}',
                                    children=children))
    return node_list


def _allowed_member_types(role: Dict[str, Any]) -> str:
    return ', '.join('Applications' if member_type == 'Application' else 'Users/Groups'
                     for member_type in role.get('allowedMemberTypes') or [])


def build_app_role_nodes(parent: AppRegNode, roles: List[Dict[str, Any]]) -> List[AppRegNode]:
    node_list = []
    for role in roles:
        is_enabled = bool(role.get('isEnabled'))
        field_icon = _field_icon(_enabled_colour(is_enabled))
        role_id = role.get('id')
        children = [
            AppRegNode(f'Value: {role.get("value")}', Category.ROLE_VALUE, icon=field_icon, object_id=parent.object_id, value=role_id),
            AppRegNode(f'Name: {role.get("displayName")}', Category.ROLE_NAME, icon=field_icon, object_id=parent.object_id, value=role_id),
            AppRegNode(f'Description: {role.get("description")}', Category.ROLE_DESCRIPTION, icon=field_icon, object_id=parent.object_id,
                       value=role_id),
            AppRegNode(f'Allowed: {_allowed_member_types(role)}', Category.ROLE_ALLOWED, icon=field_icon, object_id=parent.object_id,
                       value=role_id),
            AppRegNode(f'Enabled: {"Yes" if is_enabled else "No"}', Category.ROLE_STATE, icon=field_icon, object_id=parent.object_id,
                       value=role_id),
        ]
        node_list.append(AppRegNode(role.get('value'), Category.for_role_state(is_enabled), icon=Icon(ICON_PERSON, _enabled_colour(is_enabled)),
                                    object_id=parent.object_id, value=role_id, state=is_enabled,
                                    tooltip=f'{role.get("description")}{"" if is_enabled else " (Disabled)"}', children=children))
    return node_list
