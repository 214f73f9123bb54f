import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from appreg.backend import app_node_factory
from appreg.client.directory_client import DirectoryClient
from appreg.error import GraphError, InvalidOperationError
from appreg.model.category import Category, LAZY_CATEGORIES
from appreg.model.graph_result import GraphResult
from appreg.model.node.app_reg_node import AppRegNode

logger = logging.getLogger(__name__)


class LazyExpansionResolver:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS LazyExpansionResolver

    Produces the children of a LAZY node when the host expands it. Each category has one resolver, which fetches only
    the property it needs and builds the child nodes. Results are handed to the host and not kept on the node; the next
    expansion fetches again.

    On a failed fetch the error is routed to the error handler (scoped to the node) and None is returned.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, client: DirectoryClient, error_handler, tree_id: str):
        self.client: DirectoryClient = client
        self.error_handler = error_handler
        self.tree_id: str = tree_id

        self.now_func: Callable[[], Optional[datetime]] = lambda: None
        """Override to fix the current time used to compute credential expiry. None means "now" """

    async def resolve_children(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        if not node.is_lazy():
            raise InvalidOperationError(f'resolve_children() for non-lazy node: {node}')

        resolver = _RESOLVER_DICT.get(node.category, None)
        if not resolver:
            raise InvalidOperationError(f'resolve_children() for category {node.category.value}')

        logger.debug(f'[{self.tree_id}] Resolving children of {node.category.value} for app {node.object_id}')
        try:
            return await resolver(self, node)
        except Exception as err:
            logger.exception(f'[{self.tree_id}] Failed to resolve children of {node}')
            await self.error_handler.handle_error(GraphError.from_exception(err), node=node)
            return None

    async def _get_property(self, node: AppRegNode, select: str) -> Optional[Dict[str, Any]]:
        """Fetches one property of the node's application. Returns None (after routing the error) on failure"""
        result: GraphResult = await self.client.get_partial(node.object_id, select)
        if result.success:
            return result.value or {}

        await self.error_handler.handle_error(result.error, node=node)
        return None

    # Resolvers
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    async def _resolve_owners(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        result = await self.client.get_owners(node.object_id)
        if not result.success:
            await self.error_handler.handle_error(result.error, node=node)
            return None
        return app_node_factory.build_owner_nodes(node, result.value or [])

    async def _resolve_app_id_uris(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'identifierUris')
        if app is None:
            return None
        return app_node_factory.build_app_id_uri_nodes(node, app.get('identifierUris') or [])

    async def _resolve_redirect_uris(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        section = _REDIRECT_SECTION_DICT[node.category]
        app = await self._get_property(node, section)
        if app is None:
            return None
        redirect_uris = (app.get(section) or {}).get('redirectUris') or []
        return app_node_factory.build_redirect_uri_nodes(node, redirect_uris)

    async def _resolve_password_credentials(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'passwordCredentials')
        if app is None:
            return None
        return app_node_factory.build_password_credential_nodes(node, app.get('passwordCredentials') or [], self.now_func())

    async def _resolve_certificate_credentials(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'keyCredentials')
        if app is None:
            return None
        return app_node_factory.build_certificate_credential_nodes(node, app.get('keyCredentials') or [], self.now_func())

    async def _resolve_api_permissions(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'requiredResourceAccess')
        if app is None:
            return None
        permission_list = app.get('requiredResourceAccess') or []
        return list(await asyncio.gather(*[self._build_api_permission_app(node, permission) for permission in permission_list]))

    async def _build_api_permission_app(self, node: AppRegNode, permission: Dict[str, Any]) -> AppRegNode:
        resource_app_id = permission.get('resourceAppId')
        try:
            result = await self.client.find_service_principal_by_app_id(resource_app_id)
        except Exception as err:
            result = GraphResult.fail(GraphError.from_exception(err))

        if result.success and result.value is not None:
            return app_node_factory.build_api_permission_app_node(node, permission, result.value)
        if not result.success and result.is_not_found():
            logger.debug(f'[{self.tree_id}] No service principal for resource app {resource_app_id}')
            return app_node_factory.build_api_permission_unknown_app_node(node, permission)

        error = result.error if result.error else GraphError(f'No service principal returned for {resource_app_id}')
        await self.error_handler.handle_error(error, node=node)
        return app_node_factory.build_error_node(node, error.message)

    async def _resolve_exposed_api_permissions(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'api')
        if app is None:
            return None
        api = app.get('api') or {}
        scopes = api.get('oauth2PermissionScopes') or []
        if not scopes:
            return []

        client_list = api.get('preAuthorizedApplications') or []
        client_nodes = list(await asyncio.gather(*[self._build_authorized_client(node, c, scopes) for c in client_list]))
        return [app_node_factory.build_authorized_clients_node(node, client_nodes)] + app_node_factory.build_scope_nodes(node, scopes)

    async def _build_authorized_client(self, node: AppRegNode, client: Dict[str, Any], scopes: List[Dict[str, Any]]) -> AppRegNode:
        try:
            result = await self.client.find_service_principal_by_app_id(client.get('appId'))
        except Exception as err:
            result = GraphResult.fail(GraphError.from_exception(err))

        if not result.success:
            # Shown as an unknown client rather than as an error
            logger.debug(f'[{self.tree_id}] Authorized client app not found: {client.get("appId")} ({result.error!r})')
        service_principal = result.value if result.success else None
        return app_node_factory.build_authorized_client_node(node, client, scopes, service_principal)

    async def _resolve_app_roles(self, node: AppRegNode) -> Optional[List[AppRegNode]]:
        app = await self._get_property(node, 'appRoles')
        if app is None:
            return None
        return app_node_factory.build_app_role_nodes(node, app.get('appRoles') or [])


_REDIRECT_SECTION_DICT: Dict[Category, str] = {
    Category.WEB_REDIRECT: 'web',
    Category.SPA_REDIRECT: 'spa',
    Category.NATIVE_REDIRECT: 'publicClient',
}

_RESOLVER_DICT: Dict[Category, Callable[[LazyExpansionResolver, AppRegNode], Awaitable[Optional[List[AppRegNode]]]]] = {
    Category.OWNERS: LazyExpansionResolver._resolve_owners,
    Category.APPID_URIS: LazyExpansionResolver._resolve_app_id_uris,
    Category.WEB_REDIRECT: LazyExpansionResolver._resolve_redirect_uris,
    Category.SPA_REDIRECT: LazyExpansionResolver._resolve_redirect_uris,
    Category.NATIVE_REDIRECT: LazyExpansionResolver._resolve_redirect_uris,
    Category.PASSWORD_CREDENTIALS: LazyExpansionResolver._resolve_password_credentials,
    Category.CERTIFICATE_CREDENTIALS: LazyExpansionResolver._resolve_certificate_credentials,
    Category.API_PERMISSIONS: LazyExpansionResolver._resolve_api_permissions,
    Category.EXPOSED_API_PERMISSIONS: LazyExpansionResolver._resolve_exposed_api_permissions,
    Category.APP_ROLES: LazyExpansionResolver._resolve_app_roles,
}

# Every lazy-capable category must have exactly one resolver
if set(_RESOLVER_DICT.keys()) != set(LAZY_CATEGORIES):
    raise RuntimeError(f'Resolver table does not match lazy categories: '
                       f'missing={set(LAZY_CATEGORIES) - set(_RESOLVER_DICT.keys())} '
                       f'extra={set(_RESOLVER_DICT.keys()) - set(LAZY_CATEGORIES)}')


def get_resolved_categories():
    return frozenset(_RESOLVER_DICT.keys())
