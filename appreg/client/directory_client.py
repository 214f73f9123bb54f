from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from appreg.model.graph_result import GraphResult


class DirectoryClient(ABC):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    ABSTRACT CLASS DirectoryClient

    Async contract for the remote directory (Microsoft Graph). Every call returns a GraphResult rather than raising;
    an implementation may still raise for transport-level rejections, and callers must be prepared to catch them.

    Objects are returned as plain dicts keyed by the remote (camelCase) property names.

    The list calls return only the "id" and "displayName" of each object (plus "appId" for deleted objects).
    "filter" is an OData predicate; "top" is the maximum number of objects to return.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """

    @abstractmethod
    async def initialise(self) -> bool:
        """Returns True if credentials are available (the operator is signed in)"""
        pass

    @abstractmethod
    async def count_owned(self) -> GraphResult[int]:
        pass

    @abstractmethod
    async def count_all(self) -> GraphResult[int]:
        pass

    @abstractmethod
    async def count_deleted(self) -> GraphResult[int]:
        pass

    @abstractmethod
    async def list_owned(self, filter: Optional[str], top: int) -> GraphResult[List[Dict[str, Any]]]:
        pass

    @abstractmethod
    async def list_all(self, filter: Optional[str], top: int) -> GraphResult[List[Dict[str, Any]]]:
        pass

    @abstractmethod
    async def list_deleted(self, filter: Optional[str], top: int) -> GraphResult[List[Dict[str, Any]]]:
        pass

    @abstractmethod
    async def get_partial(self, object_id: str, select: str, expand_owners: bool = False) -> GraphResult[Dict[str, Any]]:
        """Fetches only the comma-separated properties in "select" for one application.
        If expand_owners is True, the result also includes "owners" """
        pass

    @abstractmethod
    async def get_owners(self, object_id: str) -> GraphResult[List[Dict[str, Any]]]:
        pass

    @abstractmethod
    async def find_service_principal_by_app_id(self, app_id: str) -> GraphResult[Dict[str, Any]]:
        """Fails with a not-found result if there is no service principal for the given app id in this tenant"""
        pass

    # Mutations
    # ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼

    @abstractmethod
    async def update_application(self, object_id: str, patch: Dict[str, Any]) -> GraphResult[None]:
        pass

    @abstractmethod
    async def add_password_credential(self, object_id: str, description: str, end_date_time: str) -> GraphResult[Dict[str, Any]]:
        """On success the value is the new passwordCredential, including its "secretText" """
        pass

    @abstractmethod
    async def delete_password_credential(self, object_id: str, key_id: str) -> GraphResult[None]:
        pass
