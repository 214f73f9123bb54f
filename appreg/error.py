from enum import IntEnum
from typing import Optional


class ErrorCode:
    """Machine-readable codes which a DirectoryClient may attach to a GraphError"""
    NOT_FOUND = 'Request_ResourceNotFound'
    CREDENTIAL_UNAVAILABLE = 'CredentialUnavailableError'
    AUTHENTICATION_REQUIRED = 'AuthenticationRequired'
    SIGN_IN_AUDIENCE_CONFLICT = 'SignInAudienceConflict'


class ErrorKind(IntEnum):
    GENERIC = 0
    NOT_FOUND = 1
    CREDENTIAL_UNAVAILABLE = 2
    AUTHENTICATION_REQUIRED = 3
    DOMAIN_CONFLICT = 4


#    CLASS GraphError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class GraphError(RuntimeError):
    """A failure reported by the remote directory. The message is human-readable; the code (if any) is not."""

    def __init__(self, message: str = None, code: Optional[str] = None, status_code: Optional[int] = None):
        if message is None:
            message = 'An unknown error occurred while calling the directory API'
        super(GraphError, self).__init__(message)
        self.message: str = message
        self.code: Optional[str] = code
        self.status_code: Optional[int] = status_code

    @classmethod
    def from_exception(cls, err: BaseException) -> 'GraphError':
        if isinstance(err, GraphError):
            return err
        return GraphError(message=str(err), code=getattr(err, 'code', None), status_code=getattr(err, 'status_code', None))

    def __repr__(self):
        return f'GraphError(code={self.code} status={self.status_code} msg="{self.message}")'


#    CLASS ApplicationNotFoundError
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class ApplicationNotFoundError(RuntimeError):
    def __init__(self, object_id: str, msg: str = None):
        if msg is None:
            # Set some default useful error message
            msg = f'Application not found in tree: {object_id}'
        super(ApplicationNotFoundError, self).__init__(msg)
        self.object_id = object_id


# TODO: make into decorator
class InvalidOperationError(RuntimeError):
    def __init__(self, operation_name: str = None):
        if not operation_name:
            msg = f'Invalid operation!'
        else:
            msg = f'Invalid operation: "{operation_name}"'
        super(InvalidOperationError, self).__init__(msg)
