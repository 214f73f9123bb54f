from typing import Generic, Optional, TypeVar

from appreg.error import ErrorCode, GraphError

T = TypeVar('T')


class GraphResult(Generic[T]):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS GraphResult

    Return value of every DirectoryClient call: either success (carrying a value, which may be None for
    calls which return nothing) or failure (carrying a GraphError). Use ok() and fail() to construct.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, success: bool, value: Optional[T] = None, error: Optional[GraphError] = None):
        assert success or error is not None, 'A failed GraphResult must carry an error'
        self.success: bool = success
        self.value: Optional[T] = value
        self.error: Optional[GraphError] = error

    @classmethod
    def ok(cls, value: Optional[T] = None) -> 'GraphResult[T]':
        return GraphResult(success=True, value=value)

    @classmethod
    def fail(cls, error: GraphError) -> 'GraphResult[T]':
        return GraphResult(success=False, error=error)

    def is_not_found(self) -> bool:
        return not self.success and (self.error.code == ErrorCode.NOT_FOUND or self.error.status_code == 404)

    def __repr__(self):
        if self.success:
            return f'GraphResult(success=True value={type(self.value).__name__})'
        return f'GraphResult(success=False error={self.error!r})'
