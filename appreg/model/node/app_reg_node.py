import logging
from enum import IntEnum
from typing import Iterable, List, Optional

from treelib import Node

from appreg.error import InvalidOperationError
from appreg.model.category import Category
from appreg.model.icon import Icon

logger = logging.getLogger(__name__)


class Expansion(IntEnum):
    LAZY = 1
    """Subtree not fetched yet. The host must call back into LazyExpansionResolver to get the children"""
    RESOLVED = 2
    """Children are known (possibly an empty list)"""


# CLASS AppRegNode
# ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼

class AppRegNode(Node):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS AppRegNode

    One row in the application registration tree. The treelib identifier is generated per instance, so a host can key
    re-renders on it; the tag is the display label.

    The foreign references (object_id, app_id, resource_app_id, resource_scope_id, user_id, key_id) point into the
    remote directory and are never ownership pointers.

    Children are either LAZY (unresolved; no list is held) or RESOLVED (a list, possibly empty, owned by this node).
    Only categories which are lazy-capable may be constructed LAZY.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """

    def __init__(self, label: str, category: Category, children: Optional[Iterable['AppRegNode']] = None,
                 expansion: Expansion = Expansion.RESOLVED, icon: Optional[Icon] = None, value: Optional[str] = None,
                 object_id: Optional[str] = None, app_id: Optional[str] = None, resource_app_id: Optional[str] = None,
                 resource_scope_id: Optional[str] = None, user_id: Optional[str] = None, key_id: Optional[str] = None,
                 state: Optional[bool] = None, tooltip: Optional[str] = None, command: Optional[str] = None, order: int = 0):
        Node.__init__(self, tag=label)

        if expansion == Expansion.LAZY:
            if not category.is_lazy_capable():
                raise InvalidOperationError(f'Lazy children for category {category.value}')
            if children is not None:
                raise InvalidOperationError(f'Lazy node with a child list ({category.value})')
            self._children: Optional[List[AppRegNode]] = None
        else:
            self._children = list(children) if children is not None else []
        self._expansion: Expansion = expansion

        self.category: Category = category
        self.value: Optional[str] = value

        self.object_id: Optional[str] = object_id
        self.app_id: Optional[str] = app_id
        self.resource_app_id: Optional[str] = resource_app_id
        self.resource_scope_id: Optional[str] = resource_scope_id
        self.user_id: Optional[str] = user_id
        self.key_id: Optional[str] = key_id

        self.state: Optional[bool] = state
        self.tooltip: Optional[str] = tooltip
        self.command: Optional[str] = command
        self.order: int = order

        self.icon: Optional[Icon] = icon
        self.base_icon: Optional[Icon] = icon

    @classmethod
    def lazy(cls, label: str, category: Category, **kwargs) -> 'AppRegNode':
        return AppRegNode(label, category, expansion=Expansion.LAZY, **kwargs)

    @property
    def label(self) -> str:
        return self.tag

    @label.setter
    def label(self, label: str):
        self.tag = label

    @property
    def expansion(self) -> Expansion:
        return self._expansion

    def is_lazy(self) -> bool:
        return self._expansion == Expansion.LAZY

    @property
    def children(self) -> Optional[List['AppRegNode']]:
        """None if LAZY; otherwise the resolved list"""
        return self._children

    def has_children(self) -> bool:
        """True if the host should draw this node as expandable"""
        return self.is_lazy() or len(self._children) > 0

    def set_busy(self, busy_icon: Icon):
        self.icon = busy_icon

    def reset_icon(self):
        self.icon = self.base_icon

    def iter_descendants(self) -> Iterable['AppRegNode']:
        """Depth-first walk of the resolved part of the subtree below this node. Lazy subtrees are not entered."""
        if not self._children:
            return
        for child in self._children:
            yield child
            yield from child.iter_descendants()

    def __repr__(self):
        return f'AppRegNode({self.category.value} "{self.tag}" obj={self.object_id} {self._expansion.name} ' \
               f'children={"?" if self._children is None else len(self._children)} order={self.order})'
