from typing import Optional


class Icon:
    """Presentation marker for a node: a theme icon id plus an optional theme colour id. Immutable."""

    __slots__ = ('_icon_id', '_colour')

    def __init__(self, icon_id: str, colour: Optional[str] = None):
        self._icon_id: str = icon_id
        self._colour: Optional[str] = colour

    @property
    def icon_id(self) -> str:
        return self._icon_id

    @property
    def colour(self) -> Optional[str]:
        return self._colour

    def __eq__(self, other):
        if not isinstance(other, Icon):
            return False
        return self._icon_id == other._icon_id and self._colour == other._colour

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self._icon_id, self._colour))

    def __repr__(self):
        if self._colour:
            return f'Icon({self._icon_id}:{self._colour})'
        return f'Icon({self._icon_id})'
