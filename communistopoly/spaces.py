"""
Board space definitions and types.
"""

from dataclasses import dataclass
from enum import Enum


class SpaceType(Enum):
    """Types of spaces on the board."""

    CORNER = "corner"
    PROPERTY = "property"
    RAILWAY = "railway"
    UTILITY = "utility"
    TAX = "tax"
    PARTY_DIRECTIVE = "party_directive"
    COMMUNIST_TEST = "communist_test"


class PropertyGroup(Enum):
    """Colour groups of ordinary properties."""

    SIBERIAN = "siberian"
    COLLECTIVE = "collective"
    INDUSTRIAL = "industrial"
    MINISTRY = "ministry"
    MILITARY = "military"
    MEDIA = "media"
    ELITE = "elite"
    KREMLIN = "kremlin"


@dataclass
class Space:
    """Base class for a board space."""

    name: str
    position: int
    space_type: SpaceType

    @property
    def is_ownable(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass
class CornerSpace(Space):
    """STOY, the Gulag, the Breadline and Enemy of the State."""

    def __init__(self, name: str, position: int):
        super().__init__(name, position, SpaceType.CORNER)


@dataclass
class PropertySpace(Space):
    """A property that can be held, collectivized and mortgaged."""

    group: PropertyGroup
    base_quota: int
    base_cost: int

    def __init__(self, name: str, position: int, group: PropertyGroup, base_quota: int, base_cost: int):
        super().__init__(name, position, SpaceType.PROPERTY)
        self.group = group
        self.base_quota = base_quota
        self.base_cost = base_cost

    @property
    def is_ownable(self) -> bool:
        return True

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2


@dataclass
class RailwaySpace(Space):
    """A railway station; fee scales with stations held."""

    base_cost: int = 200

    def __init__(self, name: str, position: int, base_cost: int = 200):
        super().__init__(name, position, SpaceType.RAILWAY)
        self.base_cost = base_cost

    @property
    def is_ownable(self) -> bool:
        return True

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2


@dataclass
class UtilitySpace(Space):
    """A utility; fee scales with the dice roll."""

    base_cost: int = 150

    def __init__(self, name: str, position: int, base_cost: int = 150):
        super().__init__(name, position, SpaceType.UTILITY)
        self.base_cost = base_cost

    @property
    def is_ownable(self) -> bool:
        return True

    @property
    def mortgage_value(self) -> int:
        return self.base_cost // 2


@dataclass
class TaxSpace(Space):
    """A tax space. Its rule is announced but not enforced by the engine."""

    rule: str = ""

    def __init__(self, name: str, position: int, rule: str = ""):
        super().__init__(name, position, SpaceType.TAX)
        self.rule = rule


@dataclass
class CardSpace(Space):
    """Party Directive or Communist Test card space."""

    def __init__(self, name: str, position: int, space_type: SpaceType):
        super().__init__(name, position, space_type)
