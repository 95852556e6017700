from typing import Dict, List, Optional

from communistopoly.config import BOARD_SIZE
from communistopoly.spaces import (
    CardSpace,
    CornerSpace,
    PropertyGroup,
    PropertySpace,
    RailwaySpace,
    Space,
    SpaceType,
    TaxSpace,
    UtilitySpace,
)


class Board:
    """The Communistopoly board with 40 spaces."""

    def __init__(self):
        self.spaces: List[Space] = self._create_standard_board()
        self.groups: Dict[PropertyGroup, List[int]] = self._build_groups()

    def _create_standard_board(self) -> List[Space]:
        """Create the standard 40-space board."""
        directive = SpaceType.PARTY_DIRECTIVE
        test = SpaceType.COMMUNIST_TEST
        return [
            # Bottom row (0-10)
            CornerSpace("STOY", 0),
            PropertySpace("Camp Vorkuta", 1, PropertyGroup.SIBERIAN, 2, 60),
            CardSpace("Communist Test", 2, test),
            PropertySpace("Camp Kolyma", 3, PropertyGroup.SIBERIAN, 4, 60),
            TaxSpace("Revolutionary Contribution", 4, "Pay 15% of total wealth or 200 rubles"),
            RailwaySpace("Moscow Station", 5),
            PropertySpace("Kolkhoz Sunrise", 6, PropertyGroup.COLLECTIVE, 6, 100),
            CardSpace("Party Directive", 7, directive),
            PropertySpace("Kolkhoz Progress", 8, PropertyGroup.COLLECTIVE, 6, 100),
            PropertySpace("Kolkhoz Victory", 9, PropertyGroup.COLLECTIVE, 8, 120),
            CornerSpace("The Gulag", 10),
            # Left side (11-20)
            PropertySpace("Tractor Factory #47", 11, PropertyGroup.INDUSTRIAL, 10, 140),
            UtilitySpace("State Electricity Board", 12),
            PropertySpace("Steel Mill Molotov", 13, PropertyGroup.INDUSTRIAL, 10, 140),
            PropertySpace("Munitions Plant Kalashnikov", 14, PropertyGroup.INDUSTRIAL, 12, 160),
            RailwaySpace("Novosibirsk Station", 15),
            PropertySpace("Ministry of Truth", 16, PropertyGroup.MINISTRY, 14, 180),
            CardSpace("Communist Test", 17, test),
            PropertySpace("Ministry of Plenty", 18, PropertyGroup.MINISTRY, 14, 180),
            PropertySpace("Ministry of Love", 19, PropertyGroup.MINISTRY, 16, 200),
            CornerSpace("Breadline", 20),
            # Top row (21-30)
            PropertySpace("Red Army Barracks", 21, PropertyGroup.MILITARY, 18, 220),
            CardSpace("Party Directive", 22, directive),
            PropertySpace("KGB Headquarters", 23, PropertyGroup.MILITARY, 18, 220),
            PropertySpace("Nuclear Bunker Arzamas-16", 24, PropertyGroup.MILITARY, 20, 240),
            RailwaySpace("Irkutsk Station", 25),
            PropertySpace("Pravda Printing Press", 26, PropertyGroup.MEDIA, 22, 260),
            PropertySpace("Radio Moscow", 27, PropertyGroup.MEDIA, 22, 260),
            UtilitySpace("People's Water Collective", 28),
            PropertySpace("State Television Center", 29, PropertyGroup.MEDIA, 22, 280),
            CornerSpace("Enemy of the State", 30),
            # Right side (31-39)
            PropertySpace("Politburo Apartments", 31, PropertyGroup.ELITE, 26, 300),
            PropertySpace("Dachas of the Nomenklatura", 32, PropertyGroup.ELITE, 26, 300),
            CardSpace("Communist Test", 33, test),
            PropertySpace("The Lubyanka", 34, PropertyGroup.ELITE, 28, 320),
            RailwaySpace("Vladivostok Station", 35),
            CardSpace("Party Directive", 36, directive),
            PropertySpace("Lenin's Mausoleum", 37, PropertyGroup.KREMLIN, 35, 350),
            TaxSpace("Bourgeois Decadence Tax", 38, "Pay 100 rubles, 200 and a rank if wealthiest"),
            PropertySpace("Stalin's Private Office", 39, PropertyGroup.KREMLIN, 50, 400),
        ]

    def _build_groups(self) -> Dict[PropertyGroup, List[int]]:
        """Build a mapping of property groups to positions."""
        groups: Dict[PropertyGroup, List[int]] = {}
        for space in self.spaces:
            if isinstance(space, PropertySpace):
                groups.setdefault(space.group, []).append(space.position)
        return groups

    def get_space(self, position: int) -> Space:
        """Get the space at the given position."""
        return self.spaces[position % BOARD_SIZE]

    def get_property_space(self, position: int) -> Optional[PropertySpace]:
        """Get a property space, or None if not a property."""
        space = self.get_space(position)
        return space if isinstance(space, PropertySpace) else None

    def is_valid_position(self, position: int) -> bool:
        return 0 <= position < BOARD_SIZE

    def ownable_positions(self) -> List[int]:
        """Positions of every property, railway and utility."""
        return [s.position for s in self.spaces if s.is_ownable]

    def get_group(self, group: PropertyGroup) -> List[int]:
        """Get all property positions in a group."""
        return self.groups.get(group, [])

    def get_all_railways(self) -> List[int]:
        return [s.position for s in self.spaces if isinstance(s, RailwaySpace)]

    def get_all_utilities(self) -> List[int]:
        return [s.position for s in self.spaces if isinstance(s, UtilitySpace)]

    def find_nearest_railway(self, position: int) -> int:
        """Find the nearest railway moving forward from the given position."""
        railways = self.get_all_railways()
        for offset in range(1, BOARD_SIZE):
            pos = (position + offset) % BOARD_SIZE
            if pos in railways:
                return pos
        return railways[0]

    def find_closest_railway(self, position: int) -> int:
        """Railway with the smallest distance along the track numbering; ties go to the lower station."""
        return min(self.get_all_railways(), key=lambda pos: abs(position - pos))
