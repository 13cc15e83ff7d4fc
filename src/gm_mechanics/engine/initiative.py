"""Turn and initiative management for a combat encounter.

The tracker operates directly on a ``CombatEncounter`` record: the
encounter is the persistent state, the tracker is the set of rules for
changing it. The initiative list is kept sorted descending by total after
every insertion; ties keep insertion order.
"""

from __future__ import annotations

from gm_mechanics.core.constants import PLAYER_INITIATIVE_ID
from gm_mechanics.core.logging import get_logger
from gm_mechanics.engine.dice import DiceRoller, RollType
from gm_mechanics.models.combat import CombatantKind, CombatEncounter, InitiativeEntry


logger = get_logger(__name__)


class InitiativeTracker:
    """Track and manage initiative order for one encounter.

    Example:
        >>> tracker = InitiativeTracker(CombatEncounter(active=True, round=1))
        >>> entry = tracker.roll_entry("init_player", "Aria", CombatantKind.PLAYER, 14)
        >>> tracker.add(entry)
        >>> tracker.current().name
        'Aria'
    """

    def __init__(self, encounter: CombatEncounter, roller: DiceRoller | None = None) -> None:
        """Initialize the tracker.

        Args:
            encounter: The encounter record to operate on.
            roller: Dice roller for initiative rolls.
        """
        self.encounter = encounter
        self._roller = roller or DiceRoller()

    # -------------------------------------------------------------------------
    # Entries
    # -------------------------------------------------------------------------

    def roll_entry(
        self,
        entry_id: str,
        name: str,
        kind: CombatantKind,
        dexterity_score: int,
        *,
        enemy_id: str | None = None,
        roll_type: RollType = RollType.NORMAL,
    ) -> InitiativeEntry:
        """Roll initiative and build an entry. The entry is not added.

        Args:
            entry_id: Identifier for the new entry.
            name: Display name.
            kind: Player or npc.
            dexterity_score: DEX score (not modifier).
            enemy_id: Linked enemy for npc entries.
            roll_type: Normal, advantage or disadvantage.
        """
        roll = self._roller.roll_initiative(dexterity_score, roll_type=roll_type)
        entry = InitiativeEntry(
            id=entry_id,
            name=name,
            type=kind,
            roll=roll,
            total=roll.total,
            enemy_id=enemy_id,
        )

        logger.info(
            "Initiative rolled",
            combatant=name,
            notation=roll.notation,
            total=roll.total,
        )
        return entry

    def add(self, entry: InitiativeEntry) -> None:
        """Insert an entry and re-sort.

        While combat is running the turn stays with whoever is acting.
        """
        acting = self.current() if self.encounter.active else None

        self.encounter.initiative.append(entry)
        self.sort()

        if acting is not None:
            self.encounter.current_turn_index = self._index_of(acting)

    def sort(self) -> None:
        """Sort descending by total. ``list.sort`` is stable, so ties keep order."""
        self.encounter.initiative.sort(key=lambda e: e.total, reverse=True)

    def remove_player_entries(self) -> None:
        self.encounter.initiative = [
            e
            for e in self.encounter.initiative
            if e.type != CombatantKind.PLAYER and e.id != PLAYER_INITIATIVE_ID
        ]
        if self.encounter.current_turn_index >= len(self.encounter.initiative):
            self.encounter.current_turn_index = 0

    def _index_of(self, entry: InitiativeEntry) -> int:
        for index, candidate in enumerate(self.encounter.initiative):
            if candidate is entry:
                return index
        return 0

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def current(self) -> InitiativeEntry | None:
        """The entry whose turn it is, or None if the order is empty."""
        order = self.encounter.initiative
        if not order:
            return None
        index = self.encounter.current_turn_index
        if index >= len(order):
            index = 0
        return order[index]

    def advance(self) -> InitiativeEntry | None:
        """Move to the next combatant who is not a dead npc.

        Wrapping past the end of the order starts a new round. After one
        full lap without finding anyone alive the tracker stops where it
        landed, so an all-dead order cannot loop forever.

        Returns:
            The new current entry, or None if combat is inactive or empty.
        """
        encounter = self.encounter
        if not encounter.active or not encounter.initiative:
            return None

        length = len(encounter.initiative)
        index = encounter.current_turn_index
        for _ in range(length):
            index = (index + 1) % length
            if index == 0:
                encounter.round += 1
            if not encounter.is_dead_npc(encounter.initiative[index]):
                break

        encounter.current_turn_index = index
        entry = encounter.initiative[index]

        logger.debug(
            "Turn advanced",
            combatant=entry.name,
            round=encounter.round,
            index=index,
        )
        return entry

    def turn_description(self) -> str:
        """Suffix naming whose turn it is (``" • Your turn"``)."""
        entry = self.current()
        if entry is None:
            return ""
        if entry.is_player:
            return " • Your turn"
        return f" • {entry.name}'s turn"


__all__ = [
    "InitiativeTracker",
]
