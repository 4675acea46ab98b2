"""
Public workplace tables.

Initial workplaces exist from round 1; one more opens at the start of
each later round. Sold buildings join the board as singleton
workplaces that resolve the building's own effect.
"""

from __future__ import annotations
from dataclasses import dataclass

from .catalog import CardDef, EffectTag, GameVersion
from .state import Card, Workplace


@dataclass(frozen=True)
class RoundWorkplace:
    id: str
    name: str
    effect: EffectTag
    effect_text: str
    sell_count: int = 0
    sell_amount: int = 0


ROUND_WORKPLACES: dict[int, RoundWorkplace] = {
    2: RoundWorkplace("stall", "Stall", EffectTag.SELL, "Sell 1 card for $6", 1, 6),
    3: RoundWorkplace("market", "Market", EffectTag.SELL, "Sell 2 cards for $12", 2, 12),
    4: RoundWorkplace("high_school", "High School", EffectTag.EXPAND4, "Expand to 4 workers"),
    5: RoundWorkplace("supermarket", "Supermarket", EffectTag.SELL, "Sell 3 cards for $18", 3, 18),
    6: RoundWorkplace("university", "University", EffectTag.EXPAND5, "Expand to 5 workers"),
    7: RoundWorkplace("dept_store", "Department Store", EffectTag.SELL, "Sell 4 cards for $24", 4, 24),
    8: RoundWorkplace(
        "vocational", "Vocational School", EffectTag.HIRE_IMMEDIATE,
        "Hire 1 worker who can work this round",
    ),
    9: RoundWorkplace("expo", "Expo", EffectTag.SELL, "Sell 5 cards for $30", 5, 30),
}


def carpenter_count(num_players: int) -> int:
    if num_players <= 2:
        return 1
    if num_players == 3:
        return 2
    return 3


def initial_workplaces(num_players: int, version: GameVersion) -> list[Workplace]:
    workplaces = [
        Workplace(
            id="quarry", name="Quarry", effect=EffectTag.START_PLAYER_DRAW,
            effect_text="Become start player and draw 1 card",
        ),
        Workplace(
            id="mine", name="Mine", effect=EffectTag.DRAW1,
            effect_text="Draw 1 card", multiple_allowed=True,
        ),
        Workplace(
            id="school", name="School", effect=EffectTag.HIRE_WORKER,
            effect_text="Hire 1 worker (works from next round)",
        ),
        Workplace(
            id="carpenter", name="Carpenter", effect=EffectTag.BUILD,
            effect_text="Build 1 building",
        ),
    ]
    for n in range(2, carpenter_count(num_players) + 1):
        workplaces.append(Workplace(
            id=f"carpenter_{n}", name="Carpenter", effect=EffectTag.BUILD,
            effect_text="Build 1 building",
        ))
    if version == GameVersion.GLORY:
        workplaces.append(Workplace(
            id="ruins", name="Ruins", effect=EffectTag.RUINS,
            effect_text="Draw 1 consumable and gain 1 VP token",
            multiple_allowed=True,
        ))
    return workplaces


def round_workplace(round_number: int, num_players: int) -> Workplace | None:
    entry = ROUND_WORKPLACES.get(round_number)
    if entry is None:
        return None
    return Workplace(
        id=entry.id,
        name=entry.name,
        effect_text=entry.effect_text,
        effect=entry.effect,
        multiple_allowed=entry.effect == EffectTag.SELL and num_players >= 3,
        sell_count=entry.sell_count,
        sell_amount=entry.sell_amount,
        added_at_round=round_number,
    )


def sold_building_workplace(card: Card, card_def: CardDef, round_number: int) -> Workplace:
    return Workplace(
        id=f"sold_{card.uid}",
        name=card_def.name,
        effect_text=card_def.effect_text,
        effect=card_def.effect,
        added_at_round=round_number,
        from_building=True,
        from_building_def_id=card_def.id,
    )
