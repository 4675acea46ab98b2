"""
National Economy card definitions.

Two decks: the base game and the Glory expansion. A Glory game is
played with the Glory deck only; lookups cover both sets so a catalog
built by default_catalog() resolves any id either deck can produce.
"""

from __future__ import annotations

from ...engine_core.catalog import (
    BuildEffect,
    CardCatalog,
    CardDef,
    CardTag,
    CostRule,
    CostRuleKind,
    EffectTag,
    EndBonusKind,
    EndBonusRule,
    GameVersion,
)


FARM = frozenset({CardTag.FARM})
FACTORY = frozenset({CardTag.FACTORY})


def _vp_token_discount(threshold: int, delta: int) -> CostRule:
    return CostRule(kind=CostRuleKind.VP_TOKEN_THRESHOLD, threshold=threshold, delta=delta)


# =============================================================================
# Base game
# =============================================================================

BASE_CARD_DEFS: tuple[CardDef, ...] = (
    # Cost 0
    CardDef(
        id="farm", name="Farm", cost=0, vp=4, copies=8, tags=FARM,
        effect_text="Draw 2 consumables", effect=EffectTag.FARM,
    ),
    CardDef(
        id="slash_burn", name="Slash-and-Burn", cost=0, vp=0, copies=2, tags=FARM,
        unsellable=True, consume_on_use=True,
        effect_text="Draw 5 consumables, then discard this building at round end",
        effect=EffectTag.SLASH_BURN,
    ),
    # Cost 1
    CardDef(
        id="design_office", name="Design Office", cost=1, vp=8, copies=4,
        effect_text="Reveal 5 cards from the deck, keep 1",
        effect=EffectTag.DESIGN_OFFICE,
    ),
    CardDef(
        id="coffee_shop", name="Coffee Shop", cost=1, vp=8, copies=4,
        effect_text="Receive $5 from the household",
        effect=EffectTag.COFFEE_SHOP,
    ),
    # Cost 2
    CardDef(
        id="orchard", name="Orchard", cost=2, vp=10, copies=3, tags=FARM,
        effect_text="Draw consumables until your hand has 4 cards",
        effect=EffectTag.ORCHARD,
    ),
    CardDef(
        id="factory", name="Factory", cost=2, vp=12, copies=4, tags=FACTORY,
        effect_text="Discard 2 cards, draw 4 cards",
        effect=EffectTag.FACTORY,
    ),
    CardDef(
        id="construction_co", name="Construction Company", cost=2, vp=10, copies=3,
        effect_text="Build 1 building at cost -1",
        effect=EffectTag.CONSTRUCTION_CO,
    ),
    CardDef(
        id="pioneer", name="Pioneer", cost=2, vp=10, copies=2,
        effect_text="Build 1 farm building for free",
        effect=EffectTag.PIONEER,
    ),
    CardDef(
        id="warehouse", name="Warehouse", cost=2, vp=10, copies=2,
        effect_text="Hand limit +4",
        on_build=BuildEffect.WAREHOUSE,
    ),
    CardDef(
        id="company_housing", name="Company Housing", cost=2, vp=10, copies=2,
        effect_text="Worker limit +1",
        on_build=BuildEffect.COMPANY_HOUSING,
    ),
    # Cost 3
    CardDef(
        id="large_farm", name="Large Farm", cost=3, vp=14, copies=3, tags=FARM,
        effect_text="Draw 3 consumables", effect=EffectTag.LARGE_FARM,
    ),
    CardDef(
        id="restaurant", name="Restaurant", cost=3, vp=16, copies=2,
        effect_text="Discard 1 card, receive $15 from the household",
        effect=EffectTag.RESTAURANT,
    ),
    CardDef(
        id="general_contractor", name="General Contractor", cost=3, vp=14, copies=2,
        effect_text="Build 1 building, then draw 2 cards",
        effect=EffectTag.GENERAL_CONTRACTOR,
    ),
    CardDef(
        id="auto_factory", name="Automated Factory", cost=3, vp=16, copies=3, tags=FACTORY,
        effect_text="Discard 3 cards, draw 7 cards",
        effect=EffectTag.AUTO_FACTORY,
    ),
    CardDef(
        id="law_office", name="Law Office", cost=3, vp=12, copies=1, unsellable=True,
        effect_text="Up to 5 unpaid wages are not penalised at game end",
        end_bonus=EndBonusRule(kind=EndBonusKind.DEBT_EXEMPTION, param=5),
    ),
    # Cost 4
    CardDef(
        id="steel_mill", name="Steel Mill", cost=4, vp=18, copies=2, tags=FACTORY,
        effect_text="Draw 3 cards", effect=EffectTag.STEEL_MILL,
    ),
    CardDef(
        id="chemical_plant", name="Chemical Plant", cost=4, vp=18, copies=2, tags=FACTORY,
        effect_text="Draw 2 cards, or 4 cards if your hand is empty",
        effect=EffectTag.CHEMICAL_PLANT,
    ),
    CardDef(
        id="dual_construction", name="Dual Construction", cost=4, vp=18, copies=2,
        effect_text="Build 2 buildings of the same cost, paying once",
        effect=EffectTag.DUAL_CONSTRUCTION,
    ),
    CardDef(
        id="agri_coop", name="Agricultural Cooperative", cost=4, vp=18, copies=1,
        unsellable=True,
        effect_text="End: +3 VP per consumable in hand",
        end_bonus=EndBonusRule(kind=EndBonusKind.PER_CONSUMABLE, payout=3),
    ),
    CardDef(
        id="labor_union", name="Labor Union", cost=4, vp=18, copies=1, unsellable=True,
        effect_text="End: +6 VP per worker",
        end_bonus=EndBonusRule(kind=EndBonusKind.PER_WORKER, payout=6),
    ),
    # Cost 5
    CardDef(
        id="mansion", name="Mansion", cost=5, vp=28, copies=2, unsellable=True,
        effect_text="No effect",
    ),
    CardDef(
        id="real_estate", name="Real Estate", cost=5, vp=20, copies=1, unsellable=True,
        effect_text="End: +3 VP per building you own",
        end_bonus=EndBonusRule(kind=EndBonusKind.PER_BUILDING, payout=3),
    ),
    CardDef(
        id="headquarters", name="Headquarters", cost=5, vp=20, copies=1, unsellable=True,
        effect_text="End: +6 VP per unsellable building you own",
        end_bonus=EndBonusRule(kind=EndBonusKind.PER_UNSELLABLE, payout=6),
    ),
    CardDef(
        id="railroad", name="Railroad", cost=5, vp=20, copies=1, unsellable=True,
        effect_text="End: +8 VP per factory building you own",
        end_bonus=EndBonusRule(kind=EndBonusKind.PER_FACTORY, payout=8),
    ),
)


# =============================================================================
# Glory expansion
# =============================================================================

GLORY_CARD_DEFS: tuple[CardDef, ...] = (
    # Cost 0
    CardDef(
        id="gl_relic", name="Relic", cost=0, vp=0, copies=3, unsellable=True,
        effect_text="Gain 2 VP tokens when built",
        on_build=BuildEffect.RELIC,
    ),
    # Cost 1
    CardDef(
        id="gl_village", name="Rural Village", cost=1, vp=6, copies=6, tags=FARM,
        effect_text="Draw 2 consumables, or discard 2 consumables and draw 3 cards",
        effect=EffectTag.VILLAGE,
    ),
    CardDef(
        id="gl_colonist", name="Colonists", cost=1, vp=6, copies=5,
        effect_text="Build 1 building, then draw 1 consumable",
        effect=EffectTag.COLONIST,
    ),
    CardDef(
        id="gl_studio", name="Workshop", cost=1, vp=8, copies=5, tags=FACTORY,
        effect_text="Draw 1 card and gain 1 VP token",
        effect=EffectTag.STUDIO,
    ),
    # Cost 2
    CardDef(
        id="gl_steam_factory", name="Steam Factory", cost=2, vp=10, copies=8, tags=FACTORY,
        effect_text="Discard 2 cards, draw 4 cards",
        effect=EffectTag.STEAM_FACTORY,
        cost_rule=_vp_token_discount(2, 1),
    ),
    CardDef(
        id="gl_poultry_farm", name="Poultry Farm", cost=2, vp=12, copies=4, tags=FARM,
        effect_text="Draw 2 consumables, or 3 if your hand size is odd",
        effect=EffectTag.POULTRY_FARM,
    ),
    CardDef(
        id="gl_skyscraper", name="Skyscraper Construction", cost=2, vp=10, copies=3,
        effect_text="Build 1 building; if your hand is then empty draw 2 cards",
        effect=EffectTag.SKYSCRAPER,
    ),
    CardDef(
        id="gl_game_cafe", name="Game Cafe", cost=2, vp=10, copies=3,
        effect_text="Receive $5 from the household, $10 if this is the last action of the round",
        effect=EffectTag.GAME_CAFE,
    ),
    # Cost 3
    CardDef(
        id="gl_cotton_farm", name="Cotton Plantation", cost=3, vp=14, copies=3, tags=FARM,
        effect_text="Draw 5 consumables (requires 2 workers)",
        worker_req=2, effect=EffectTag.COTTON_FARM,
    ),
    CardDef(
        id="gl_museum", name="Art Museum", cost=3, vp=14, copies=2,
        effect_text="Receive $7 from the household, $14 with exactly 5 cards in hand",
        effect=EffectTag.MUSEUM,
    ),
    CardDef(
        id="gl_monument", name="Monument", cost=3, vp=24, copies=2, unsellable=True,
        effect_text="No effect",
    ),
    CardDef(
        id="gl_consumers_coop", name="Consumers' Union", cost=3, vp=18, copies=1,
        unsellable=True,
        effect_text="End: +18 VP if your farm buildings total 20 VP or more",
        end_bonus=EndBonusRule(kind=EndBonusKind.FARM_VP_AT_LEAST, payout=18, param=20),
    ),
    # Cost 4
    CardDef(
        id="gl_automaton", name="Automaton", cost=4, vp=2, copies=5, unsellable=True,
        effect_text="Gain 1 robot worker",
        effect=EffectTag.AUTOMATON,
    ),
    CardDef(
        id="gl_coal_mine", name="Coal Mine", cost=4, vp=20, copies=2,
        effect_text="Draw 5 cards (requires 2 workers)",
        worker_req=2, effect=EffectTag.COAL_MINE,
    ),
    CardDef(
        id="gl_modernism_construction", name="Modernism Construction", cost=4, vp=18, copies=2,
        effect_text="Build 1 building; consumables count as 2 cards for this payment",
        effect=EffectTag.MODERNISM,
    ),
    CardDef(
        id="gl_theater", name="Theater", cost=4, vp=20, copies=2,
        effect_text="Discard 2 cards, receive $20 from the household",
        effect=EffectTag.THEATER,
    ),
    CardDef(
        id="gl_guild_hall", name="Guild Hall", cost=4, vp=20, copies=1, unsellable=True,
        effect_text="End: +20 VP if you own both a farm and a factory building",
        end_bonus=EndBonusRule(kind=EndBonusKind.FARM_AND_FACTORY, payout=20),
    ),
    CardDef(
        id="gl_ivory_tower", name="Ivory Tower", cost=4, vp=22, copies=1, unsellable=True,
        effect_text="End: +22 VP with 7 or more VP tokens",
        end_bonus=EndBonusRule(kind=EndBonusKind.VP_TOKENS_AT_LEAST, payout=22, param=7),
    ),
    # Cost 5
    CardDef(
        id="gl_refinery", name="Smelter", cost=5, vp=16, copies=3, tags=FACTORY,
        effect_text="Draw 3 cards",
        effect=EffectTag.REFINERY,
        cost_rule=_vp_token_discount(3, 2),
    ),
    CardDef(
        id="gl_teleporter", name="Transfer Device", cost=5, vp=22, copies=2,
        effect_text="Build 1 building for free (requires 2 workers)",
        worker_req=2, effect=EffectTag.TELEPORTER,
    ),
    CardDef(
        id="gl_revolution_square", name="Revolution Square", cost=5, vp=18, copies=1,
        unsellable=True,
        effect_text="End: +18 VP with 5 human workers",
        end_bonus=EndBonusRule(kind=EndBonusKind.HUMAN_WORKERS_AT_LEAST, payout=18, param=5),
    ),
    CardDef(
        id="gl_harvest_festival", name="Harvest Festival", cost=5, vp=26, copies=1,
        unsellable=True,
        effect_text="End: +26 VP with 4 or more consumables in hand",
        end_bonus=EndBonusRule(kind=EndBonusKind.CONSUMABLES_AT_LEAST, payout=26, param=4),
    ),
    CardDef(
        id="gl_tech_exhibition", name="Technology Exhibition", cost=5, vp=24, copies=1,
        unsellable=True,
        effect_text="End: +24 VP if your factory buildings total 30 VP or more",
        end_bonus=EndBonusRule(kind=EndBonusKind.FACTORY_VP_AT_LEAST, payout=24, param=30),
    ),
    # Cost 6
    CardDef(
        id="gl_greenhouse", name="Greenhouse", cost=6, vp=18, copies=2, tags=FARM,
        effect_text="Draw 4 consumables",
        effect=EffectTag.GREENHOUSE,
        cost_rule=_vp_token_discount(4, 2),
    ),
    CardDef(
        id="gl_temple_of_purification", name="Temple of Purification", cost=6, vp=30,
        copies=1, unsellable=True,
        effect_text="End: +30 VP if this is your only unsellable building",
        end_bonus=EndBonusRule(kind=EndBonusKind.SOLE_UNSELLABLE, payout=30),
    ),
    # Cost 7
    CardDef(
        id="gl_locomotive_factory", name="Locomotive Factory", cost=7, vp=24, copies=2,
        tags=FACTORY,
        effect_text="Discard 3 cards, draw 7 cards",
        effect=EffectTag.LOCOMOTIVE_FACTORY,
        cost_rule=_vp_token_discount(5, 3),
    ),
)


def default_catalog() -> CardCatalog:
    """Build a fresh catalog holding both the base and the Glory decks."""
    return CardCatalog({
        GameVersion.BASE: BASE_CARD_DEFS,
        GameVersion.GLORY: GLORY_CARD_DEFS,
    })
