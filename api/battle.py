"""Battle state, range queries, action submission, and effect completion endpoints.

Handlers are async and never await, so requests reach the session one at a
time on the event loop.
"""

from fastapi import APIRouter, HTTPException, Request

from engine.combat import BattleSession, create_default_battle
from models.actions import ActionRequest, ActionResult, RangeCell
from models.characters import Combatant
from models.game_state import BattleSnapshot

router = APIRouter()

# Rejections that mean "not now" rather than "bad input"
_CONFLICT_KINDS = {"NotYourTurn", "IllegalAction"}


def _get_battle(request: Request) -> BattleSession:
    """Get the battle owned by the app."""
    return request.app.state.battle


@router.get("/state", response_model=BattleSnapshot)
async def get_battle_state(request: Request) -> BattleSnapshot:
    """Everything needed to draw the battlefield."""
    return _get_battle(request).snapshot()


@router.get("/combatants", response_model=list[Combatant])
async def get_combatants(request: Request) -> list[Combatant]:
    return _get_battle(request).get_combatants()


@router.get("/range/move/{combatant_id}", response_model=list[RangeCell])
async def get_movement_range(combatant_id: str, request: Request) -> list[RangeCell]:
    """Cells the combatant could walk to from where it stands."""
    battle = _get_battle(request)
    if combatant_id not in battle.combatants:
        raise HTTPException(status_code=404, detail=f"Combatant '{combatant_id}' not found")
    return battle.get_movement_range(combatant_id)


@router.get("/range/attack/{combatant_id}", response_model=list[RangeCell])
async def get_attack_range(combatant_id: str, request: Request) -> list[RangeCell]:
    """Cells the combatant could strike from where it stands."""
    battle = _get_battle(request)
    if combatant_id not in battle.combatants:
        raise HTTPException(status_code=404, detail=f"Combatant '{combatant_id}' not found")
    return battle.get_attack_range(combatant_id)


@router.post("/action", response_model=ActionResult)
async def submit_action(action: ActionRequest, request: Request) -> ActionResult:
    """Submit an input for the current actor.

    Rejected actions leave the battle untouched: 409 when it is not the
    caller's moment to act, 400 when the input itself was invalid.
    """
    battle = _get_battle(request)
    if action.character_id not in battle.combatants:
        raise HTTPException(status_code=404, detail=f"Combatant '{action.character_id}' not found")

    result = battle.process_action(action.character_id, action)
    if not result.success:
        status_code = 409 if result.error_kind in _CONFLICT_KINDS else 400
        raise HTTPException(status_code=status_code, detail=result.error)
    return result


@router.post("/effects/{ticket_id}/complete", response_model=BattleSnapshot)
async def complete_effect(ticket_id: str, request: Request) -> BattleSnapshot:
    """Report that a visual effect finished playing; the battle continues."""
    battle = _get_battle(request)
    if not battle.notify_animation_complete(ticket_id):
        raise HTTPException(status_code=404, detail=f"No pending effect '{ticket_id}'")
    return battle.snapshot()


@router.get("/log")
async def get_battle_log(request: Request) -> list[dict]:
    """Get the event log for the current battle."""
    return [event.model_dump() for event in _get_battle(request).event_log]


@router.post("/reset", response_model=BattleSnapshot)
async def reset_battle(request: Request) -> BattleSnapshot:
    """Throw the current battle away and start the opening skirmish again."""
    current = _get_battle(request)
    request.app.state.battle = create_default_battle(
        auto_resolve_effects=current.auto_resolve_effects,
    )
    return request.app.state.battle.snapshot()
