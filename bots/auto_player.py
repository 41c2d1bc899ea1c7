"""Reference client that plays the player side over the REST API.

Stands in for the presentation layer: it completes every pending effect
ticket as if the animation had played, and plays each player turn by
picking simple tactical actions:
  - If an enemy is inside attack range, attack it.
  - Otherwise move as close to the nearest enemy as the movement range
    allows, then attack if that brought one into range, else wait.

Usage:
    1. Start the server:  uvicorn main:app --reload
    2. Run this bot:      python bots/auto_player.py
"""

import os
import sys

import httpx

BASE_URL = os.environ.get("TACTICS_URL", "http://127.0.0.1:8000")


def main() -> None:
    """Play the opening skirmish to the end and print the event log."""
    client = httpx.Client(base_url=BASE_URL, timeout=10.0)

    print("Resetting battle...")
    resp = client.post("/battle/reset")
    resp.raise_for_status()

    print("\n--- BATTLE ---\n")
    winner = play(client)
    if winner is None:
        print("\nBattle did not finish.")
    else:
        print(f"\n*** BATTLE OVER! Winner: {winner} ***")

    print("\n--- EVENT LOG ---\n")
    resp = client.get("/battle/log")
    resp.raise_for_status()
    for event in resp.json():
        print(f"  [Turn {event['turn']}] {event['description']}")

    client.close()


def play(client: httpx.Client, max_steps: int = 500) -> str | None:
    """Drive the battle until it ends. Returns the winner, or None if max_steps ran out."""
    for _ in range(max_steps):
        state = _get_state(client)
        if state["status"] == "completed":
            return state["winner"]

        if state["pending_effects"]:
            _complete_effects(client, state)
            continue

        actor_id = state["current_actor_id"]
        if actor_id is None:
            return state["winner"]
        play_turn(client, actor_id)
    return None


def play_turn(client: httpx.Client, actor_id: str) -> None:
    """Play one player activation for actor_id."""
    state = _get_state(client)
    me = _by_id(state, actor_id)
    enemies = [c for c in state["combatants"] if c["is_enemy"] and c["is_alive"]]
    print(f"Turn {state['turn_number']} | {me['name']} (HP: {me['stats']['hp']}/{me['stats']['maxhp']})")

    if not enemies:
        _submit_action(client, actor_id, "wait")
        return

    if _try_attack(client, actor_id, enemies):
        return

    resp = client.get(f"/battle/range/move/{actor_id}")
    resp.raise_for_status()
    destination = pick_destination(resp.json(), tuple(me["position"]), [tuple(e["position"]) for e in enemies])
    if destination is not None:
        _submit_action(client, actor_id, "begin_move")
        if _submit_action(client, actor_id, "move", target_position=list(destination)):
            _complete_effects(client, _get_state(client))
            if _try_attack(client, actor_id, enemies):
                return

    _submit_action(client, actor_id, "wait")


def pick_destination(
    move_range: list[dict],
    my_pos: tuple[int, int],
    enemy_positions: list[tuple[int, int]],
) -> tuple[int, int] | None:
    """Reachable cell closest to any enemy, if it beats staying put."""
    def closeness(pos: tuple[int, int]) -> int:
        return min(abs(pos[0] - e[0]) + abs(pos[1] - e[1]) for e in enemy_positions)

    best = None
    best_score = closeness(my_pos)
    for cell in move_range:
        if cell["distance"] == 0:
            continue
        pos = (cell["x"], cell["y"])
        score = closeness(pos)
        if score < best_score:
            best, best_score = pos, score
    return best


def _try_attack(client: httpx.Client, actor_id: str, enemies: list[dict]) -> bool:
    """Attack the first enemy in range. Returns True if an attack was made."""
    resp = client.get(f"/battle/range/attack/{actor_id}")
    resp.raise_for_status()
    reach = {(c["x"], c["y"]) for c in resp.json()}
    for enemy in enemies:
        if tuple(enemy["position"]) in reach:
            _submit_action(client, actor_id, "begin_attack")
            return _submit_action(client, actor_id, "attack", target_id=enemy["id"])
    return False


def _complete_effects(client: httpx.Client, state: dict) -> None:
    """Pretend every pending animation has finished playing."""
    for ticket in state["pending_effects"]:
        resp = client.post(f"/battle/effects/{ticket['id']}/complete")
        resp.raise_for_status()


def _get_state(client: httpx.Client) -> dict:
    resp = client.get("/battle/state")
    resp.raise_for_status()
    return resp.json()


def _by_id(state: dict, combatant_id: str) -> dict:
    for combatant in state["combatants"]:
        if combatant["id"] == combatant_id:
            return combatant
    raise KeyError(combatant_id)


def _submit_action(
    client: httpx.Client,
    character_id: str,
    action_type: str,
    target_id: str | None = None,
    target_position: list[int] | None = None,
) -> bool:
    """Submit an action and print the result. Returns True if successful."""
    payload: dict = {"character_id": character_id, "action_type": action_type}
    if target_id:
        payload["target_id"] = target_id
    if target_position:
        payload["target_position"] = target_position

    resp = client.post("/battle/action", json=payload)
    if resp.status_code == 200:
        result = resp.json()
        print(f"  -> {result['description']}")
        return True
    else:
        detail = resp.json().get("detail", resp.text)
        print(f"  -> FAILED: {detail}", file=sys.stderr)
        return False


if __name__ == "__main__":
    main()
