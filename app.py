from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request

from game import (
    COLOR_HEX,
    PLAYER_COLORS,
    Cell,
    GameConfig,
    Phase,
    TensError,
    TurnStateMachine,
    can_place,
    count_matching_sides,
    format_message,
    json_to_session,
    session_to_json,
    valid_placements,
)

log = logging.getLogger(__name__)

app = Flask(__name__)


def _config() -> GameConfig:
    return GameConfig.from_env()


# ---------- JSON helpers ----------

def _result_json(machine: TurnStateMachine) -> Dict[str, Any]:
    over = machine.phase is Phase.ENDED
    out: Dict[str, Any] = {
        "ok": True,
        "state": session_to_json(machine.session),
        "automated": list(machine.session.automated),
        "gameOver": over,
    }
    if over:
        res = machine.result()
        out["winners"] = res.winners
        out["tie"] = res.tie
    return out


def _error(e: TensError, status: int = 400) -> Tuple[Any, int]:
    log.info("rejected %s: %s", request.path, e.key)
    return jsonify({"ok": False, "error": str(e), "reason": e.key, "params": e.params}), status


def _parse_cell(raw: Any) -> Cell:
    r, c = raw
    return Cell(int(r), int(c))


def _machine_from_body(body: Dict[str, Any]) -> TurnStateMachine:
    s_in = body.get("state")
    if not isinstance(s_in, dict):
        raise ValueError("state required")
    automated = body.get("automated")
    flags: Optional[List[bool]] = [bool(x) for x in automated] if isinstance(automated, list) else None
    machine = TurnStateMachine(config=_config())
    machine.load_session(json_to_session(s_in, flags))
    return machine


def _hand_index(body: Dict[str, Any], machine: TurnStateMachine) -> int:
    idx = int(body.get("tileIndex", -1))
    if not (0 <= idx < len(machine.current_hand())):
        raise ValueError(f"no tile at hand index {idx}")
    return idx


# ---------- Routes ----------

@app.get("/")
def index() -> Any:
    return jsonify({
        "ok": True,
        "name": "tens",
        "api": ["/api/new", "/api/legal", "/api/check", "/api/place", "/api/pass", "/api/cpu"],
        "colors": {color.value: hex_ for color, hex_ in COLOR_HEX.items()},
        "playerColors": list(PLAYER_COLORS),
    })


@app.post("/api/new")
def api_new() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    players = body.get("players") or [{"name": ""}, {"name": ""}]
    seed = body.get("seed", None)
    names: List[str] = []
    automated: List[bool] = []
    for i, p in enumerate(players):
        p = p if isinstance(p, dict) else {"name": str(p)}
        cpu = bool(p.get("cpu", False))
        automated.append(cpu)
        names.append(str(p.get("name") or "").strip() or format_message("defaultCPU" if cpu else "defaultPlayer", n=i + 1))
    machine = TurnStateMachine(config=_config())
    try:
        machine.new_game(names, automated, seed=seed)
    except ValueError as e:
        return jsonify({"ok": False, "error": str(e)}), 400
    return jsonify(_result_json(machine))


@app.post("/api/legal")
def api_legal() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        machine = _machine_from_body(body)
        idx = _hand_index(body, machine)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    tile = machine.current_hand()[idx]
    placements = [
        {"cell": [cell.row, cell.col], "rotation": rotation, "points": 10 * count_matching_sides(machine.session.board, cell)}
        for cell, rotation in valid_placements(machine.session.board, tile)
    ]
    return jsonify({"ok": True, "placements": placements})


@app.post("/api/check")
def api_check() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        machine = _machine_from_body(body)
        idx = _hand_index(body, machine)
        cell = _parse_cell(body["cell"])
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad request: {e}"}), 400
    tile = machine.current_hand()[idx].clone()
    if "rotation" in body:
        tile.rotation = int(body["rotation"]) % 3
    res = can_place(machine.session.board, cell, tile)
    out: Dict[str, Any] = {"ok": True, "valid": res.valid}
    if not res.valid:
        err = res.error()
        out.update({"reason": err.key, "error": str(err), "params": err.params})
    return jsonify(out)


@app.post("/api/place")
def api_place() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        machine = _machine_from_body(body)
        idx = _hand_index(body, machine)
        cell = _parse_cell(body["cell"])
        rotation = int(body["rotation"]) if "rotation" in body else None
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad request: {e}"}), 400
    try:
        outcome = machine.place_tile(idx, cell, rotation)
    except TensError as e:
        return _error(e)
    out = _result_json(machine)
    out["points"] = outcome.points
    return jsonify(out)


@app.post("/api/pass")
def api_pass() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        machine = _machine_from_body(body)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    try:
        outcome = machine.pass_turn()
    except TensError as e:
        return _error(e)
    out = _result_json(machine)
    out["drew"] = outcome.drew
    return jsonify(out)


@app.post("/api/cpu")
def api_cpu() -> Any:
    body = request.get_json(force=True, silent=True) or {}
    try:
        machine = _machine_from_body(body)
    except (KeyError, TypeError, ValueError) as e:
        return jsonify({"ok": False, "error": f"bad state: {e}"}), 400
    try:
        outcome = machine.play_automated_turn()
    except TensError as e:
        return _error(e)
    out = _result_json(machine)
    out["move"] = None
    if outcome.kind == "place" and outcome.cell is not None:
        out["move"] = {"cell": [outcome.cell.row, outcome.cell.col], "points": outcome.points}
    out["passed"] = outcome.kind == "pass"
    return jsonify(out)


# Entrypoint for "python app.py"
if __name__ == "__main__":
    debug = os.getenv("FLASK_DEBUG", os.getenv("DEBUG", "0")).lower() in ("1", "true", "yes", "on")
    port = int(os.getenv("PORT", "5000"))
    app.run(host="0.0.0.0", port=port, debug=debug)
