from __future__ import annotations

import argparse
import logging
import os
from dataclasses import replace
from typing import List, Optional

from .ai import find_best_move
from .board import Cell
from .config import GameConfig
from .errors import TensError
from .messages import format_message
from .placement import valid_placements
from .state import Phase
from .turns import GameEvent, TurnStateMachine


def _print_event(event: GameEvent) -> None:
    if event.kind in ("placed", "passed", "player_turn", "game_over"):
        print(format_message(event.message_key, **event.params))


def _print_hand(machine: TurnStateMachine) -> None:
    hand = machine.current_hand()
    for i, tile in enumerate(hand):
        mark = "*" if machine.selected == i else " "
        print(f" {mark}[{i}] {tile.label()} (rotation {tile.rotation})")


def _print_scores(machine: TurnStateMachine) -> None:
    s = machine.session
    print("Scores: " + ", ".join(f"{s.player_name(i)}={score}" for i, score in enumerate(s.scores)))


def _parse_ints(parts: List[str]) -> Optional[List[int]]:
    try:
        return [int(p) for p in parts]
    except ValueError:
        return None


def prompt_human_turn(machine: TurnStateMachine) -> None:
    """Reads commands until the human places a tile or passes."""
    while machine.phase is Phase.IN_PROGRESS:
        print(machine.session.board.pretty())
        _print_hand(machine)
        text = input("place i r c [rot] | rotate i | pass | hint | quit > ").strip().lower()
        parts = text.replace(",", " ").split()
        if not parts:
            continue
        cmd, args = parts[0], _parse_ints(parts[1:])
        if args is None:
            print("Could not parse. Try again.")
            continue
        try:
            if cmd == "place" and len(args) in (3, 4):
                rotation = args[3] if len(args) == 4 else None
                machine.place_tile(args[0], Cell(args[1], args[2]), rotation)
                return
            if cmd == "rotate" and len(args) == 1:
                if machine.selected != args[0]:
                    machine.select_tile(args[0])
                machine.rotate_selected()
                continue
            if cmd == "pass":
                machine.pass_turn()
                return
            if cmd == "hint":
                move = find_best_move(machine.session.board, machine.current_hand())
                if move is None:
                    print("No legal placement; passing draws a tile.")
                else:
                    print(f"Try: place {move.tile_index} {move.cell.row} {move.cell.col} {move.rotation}")
                    tile = machine.current_hand()[move.tile_index]
                    print(f"  ({len(valid_placements(machine.session.board, tile))} legal spots for that tile)")
                continue
            if cmd == "quit":
                raise SystemExit(0)
        except TensError as e:
            print(f"error: {e}")
            continue
        except ValueError as e:
            print(f"error: {e}")
            continue
        print("Unknown command. Try again.")


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description='Tens: hot-seat triangle tile game')
    parser.add_argument('--players', type=int, default=2, help='Number of players (2-4)')
    parser.add_argument('--cpu', type=int, action='append', default=[], help='1-based player number controlled by the CPU (repeatable)')
    parser.add_argument('--names', default='', help='Comma-separated player names')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for the tile bag')
    parser.add_argument('--hand-size', type=int, default=None, help='Tiles dealt to each player')
    parser.add_argument('--no-start-tile', action='store_true', help='Leave the board empty at start')
    args = parser.parse_args(argv)

    level = os.getenv('TENS_LOG_LEVEL', 'WARNING').upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING))

    config = GameConfig.from_env()
    if args.hand_size is not None:
        config = replace(config, hand_size=args.hand_size)
    if args.no_start_tile:
        config = replace(config, starting_tile=False)

    names = [n.strip() for n in args.names.split(',')] if args.names else []
    names += [''] * (args.players - len(names))
    automated = [(i + 1) in args.cpu for i in range(args.players)]
    names = [
        n or format_message('defaultCPU' if automated[i] else 'defaultPlayer', n=i + 1)
        for i, n in enumerate(names[:args.players])
    ]

    machine = TurnStateMachine(config=config)
    machine.add_listener(_print_event)
    idle = {"passes": 0}

    def _track_idle(event: GameEvent) -> None:
        if event.kind == "passed" and event.message_key == "passedNoDraw":
            idle["passes"] += 1
        elif event.kind in ("placed", "passed"):
            idle["passes"] = 0

    machine.add_listener(_track_idle)
    machine.new_game(names, automated, seed=args.seed)

    while machine.phase is Phase.IN_PROGRESS:
        if idle["passes"] >= machine.session.player_count:
            # Nobody can place and the bag is empty; the rules alone never end this.
            print("Stalemate: every player passed with an empty bag.")
            break
        slot = machine.session.current_player
        if machine.session.is_automated(slot):
            # Skip the announcement, then let the CPU delay play out on the virtual clock
            machine.dismiss_announcement()
            machine.scheduler.advance(machine.config.cpu_delay)
            if machine.session.current_player == slot and machine.phase is Phase.IN_PROGRESS:
                machine.play_automated_turn()
        else:
            machine.dismiss_announcement()
            prompt_human_turn(machine)
        _print_scores(machine)

    print(machine.session.board.pretty())
    _print_scores(machine)
