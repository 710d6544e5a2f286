"""
Tens core Python package.

Pure game logic for the triangle tile game, kept apart from the Flask app
and the CLI so that each piece can be tested in isolation.
Modules:
- tile.py: Color, Side, Tile
- board.py: Cell, Board, adjacency table
- placement.py: placement rules and scoring
- deal.py: tile bag and hands
- state.py: Session
- turns.py: TurnStateMachine
- ai.py: greedy move search for CPU players
- codec.py: session wire format
- store.py / sync.py: real-time store contract and room synchronization
- scheduler.py: cancellable deferred tasks
"""
