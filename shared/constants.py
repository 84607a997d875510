"""
Game constants for Connect6.
"""

# Board
BOARD_SIZE = 19
WIN_COUNT = 6

# Cell markers used on the wire
EMPTY_CELL = "."
BLACK_STONE = "B"
WHITE_STONE = "W"

# Stones per turn
FIRST_TURN_STONES = 1
NORMAL_TURN_STONES = 2

# Axes scanned for six-in-a-row: horizontal, vertical, diagonal ↘, diagonal ↗
DIRECTIONS = [
    (1, 0),
    (0, 1),
    (1, 1),
    (1, -1),
]

# Session capacity
MIN_PLAYERS = 2

# Winner sentinel for a forfeit by disconnect
OPPONENT_DISCONNECTED = "OPPONENT_DISCONNECTED"

# Status texts sent to players
MSG_CONNECTED_AS = "Connected as: {player_id}"
MSG_WAITING_PLAYER = "Waiting for another player..."
MSG_GAME_STARTED = "Game started!"
MSG_TWO_PLAYERS_ONLY = "Server supports two players only"
MSG_NAME_IN_USE = "Name already in use"
MSG_INVALID_NAME = "Player name must not be empty"
MSG_DISCONNECTING = "Server: disconnecting"
MSG_PLAYER_DISCONNECTED = "Opponent disconnected"
