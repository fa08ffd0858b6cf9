"""
Texas Hold'em table rules, constants and configuration.

Stages follow the lifecycle of a single hand:

    lobby -> preflop -> flop -> turn -> river -> showdown -> (lobby | preflop)

Chip amounts are plain integers everywhere; there is no fractional chip.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


class Stage(str, Enum):
    """Stages of the table / current hand."""
    LOBBY = "lobby"
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"


class ActionType(str, Enum):
    """Actions a seat may send while it is the current actor."""
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"


BETTING_STAGES = (Stage.PREFLOP, Stage.FLOP, Stage.TURN, Stage.RIVER)

NEXT_STAGE = {
    Stage.PREFLOP: Stage.FLOP,
    Stage.FLOP: Stage.TURN,
    Stage.TURN: Stage.RIVER,
    Stage.RIVER: Stage.SHOWDOWN,
}

# Default table settings
TABLE_MAX = 6
STARTING_STACK = 2000
SMALL_BLIND = 25
BIG_BLIND = 50
NEXT_HAND_DELAY = 8.0  # seconds
STALL_TIMEOUT = 60.0   # seconds, 0 disables the watchdog
NAME_MAX_LEN = 18
LOG_DIR = "logs"

MIN_SEATS = 2
MAX_SEATS = 10

# Cards per street
HOLE_CARDS = 2
FLOP_CARDS = 3
TURN_CARDS = 1
RIVER_CARDS = 1
TOTAL_COMMUNITY_CARDS = 5

STREET_CARDS = {
    Stage.FLOP: FLOP_CARDS,
    Stage.TURN: TURN_CARDS,
    Stage.RIVER: RIVER_CARDS,
}


@dataclass
class TableConfig:
    """Settings for one table instance."""
    table_max: int = TABLE_MAX
    starting_stack: int = STARTING_STACK
    small_blind: int = SMALL_BLIND
    big_blind: int = BIG_BLIND
    next_hand_delay: float = NEXT_HAND_DELAY
    stall_timeout: float = STALL_TIMEOUT
    log_dir: str = LOG_DIR
    name_max_len: int = NAME_MAX_LEN

    def __post_init__(self) -> None:
        if self.table_max < MIN_SEATS or self.table_max > MAX_SEATS:
            raise ValueError(f"table_max must be {MIN_SEATS}-{MAX_SEATS}")
        if self.small_blind <= 0 or self.big_blind <= 0:
            raise ValueError("Blinds must be positive")
        if self.big_blind < self.small_blind:
            raise ValueError("Big blind cannot be smaller than the small blind")
        if self.starting_stack <= 0:
            raise ValueError("Starting stack must be positive")
        if self.next_hand_delay < 0 or self.stall_timeout < 0:
            raise ValueError("Delays cannot be negative")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TableConfig":
        """Build a config from ORTHRUS_* environment variables."""
        env = os.environ if environ is None else environ

        def read(name: str, default, cast):
            raw = env.get(f"ORTHRUS_{name}")
            if raw is None or raw == "":
                return default
            try:
                return cast(raw)
            except ValueError:
                raise ValueError(f"Invalid value for ORTHRUS_{name}: {raw!r}")

        return cls(
            table_max=read("TABLE_MAX", TABLE_MAX, int),
            starting_stack=read("STARTING_STACK", STARTING_STACK, int),
            small_blind=read("SMALL_BLIND", SMALL_BLIND, int),
            big_blind=read("BIG_BLIND", BIG_BLIND, int),
            next_hand_delay=read("NEXT_HAND_DELAY", NEXT_HAND_DELAY, float),
            stall_timeout=read("STALL_TIMEOUT", STALL_TIMEOUT, float),
            log_dir=read("LOG_DIR", LOG_DIR, str),
        )


def get_blind_positions(num_players: int, dealer_position: int):
    """
    Calculate small blind and big blind offsets relative to the dealt seats.

    Heads-up: the dealer posts the small blind.

    Args:
        num_players: Number of seats dealt into the hand
        dealer_position: Position of the dealer among those seats

    Returns:
        Tuple of (small_blind_position, big_blind_position)
    """
    if num_players < 2:
        raise ValueError("Need at least 2 players")

    if num_players == 2:
        sb_pos = dealer_position
        bb_pos = (dealer_position + 1) % num_players
    else:
        sb_pos = (dealer_position + 1) % num_players
        bb_pos = (dealer_position + 2) % num_players

    return sb_pos, bb_pos
