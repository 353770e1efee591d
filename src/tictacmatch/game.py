"""Core rules and match scoring for tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import math

logger = logging.getLogger(__name__)

Player = str  # "X" or "O"
Cell = Optional[Player]  # None for empty
Line = Tuple[int, int, int]

PLAYERS: Tuple[Player, Player] = ("X", "O")

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

BOARD_SIZE = 9


class MatchType(str, Enum):
    FIRST_TO = "firstTo"
    BEST_OF = "bestOf"


# ---------- Board helpers ----------


def opponent(player: Player) -> Player:
    return "O" if player == "X" else "X"


def empty_board() -> List[Cell]:
    return [None] * BOARD_SIZE


def empty_cells(board: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(board) if c is None]


def is_full(board: Sequence[Cell]) -> bool:
    return all(c is not None for c in board)


def find_winning_line(board: Sequence[Cell], player: Player) -> Optional[Line]:
    """First line fully owned by ``player`` in ``WINNING_LINES`` order."""
    for line in WINNING_LINES:
        a, b, c = line
        if board[a] == player and board[b] == player and board[c] == player:
            return line
    return None


def board_winner(board: Sequence[Cell]) -> Optional[Player]:
    for player in PLAYERS:
        if find_winning_line(board, player) is not None:
            return player
    return None


def compute_match_target(match_type: MatchType, match_length: int) -> int:
    """Round wins needed to take the match.

    ``firstTo`` needs ``match_length`` wins; ``bestOf`` needs a majority of
    ``match_length`` rounds.
    """
    if MatchType(match_type) is MatchType.BEST_OF:
        return math.ceil(match_length / 2)
    return match_length


# ---------- Config ----------


@dataclass
class MatchConfig:
    starting_player: Player = "X"
    match_type: MatchType = MatchType.FIRST_TO
    match_length: int = 3

    def __post_init__(self) -> None:
        _validate_config(self.starting_player, self.match_type, self.match_length)
        self.match_type = MatchType(self.match_type)

    @property
    def match_target(self) -> int:
        return compute_match_target(self.match_type, self.match_length)


def _validate_config(
    starting_player: Player, match_type: MatchType, match_length: int
) -> None:
    if starting_player not in PLAYERS:
        raise ValueError(f"Unknown player {starting_player!r}")
    try:
        MatchType(match_type)
    except ValueError as exc:
        raise ValueError(f"Unknown match type {match_type!r}") from exc
    if isinstance(match_length, bool) or not isinstance(match_length, int):
        raise ValueError("Match length must be an integer")
    if match_length < 1:
        raise ValueError("Match length must be positive")


# ---------- Engine ----------


@dataclass
class MatchEngine:
    config: MatchConfig = field(default_factory=MatchConfig)

    # Round state
    board: List[Cell] = field(default_factory=empty_board, init=False)
    current_player: Player = field(default="X", init=False)
    round_winner: Optional[Player] = field(default=None, init=False)
    is_draw: bool = field(default=False, init=False)
    winning_line: Optional[Line] = field(default=None, init=False)
    last_move_index: Optional[int] = field(default=None, init=False)

    # Match state
    winning_score: Dict[Player, int] = field(
        default_factory=lambda: {"X": 0, "O": 0}, init=False
    )
    match_winner: Optional[Player] = field(default=None, init=False)

    def __post_init__(self) -> None:
        # Own copy; callers may hand the same config to several engines
        self.config = replace(self.config)
        self.current_player = self.config.starting_player

    # ---- API used by the controller & AI ----

    @property
    def match_target(self) -> int:
        return self.config.match_target

    @property
    def is_round_over(self) -> bool:
        return self.round_winner is not None or self.is_draw

    @property
    def is_match_over(self) -> bool:
        return self.match_winner is not None

    def available_moves(self) -> List[int]:
        return empty_cells(self.board)

    def reset_board(self) -> None:
        self.board = empty_board()
        self.current_player = self.config.starting_player
        self.round_winner = None
        self.is_draw = False
        self.winning_line = None
        self.last_move_index = None

    def reset_match(self) -> None:
        self.reset_board()
        self.winning_score = {"X": 0, "O": 0}
        self.match_winner = None

    def update_settings(
        self,
        starting_player: Optional[Player] = None,
        match_type: Optional[MatchType] = None,
        match_length: Optional[int] = None,
    ) -> None:
        """Apply the given config fields; the rest keep their values.

        Round and match state are left alone. Callers changing settings
        normally follow up with ``reset_match()``.
        """
        new_player = (
            self.config.starting_player if starting_player is None else starting_player
        )
        new_type = self.config.match_type if match_type is None else match_type
        new_length = self.config.match_length if match_length is None else match_length
        _validate_config(new_player, new_type, new_length)

        self.config = replace(
            self.config,
            starting_player=new_player,
            match_type=MatchType(new_type),
            match_length=new_length,
        )

    def make_move(self, index: int) -> bool:
        """Place the current player's mark at ``index``.

        Returns ``False`` without touching any state when the move is illegal.
        """
        if self.round_winner or self.is_draw or self.match_winner:
            return False
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < BOARD_SIZE:
            return False
        if self.board[index] is not None:
            return False

        player = self.current_player
        self.board[index] = player
        self.last_move_index = index
        logger.debug("%s plays %d", player, index)

        line = find_winning_line(self.board, player)
        if line is not None:
            self.round_winner = player
            self.winning_line = line
            self.winning_score[player] += 1
            logger.info(
                "Round won by %s on %s (score X=%d O=%d)",
                player,
                line,
                self.winning_score["X"],
                self.winning_score["O"],
            )
            if self.winning_score[player] >= self.match_target:
                self.match_winner = player
                logger.info("Match won by %s", player)
            return True

        if is_full(self.board):
            self.is_draw = True
            logger.info("Round drawn")
            return True

        self.current_player = opponent(player)
        return True

    def clone(self) -> "MatchEngine":
        g = MatchEngine(config=self.config)
        g.board = self.board.copy()
        g.current_player = self.current_player
        g.round_winner = self.round_winner
        g.is_draw = self.is_draw
        g.winning_line = self.winning_line
        g.last_move_index = self.last_move_index
        g.winning_score = dict(self.winning_score)
        g.match_winner = self.match_winner
        return g

    def snapshot(self) -> Dict[str, object]:
        """Read-only view of round and match state for renderers."""
        return {
            "board": list(self.board),
            "currentPlayer": self.current_player,
            "roundWinner": self.round_winner,
            "isDraw": self.is_draw,
            "winningLine": list(self.winning_line) if self.winning_line else None,
            "lastMoveIndex": self.last_move_index,
            "winningScore": dict(self.winning_score),
            "matchWinner": self.match_winner,
            "matchTarget": self.match_target,
            "availableMoves": self.available_moves(),
        }
