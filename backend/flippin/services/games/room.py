"""Room state machine for one two-player memory game.

A ``Room`` owns the deck, the seated players, the countdown timer and the
event log. Every public method expects the caller to hold ``room.lock``;
callbacks scheduled by the room (timer ticks, the no-match flip-back)
take the lock themselves and re-check the room before touching it.

Outbound traffic goes through a broadcaster with two methods,
``to_room(room_id, event, payload)`` and ``to_session(sid, event, payload)``.
"""
import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import List, Optional

from flippin.errors import (
    CardNotFlippable,
    FlipInProgress,
    GameAlreadyOver,
    IgnoredAction,
    InvalidCard,
    InvalidMessage,
    InvalidPlayerCount,
    NoQuestionsLeft,
    NotEnoughPlayers,
    NotYourTurn,
    RoomFull,
)
from flippin.models import Card, LogEntry, Player
from .deck import DEFAULT_PAIRS, build_deck
from .timer import GameTimer

logger = logging.getLogger(__name__)

MAX_PLAYERS = 2
MAX_NAME_LENGTH = 32


@dataclass(frozen=True)
class GameRules:
    deck_pairs: int = DEFAULT_PAIRS
    duration_sec: int = 300
    flip_back_delay_sec: float = 0.9
    base_questions: int = 5
    # 0 disables the bonus question rule
    bonus_question_every: int = 3
    log_history_limit: int = 50
    max_message_length: int = 500

    @classmethod
    def from_config(cls, config) -> 'GameRules':
        return cls(
            deck_pairs=int(config.get('DECK_PAIRS', DEFAULT_PAIRS)),
            duration_sec=int(config.get('GAME_DURATION_SEC', 300)),
            flip_back_delay_sec=int(config.get('FLIP_BACK_DELAY_MS', 900)) / 1000.0,
            base_questions=int(config.get('BASE_QUESTIONS', 5)),
            bonus_question_every=int(config.get('BONUS_QUESTION_EVERY', 3)),
            log_history_limit=int(config.get('LOG_HISTORY_LIMIT', 50)),
            max_message_length=int(config.get('MAX_MESSAGE_LENGTH', 500)),
        )


class Room:

    def __init__(self, room_id: str, rules: GameRules, scheduler, broadcaster, deck_factory=None):
        self.room_id = room_id
        self.rules = rules
        self.lock = threading.RLock()
        self._scheduler = scheduler
        self._broadcaster = broadcaster
        self._deck_factory = deck_factory or partial(build_deck, rules.deck_pairs)
        self.deck: List[Card] = self._deck_factory()
        self.players: List[Player] = []
        self.flipped: List[int] = []
        self.current_player_index = 0
        self.log: List[LogEntry] = []
        self.game_over = False
        self.closed = False
        # Bumped on rematch so callbacks scheduled against the old deck stand down
        self.epoch = 0
        self._flip_back_task = None
        self.timer = GameTimer(
            scheduler,
            rules.duration_sec,
            name=f"room={room_id}",
            on_tick=self._on_timer_tick,
            on_pause=self._on_timer_pause,
            on_expire=self._on_timer_expire,
            guard=self._guarded,
        )

    # ---- queries ----

    @property
    def pair_count(self) -> int:
        return len(self.deck) // 2

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    def player_index(self, session_id) -> Optional[int]:
        for idx, player in enumerate(self.players):
            if player.session_id == session_id:
                return idx
        return None

    def player_for(self, session_id) -> Optional[Player]:
        idx = self.player_index(session_id)
        return self.players[idx] if idx is not None else None

    def questions_left(self, player: Player) -> int:
        return player.questions_left(self.rules.base_questions)

    def snapshot(self):
        return {
            'room_id': self.room_id,
            'cards': [card.to_dict() for card in self.deck],
            'players': [p.to_dict(self.rules.base_questions) for p in self.players],
            'current_player': self.current_player_index,
            'flipped': list(self.flipped),
            'timer': self.timer.to_dict(),
            'log': [entry.to_dict() for entry in self.log[:self.rules.log_history_limit]],
            'game_over': self.game_over,
        }

    # ---- session attach/detach ----

    def join(self, session_id, name=None) -> Player:
        if self.closed:
            raise IgnoredAction(f"room {self.room_id} is closed")
        existing = self.player_for(session_id)
        if existing:
            return existing
        if self.is_full:
            raise RoomFull()
        name = name.strip()[:MAX_NAME_LENGTH] if isinstance(name, str) else ''
        player = Player(session_id=session_id, name=name or f"Player {len(self.players) + 1}")
        self.players.append(player)
        self._info(f"{player.name} joined.")
        logger.info(f"[join] room={self.room_id} player={player.name} seated={len(self.players)}")
        self.broadcast_state()
        if self.is_full and not self.game_over:
            self.timer.start()
        return player

    def leave(self, session_id) -> int:
        """Remove a player. Returns how many players remain."""
        idx = self.player_index(session_id)
        if idx is None:
            raise IgnoredAction(f"session {session_id} not seated in room {self.room_id}")
        player = self.players.pop(idx)
        if idx < self.current_player_index:
            self.current_player_index -= 1
        if self.current_player_index >= len(self.players):
            self.current_player_index = 0
        self._info(f"{player.name} disconnected.")
        logger.info(f"[leave] room={self.room_id} player={player.name} remaining={len(self.players)}")
        self.timer.pause()
        if len(self.players) < MAX_PLAYERS:
            self.game_over = True
        if not self.players:
            self.close()
            return 0
        self.broadcast_state()
        return len(self.players)

    def rematch(self, session_id) -> None:
        if self.player_index(session_id) is None:
            raise IgnoredAction(f"session {session_id} not seated in room {self.room_id}")
        if len(self.players) != MAX_PLAYERS:
            raise InvalidPlayerCount()
        self._cancel_flip_back()
        self.timer.reset()
        self.epoch += 1
        self.deck = self._deck_factory()
        self.flipped = []
        self.current_player_index = 0
        self.game_over = False
        self.log = []
        for player in self.players:
            player.reset_counters()
        self._info('Rematch started.')
        logger.info(f"[rematch] room={self.room_id} epoch={self.epoch}")
        self.timer.start()
        self.broadcast_state()
        self._to_room('game_reset', {'room_id': self.room_id})

    def close(self) -> None:
        """Tear the room down. Safe to call repeatedly."""
        self._cancel_flip_back()
        self.timer.cancel()
        if not self.closed:
            self.closed = True
            logger.info(f"[room-close] room={self.room_id}")

    # ---- turn/match engine ----

    def flip(self, session_id, index) -> None:
        player_idx = self.player_index(session_id)
        if player_idx is None:
            raise IgnoredAction(f"session {session_id} not seated in room {self.room_id}")
        if self.game_over:
            raise GameAlreadyOver()
        if len(self.players) < MAX_PLAYERS:
            raise NotEnoughPlayers()
        if len(self.flipped) >= 2:
            raise FlipInProgress()
        if player_idx != self.current_player_index:
            raise NotYourTurn()
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index < len(self.deck):
            raise InvalidCard()
        card = self.deck[index]
        if not card.flippable:
            raise CardNotFlippable()

        card.revealed = True
        self.flipped.append(index)
        self.broadcast_state()
        if len(self.flipped) == 2:
            self._resolve_pair(self.players[player_idx])

    def _resolve_pair(self, player: Player) -> None:
        a, b = self.flipped
        if self.deck[a].pair_id == self.deck[b].pair_id:
            self._on_match(player, a, b)
            return
        pair = (a, b)
        self._flip_back_task = self._scheduler.call_later(
            self.rules.flip_back_delay_sec,
            self._guarded(partial(self._flip_back, self.epoch, pair)),
            name=f"room={self.room_id}:flip-back",
        )

    def _on_match(self, player: Player, a: int, b: int) -> None:
        self.deck[a].matched = self.deck[b].matched = True
        player.match_count += 1
        self.flipped = []
        self._info(f"{player.name} found a pair ({self.deck[a].label}).")
        logger.info(f"[match] room={self.room_id} player={player.name} matches={player.match_count}")
        self._maybe_grant_bonus(player)
        self.timer.pause()
        self.broadcast_state()
        self._to_session(player.session_id, 'question_prompt', {'remaining': self.questions_left(player)})
        self.evaluate_end()

    def _maybe_grant_bonus(self, player: Player) -> bool:
        every = self.rules.bonus_question_every
        if every <= 0 or player.match_count == 0 or player.match_count % every:
            return False
        if player.match_count == player.last_bonus_at_match_count:
            return False
        player.bonus_questions += 1
        player.last_bonus_at_match_count = player.match_count
        self._info(f"{player.name} earned an extra question.")
        return True

    def _flip_back(self, epoch: int, pair) -> None:
        if epoch != self.epoch or tuple(self.flipped) != pair:
            logger.debug(f"[flip-back-skip] room={self.room_id} pair={pair}")
            return
        self._flip_back_task = None
        for idx in pair:
            if not self.deck[idx].matched:
                self.deck[idx].revealed = False
        self.flipped = []
        if self.players and not self.game_over:
            self.current_player_index = (self.current_player_index + 1) % len(self.players)
            self._info(f"No match. {self.current_player.name}'s turn.")
        self.broadcast_state()

    def _cancel_flip_back(self) -> None:
        if self._flip_back_task is not None:
            self._flip_back_task.cancel()
            self._flip_back_task = None

    # ---- question/answer gate ----

    def ask_question(self, session_id, text) -> int:
        """Send a question to the opponent. Returns the asker's remaining allowance."""
        player = self._require_player(session_id)
        if self.questions_left(player) <= 0:
            self._to_session(session_id, 'no_questions', {'remaining': 0})
            raise NoQuestionsLeft()
        text = self._clean_text(text)
        player.questions_asked += 1
        self.log.insert(0, LogEntry.question(player.name, text))
        for other in self.players:
            if other is not player:
                self._to_session(other.session_id, 'question_for_answer', {'from': player.name, 'text': text})
        self.broadcast_state()
        return self.questions_left(player)

    def answer_question(self, session_id, text) -> None:
        player = self._require_player(session_id)
        text = self._clean_text(text)
        self.log.insert(0, LogEntry.answer(player.name, text))
        self._to_room('question_answered', {'by': player.name, 'text': text})
        if not self.game_over and self.is_full:
            self.timer.resume()
        self.broadcast_state()

    # ---- end of game ----

    def evaluate_end(self) -> bool:
        """Declare the game over if every pair is found or time ran out."""
        if self.game_over:
            return False
        if sum(p.match_count for p in self.players) >= self.pair_count:
            reason = 'all_pairs'
        elif self.timer.remaining <= 0:
            reason = 'time_up'
        else:
            return False

        self.game_over = True
        self.timer.pause()
        winner = self._winner()
        if winner:
            self._info(f"{winner.name} wins!")
        else:
            self._info("It's a tie.")
        logger.info(f"[game-over] room={self.room_id} reason={reason} winner={winner.name if winner else None}")
        self._to_room('game_over', {
            'winner': winner.name if winner else None,
            'tie': winner is None,
            'reason': reason,
        })
        self.broadcast_state()
        return True

    def _winner(self) -> Optional[Player]:
        if not self.players:
            return None
        best = max(p.match_count for p in self.players)
        leaders = [p for p in self.players if p.match_count == best]
        return leaders[0] if len(leaders) == 1 else None

    # ---- timer callbacks ----

    def _on_timer_tick(self, remaining: int) -> None:
        self._to_room('timer', remaining)

    def _on_timer_pause(self) -> None:
        self._to_room('timer_paused', {'remaining': self.timer.remaining})

    def _on_timer_expire(self) -> None:
        self._to_room('time_up', {})
        self._info('Time is up.')
        if not self.evaluate_end():
            self.broadcast_state()

    # ---- helpers ----

    def broadcast_state(self) -> None:
        self._to_room('state', self.snapshot())

    def _guarded(self, fn):
        def _run():
            with self.lock:
                if self.closed:
                    return
                fn()
        return _run

    def _require_player(self, session_id) -> Player:
        player = self.player_for(session_id)
        if player is None:
            raise IgnoredAction(f"session {session_id} not seated in room {self.room_id}")
        return player

    def _clean_text(self, text) -> str:
        if not isinstance(text, str) or not text.strip():
            raise InvalidMessage()
        text = text.strip()
        if len(text) > self.rules.max_message_length:
            raise InvalidMessage(f"Message longer than {self.rules.max_message_length} characters")
        return text

    def _info(self, text: str) -> None:
        self.log.insert(0, LogEntry.info(text))

    def _to_room(self, event, payload) -> None:
        self._broadcaster.to_room(self.room_id, event, payload)

    def _to_session(self, session_id, event, payload) -> None:
        self._broadcaster.to_session(session_id, event, payload)
