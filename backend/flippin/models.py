from dataclasses import dataclass
from typing import Optional

INFO = 'info'
QUESTION = 'question'
ANSWER = 'answer'


@dataclass
class Card:
    pair_id: int
    label: str
    emoji: str = ''
    revealed: bool = False
    matched: bool = False

    @property
    def flippable(self) -> bool:
        return not (self.revealed or self.matched)

    def to_dict(self):
        return {
            'pair_id': self.pair_id,
            'label': self.label,
            'emoji': self.emoji,
            'revealed': self.revealed,
            'matched': self.matched,
        }


@dataclass
class Player:
    session_id: str
    name: str
    match_count: int = 0
    questions_asked: int = 0
    bonus_questions: int = 0
    last_bonus_at_match_count: int = 0

    def questions_left(self, base_questions: int) -> int:
        return max(0, base_questions + self.bonus_questions - self.questions_asked)

    def reset_counters(self) -> None:
        self.match_count = 0
        self.questions_asked = 0
        self.bonus_questions = 0
        self.last_bonus_at_match_count = 0

    def to_dict(self, base_questions: int):
        # session_id stays server-side
        return {
            'name': self.name,
            'matches': self.match_count,
            'asked': self.questions_asked,
            'extra': self.bonus_questions,
            'questions_left': self.questions_left(base_questions),
        }


@dataclass(frozen=True)
class LogEntry:
    kind: str
    text: str
    by: Optional[str] = None

    @classmethod
    def info(cls, text):
        return cls(INFO, text)

    @classmethod
    def question(cls, by, text):
        return cls(QUESTION, text, by)

    @classmethod
    def answer(cls, by, text):
        return cls(ANSWER, text, by)

    def to_dict(self):
        data = {'type': self.kind, 'text': self.text}
        if self.by is not None:
            data['by'] = self.by
        return data
