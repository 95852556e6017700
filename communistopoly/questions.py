"""
Communist Test question bank.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import random


class TestDifficulty(Enum):
    __test__ = False

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    TRICK = "trick"


@dataclass
class TestQuestion:
    """A Communist Test question. Trick questions carry no fixed reward."""

    __test__ = False

    question_id: str
    difficulty: TestDifficulty
    question: str
    answer: str
    acceptable_answers: List[str] = field(default_factory=list)
    reward: int = 0
    penalty: int = 0
    grants_rank_up: bool = False

    def is_correct(self, given: str) -> bool:
        """Case-insensitive match against any acceptable answer, in either direction."""
        normalized = given.lower().strip()
        if not normalized:
            return False
        return any(normalized in ok or ok in normalized for ok in self.acceptable_answers)


def _easy(qid: str, question: str, answer: str, acceptable: List[str]) -> TestQuestion:
    return TestQuestion(qid, TestDifficulty.EASY, question, answer, acceptable, reward=100, penalty=0)


def _medium(qid: str, question: str, answer: str, acceptable: List[str]) -> TestQuestion:
    return TestQuestion(qid, TestDifficulty.MEDIUM, question, answer, acceptable, reward=200, penalty=100)


def _hard(qid: str, question: str, answer: str, acceptable: List[str]) -> TestQuestion:
    return TestQuestion(
        qid, TestDifficulty.HARD, question, answer, acceptable, reward=400, penalty=200, grants_rank_up=True
    )


def _trick(qid: str, question: str, answer: str, acceptable: List[str]) -> TestQuestion:
    return TestQuestion(qid, TestDifficulty.TRICK, question, answer, acceptable)


QUESTIONS: List[TestQuestion] = [
    _easy("easy-1", "What does USSR stand for?", "Union of Soviet Socialist Republics",
          ["union of soviet socialist republics", "ussr", "soviet union"]),
    _easy("easy-2", "Who wrote The Communist Manifesto?", "Karl Marx and Friedrich Engels",
          ["karl marx and friedrich engels", "marx and engels", "karl marx", "marx"]),
    _easy("easy-3", "What year did the Russian Revolution occur?", "1917", ["1917"]),
    _easy("easy-4", "What is the capital of the Soviet Union?", "Moscow", ["moscow"]),
    _easy("easy-5", "What symbol appears on the Soviet flag alongside the hammer?", "Sickle",
          ["sickle", "the sickle"]),
    _medium("medium-1", "In what year did Stalin come to power?", "1924", ["1924"]),
    _medium("medium-2", "What was the name of Stalin's policy of rapid industrialization?", "Five-Year Plans",
            ["five-year plans", "five year plans", "five year plan", "5 year plans"]),
    _medium("medium-4", "Who did Stalin have assassinated in Mexico in 1940?", "Leon Trotsky",
            ["leon trotsky", "trotsky"]),
    _medium("medium-5", "What was the name of the Soviet forced labour camp system?", "Gulag",
            ["gulag", "the gulag"]),
    _medium("medium-9", "What was the name of the first artificial satellite, launched by the USSR?", "Sputnik",
            ["sputnik", "sputnik 1"]),
    _hard("hard-1", "What was Stalin's birth name?", "Ioseb Jughashvili",
          ["ioseb jughashvili", "jughashvili", "iosif dzhugashvili"]),
    _hard("hard-3", "What was the name of the 1956 speech in which Khrushchev denounced Stalin?",
          "The Secret Speech", ["secret speech", "on the cult of personality", "cult of personality"]),
    _hard("hard-4", "In what year did the Soviet Union collapse?", "1991", ["1991"]),
    _hard("hard-8", 'Name one of the "Old Bolsheviks" executed during the Great Purge.',
          "Zinoviev, Kamenev, Bukharin, Rykov", ["zinoviev", "kamenev", "bukharin", "rykov"]),
    _trick("trick-1", "Was communism successful?", "Communism is always successful, Comrade Stalin.",
           ["communism is always successful", "yes comrade stalin", "always successful"]),
    _trick("trick-2", "Who is the greatest leader in history?", "Stalin",
           ["stalin", "comrade stalin", "joseph stalin"]),
    _trick("trick-4", "Are you happy?", "Yes", ["yes", "yes comrade", "always", "very happy", "of course"]),
]

QUESTIONS_BY_DIFFICULTY: Dict[TestDifficulty, List[TestQuestion]] = {
    difficulty: [q for q in QUESTIONS if q.difficulty == difficulty] for difficulty in TestDifficulty
}

# Cumulative weights: 40% easy, 35% medium, 20% hard, 5% trick
_DIFFICULTY_WEIGHTS = [
    (0.40, TestDifficulty.EASY),
    (0.75, TestDifficulty.MEDIUM),
    (0.95, TestDifficulty.HARD),
    (1.00, TestDifficulty.TRICK),
]


def get_question(question_id: str) -> Optional[TestQuestion]:
    for question in QUESTIONS:
        if question.question_id == question_id:
            return question
    return None


def random_difficulty(rng: random.Random) -> TestDifficulty:
    """Pick a difficulty with the weighted distribution above."""
    roll = rng.random()
    for threshold, difficulty in _DIFFICULTY_WEIGHTS:
        if roll < threshold:
            return difficulty
    return TestDifficulty.TRICK


def draw_question(rng: random.Random, difficulty: Optional[TestDifficulty] = None) -> TestQuestion:
    """Draw a random question, optionally of a fixed difficulty."""
    chosen = difficulty or random_difficulty(rng)
    return rng.choice(QUESTIONS_BY_DIFFICULTY[chosen])
