import random
from dataclasses import dataclass
from typing import Optional, Sequence

OPERAND_MIN = 1
OPERAND_MAX = 15
BOMB_MIN = 1
BOMB_MAX = 50

ADD = '+'
SUBTRACT = '-'
MULTIPLY = '×'
OPERATORS = (ADD, SUBTRACT, MULTIPLY)


def evaluate(left: int, operator: str, right: int) -> int:
    if operator == ADD:
        return left + right
    if operator == SUBTRACT:
        return left - right
    if operator == MULTIPLY:
        return left * right
    raise ValueError(f'Unknown operator {operator!r}')


@dataclass(frozen=True)
class Problem:
    left: int
    operator: str
    right: int
    answer: int

    @property
    def text(self) -> str:
        return f'{self.left} {self.operator} {self.right}'

    def to_dict(self):
        return {'text': self.text, 'answer': self.answer}


class ProblemGenerator:
    """Arithmetic problems for rockets and candidate answers for planets."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def generate_problem(self) -> Problem:
        operator = self.rng.choice(OPERATORS)
        left = self.rng.randint(OPERAND_MIN, OPERAND_MAX)
        right = self.rng.randint(OPERAND_MIN, OPERAND_MAX)
        if operator == SUBTRACT and right > left:
            left, right = right, left
        return Problem(left=left, operator=operator, right=right,
                       answer=evaluate(left, operator, right))

    def generate_planet_answer(self, live_correct_answers: Sequence[int], live_planet_count: int,
                               bomb_probability: float, min_live_count_for_bomb: int) -> int:
        """Pick the value a new planet will carry.

        Bombs only appear once enough planets are already falling. A bomb
        value is drawn from [1, 50] minus the live answers; otherwise a live
        answer is drawn with multiset weighting, and with nothing live the
        value is arbitrary and may turn out to be a bomb.
        """
        live = list(live_correct_answers)
        if live_planet_count >= min_live_count_for_bomb and self.rng.random() < bomb_probability:
            taken = set(live)
            candidates = [n for n in range(BOMB_MIN, BOMB_MAX + 1) if n not in taken]
            if candidates:
                return self.rng.choice(candidates)
        if live:
            return self.rng.choice(live)
        return self.rng.randint(BOMB_MIN, BOMB_MAX)

    @staticmethod
    def is_bomb(answer: int, live_correct_answers: Sequence[int]) -> bool:
        return answer not in live_correct_answers
