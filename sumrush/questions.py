"""Addition question generator with three difficulty bands."""

from __future__ import annotations

import random
from dataclasses import dataclass

ANSWER_CEILING = 20     # answers stay strictly below this
OPTION_COUNT = 4
DISTRACTOR_OFFSETS = (1, 2, 3)
MAX_DISTRACTOR_ATTEMPTS = 100


@dataclass(frozen=True)
class Band:
    """Operand ranges (inclusive) for a run of question indexes."""

    first_index: int
    num1: tuple[int, int]
    num2: tuple[int, int]

    def __post_init__(self):
        for lo, hi in (self.num1, self.num2):
            if lo < 1 or hi < lo:
                raise ValueError(f"bad operand range {lo}..{hi}")
        # rejection sampling needs at least one admissible pair
        if self.num1[0] + self.num2[0] >= ANSWER_CEILING:
            raise ValueError(f"band starting at {self.first_index} can never sum below {ANSWER_CEILING}")


BANDS = (
    Band(first_index=1, num1=(1, 5), num2=(1, 4)),
    Band(first_index=6, num1=(4, 9), num2=(2, 6)),
    Band(first_index=11, num1=(6, 9), num2=(5, 9)),
)


def band_for(question_index: int) -> Band:
    """Band for a 1-based question index."""
    if question_index < 1:
        raise ValueError(f"question index must be >= 1, got {question_index}")
    band = BANDS[0]
    for candidate in BANDS:
        if question_index >= candidate.first_index:
            band = candidate
    return band


@dataclass(frozen=True)
class Question:
    num1: int
    num2: int
    answer: int
    options: tuple[int, ...]

    def __post_init__(self):
        if self.num1 < 1 or self.num2 < 1:
            raise ValueError("operands must be positive")
        if self.answer != self.num1 + self.num2:
            raise ValueError(f"{self.num1} + {self.num2} != {self.answer}")
        if self.answer >= ANSWER_CEILING:
            raise ValueError(f"answer {self.answer} is not below {ANSWER_CEILING}")
        if len(set(self.options)) != OPTION_COUNT or len(self.options) != OPTION_COUNT:
            raise ValueError(f"need {OPTION_COUNT} distinct options, got {self.options}")
        if self.answer not in self.options:
            raise ValueError("options must contain the answer")
        if any(o < 1 for o in self.options):
            raise ValueError("options must be positive")

    @property
    def text(self) -> str:
        return f"{self.num1} + {self.num2}"

    def is_correct(self, value) -> bool:
        return value == self.answer


class QuestionGenerator:
    """Produces one Question per call; difficulty follows the question index.

    rng defaults to the random module; pass random.Random(seed) for
    reproducible rounds.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random

    def generate(self, question_index: int) -> Question:
        band = band_for(question_index)
        num1, num2 = self._draw(band)
        answer = num1 + num2
        options = self._options(answer)
        return Question(num1=num1, num2=num2, answer=answer, options=options)

    def _draw(self, band: Band) -> tuple[int, int]:
        while True:
            num1 = self.rng.randint(*band.num1)
            num2 = self.rng.randint(*band.num2)
            if num1 + num2 < ANSWER_CEILING:
                return num1, num2

    def _options(self, answer: int) -> tuple[int, ...]:
        """Answer plus three near misses, shuffled."""
        options = {answer}
        attempts = 0
        while len(options) < OPTION_COUNT and attempts < MAX_DISTRACTOR_ATTEMPTS:
            attempts += 1
            offset = self.rng.choice(DISTRACTOR_OFFSETS)
            candidate = answer + offset if self.rng.random() < 0.5 else answer - offset
            if candidate > 0 and candidate != answer:
                options.add(candidate)
        # Fallback if we somehow can't generate enough
        fallback = 1
        while len(options) < OPTION_COUNT:
            options.add(answer + fallback)
            fallback += 1

        ordered = list(options)
        self.rng.shuffle(ordered)
        return tuple(ordered)
