import random
from typing import Optional, Sequence

from emotutor.affect.base import AffectSample, AffectSource, age_group_for

DEFAULT_EMOTIONS = ("happy", "sad", "angry", "surprised", "neutral")
GENDERS = ("male", "female")


class SimulatedAffectSource(AffectSource):
    """
    Randomized learner generator for sessions without a camera.

    Emotion is drawn uniformly from ``emotions``, age uniformly from
    [10, 40) and gender from GENDERS.
    """

    def __init__(
        self,
        emotions: Sequence[str] = DEFAULT_EMOTIONS,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        if not emotions:
            raise ValueError("SimulatedAffectSource needs at least one emotion")
        self.emotions = tuple(emotions)
        self.rng = rng or random.Random(seed)

    def get_name(self) -> str:
        return "simulated"

    def sample(self) -> AffectSample:
        age = self.rng.randrange(10, 40)
        return AffectSample(
            emotion=self.rng.choice(self.emotions),
            age_group=age_group_for(age),
            age=float(age),
            gender=self.rng.choice(GENDERS),
            source=self.get_name(),
        )
