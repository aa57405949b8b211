"""
Decision Mapper - turns raw classifier scores into the text shown to the user.

The policy is a three-way confidence gate, not an argmax: a class is only
reported when its probability is strictly above the threshold, otherwise
the result is "uncertain" and both probabilities are shown.
"""
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from core.events import ClassificationResult, Verdict
from utils.constants import DEFAULT_THRESHOLD, DEFAULT_CLASS_COUNT, DEFAULT_TARGET_LABEL
from utils.failures import ConfigError, InferenceFailure


def softmax(scores: Sequence[float]) -> np.ndarray:
    """Numerically stable softmax over a 1-D score vector."""
    logits = np.asarray(scores, dtype=np.float64).reshape(-1)
    if logits.size == 0:
        raise ValueError("softmax of an empty score vector")
    exps = np.exp(logits - logits.max())
    return exps / exps.sum()


def _percent(p: float) -> int:
    return int(p * 100)


@dataclass(frozen=True)
class DecisionPolicy:
    """Threshold, class count and wording of the yes/no decision."""
    threshold: float = DEFAULT_THRESHOLD
    class_count: int = DEFAULT_CLASS_COUNT
    target_label: str = DEFAULT_TARGET_LABEL

    def __post_init__(self):
        if not 0.0 < self.threshold < 1.0:
            raise ConfigError(f"decision.threshold must be in (0, 1), got {self.threshold}")
        if self.class_count < 2:
            raise ConfigError(f"decision.class_count must be at least 2, got {self.class_count}")

    @classmethod
    def from_config(cls, config) -> "DecisionPolicy":
        return cls(
            threshold=config.get_float('decision.threshold', DEFAULT_THRESHOLD),
            class_count=config.get_int('decision.class_count', DEFAULT_CLASS_COUNT),
            target_label=str(config.get('decision.target_label', DEFAULT_TARGET_LABEL)),
        )


class DecisionMapper:
    """
    Maps OutputScores to a ClassificationResult.

    Class 0 is the target, class 1 is "not the target". With the default
    two classes at most one of them can clear a threshold above 0.5.
    """

    def __init__(self, policy: DecisionPolicy = DecisionPolicy()):
        self.policy = policy

    def map(self, scores: Sequence[float]) -> ClassificationResult:
        scores = np.asarray(scores, dtype=np.float64).reshape(-1)
        if scores.size != self.policy.class_count:
            raise InferenceFailure(
                f"Expected {self.policy.class_count} scores, got {scores.size}"
            )
        if not np.all(np.isfinite(scores)):
            raise InferenceFailure(f"Non-finite scores: {scores.tolist()}")

        probs = softmax(scores)
        p_target, p_other = float(probs[0]), float(probs[1])
        label = self.policy.target_label
        threshold = self.policy.threshold

        if p_target > threshold:
            verdict = Verdict.TARGET
            text = f"It's {label}! Confidence: {_percent(p_target)}%"
        elif p_other > threshold:
            verdict = Verdict.NOT_TARGET
            text = f"Not {label}. Confidence: {_percent(p_other)}%"
        else:
            verdict = Verdict.UNCERTAIN
            text = (
                f"Uncertain result. ({label}: {_percent(p_target)}%, "
                f"Not {label}: {_percent(p_other)}%)"
            )

        return ClassificationResult(
            verdict=verdict,
            probabilities=tuple(float(p) for p in probs),
            text=text,
        )
