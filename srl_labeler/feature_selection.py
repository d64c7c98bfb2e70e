"""
Feature Selection Module

Greedy search over the argument feature sub-generators, scored by the
TOTAL argument F1 of a parser retrained from scratch on each candidate set.

Search Procedure:
1. Start from the currently enabled sub-generators
2. Recruit more: find disabled sub-generators whose addition alone
   raises the score
3. Shake off: from the enlarged set, repeatedly drop the sub-generators
   that contribute least while the score keeps improving
4. Stop when nothing can be recruited or the shaken set scores lower than
   the current one
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from .evaluation.metrics import TOTAL, Evaluator
from .features import ArgumentFeatureGenerator
from .frames import FrameAnnotation
from .trainer import StructuredTrainer

logger = logging.getLogger(__name__)


class FeatureSelector:
    """
    Recruit-more / shake-off search for argument feature sub-generators.

    Scores are memoized per enabled set, so each set is trained at most
    once.

    Usage:
        selector = FeatureSelector(trainer, argument_features, train_frames, devel_frames)
        best = selector.select()
    """

    def __init__(self, trainer: StructuredTrainer, feature_generator: ArgumentFeatureGenerator,
                 training_frames: Sequence[FrameAnnotation], testing_frames: Sequence[FrameAnnotation],
                 epochs: Optional[int] = None):
        """
        Initialize the selector.

        Args:
            trainer: Trainer whose decoder uses feature_generator
            feature_generator: Argument feature generator to configure
            training_frames: Gold frames to train on
            testing_frames: Gold frames to score against
            epochs: Training epochs per candidate set (trainer default if None)
        """
        self.trainer = trainer
        self.feature_generator = feature_generator
        self.training_frames = list(training_frames)
        self.testing_frames = list(testing_frames)
        self.epochs = epochs
        self._scores: Dict[FrozenSet[str], float] = {}

    def _train(self, enabled: Iterable[str]) -> None:
        self.trainer.detector.classifier.reset(keep_labels=True)
        self.trainer.decoder.classifier.reset(keep_labels=True)
        self.feature_generator.set_enabled(enabled)
        self.trainer.train_predicates(self.training_frames, self.epochs)
        self.trainer.train_arguments(self.training_frames, self.epochs)

    def score_of(self, enabled: Iterable[str]) -> float:
        """TOTAL argument F1 after training with exactly these sub-generators."""
        key = frozenset(enabled)
        if key not in self._scores:
            self._train(key)
            score = Evaluator(self.trainer.parse, self.testing_frames).argument_f1s()[TOTAL]
            logger.info(f"Feature set {sorted(key)}: F1 {score:.4f}")
            self._scores[key] = score
        return self._scores[key]

    def recruit_more(self, enabled: Set[str]) -> Set[str]:
        """Disabled sub-generators whose addition alone raises the score."""
        base = self.score_of(enabled)
        disabled = set(self.feature_generator.feature_generator_names()) - enabled
        return {name for name in sorted(disabled) if self.score_of(enabled | {name}) > base}

    def shake_off(self, enabled: Set[str]) -> Set[str]:
        """Drop weakly contributing sub-generators while the score improves."""
        best = set(enabled)
        while True:
            original = set(best)
            # score without each member; the least useful member has the highest score
            removal_scores = {name: self.score_of(original - {name}) for name in original}
            ordered: List[str] = sorted(original, key=lambda n: (-removal_scores[n], n))

            best_score = self.score_of(best)
            for i in range(1, len(ordered)):
                remaining = set(ordered[i:])
                score = self.score_of(remaining)
                if score > best_score:
                    best, best_score = remaining, score

            if best == original:
                return original

    def select(self) -> Set[str]:
        """
        Run the search and leave the generator and the classifiers trained
        with the selected set.

        Returns:
            Names of the selected sub-generators
        """
        current = self.feature_generator.enabled_features()
        while True:
            additions = self.recruit_more(current)
            if not additions:
                break
            updated = self.shake_off(current | additions)
            if updated == current or self.score_of(current) > self.score_of(updated):
                break
            current = updated

        logger.info(f"Selected argument features: {sorted(current)}")
        self._train(current)
        return current
