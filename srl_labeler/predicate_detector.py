"""
Predicate Detection Module

Decides independently for every token whether it anchors a frame. Tokens
are visited left to right, so the detected predicates come out in sentence
order, which is also the order decoders process them in.
"""

import logging
from typing import Iterable, List, Set, Tuple

from .config import NOT_PREDICATE_LABEL, PREDICATE_LABEL
from .frames import FrameAnnotation
from .perceptron import format_manual_label
from .sentence import DependencyTree, Token

logger = logging.getLogger(__name__)


class PredicateDetector:
    """
    Binary predicate / not_predicate classifier over tokens.

    Usage:
        detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
        detector.train(gold_frames, epochs=5)
        detector.detect(tree)  # [chase]
    """

    def __init__(self, classifier, feature_generator):
        self.classifier = classifier
        self.feature_generator = feature_generator

    def _label_of(self, frame: FrameAnnotation, token: Token, training: bool) -> str:
        features = self.feature_generator(frame, token)
        if training:
            return self.classifier.training_class_of(features)
        return self.classifier.class_of(features)

    def detect(self, tree: DependencyTree, training: bool = False) -> List[Token]:
        """
        Find the predicates of a sentence.

        Args:
            tree: Sentence tree
            training: Use raw instead of averaged weights

        Returns:
            Predicates in sentence order (empty for an untrained classifier)
        """
        frame = FrameAnnotation(tree)
        return [token for token in tree
                if self._label_of(frame, token, training) == PREDICATE_LABEL]

    def annotate(self, tree: DependencyTree, training: bool = False) -> FrameAnnotation:
        """New frame over tree holding the detected predicates."""
        frame = FrameAnnotation(tree)
        frame.add_predicates(self.detect(tree, training))
        return frame

    def update(self, predicted: FrameAnnotation, gold: FrameAnnotation) -> None:
        """Correct the classifier at every token of the sentence."""
        batch = []
        for token in gold.tree:
            predicted_label = PREDICATE_LABEL if predicted.is_predicate(token) else NOT_PREDICATE_LABEL
            gold_label = PREDICATE_LABEL if gold.is_predicate(token) else NOT_PREDICATE_LABEL
            batch.append((self.feature_generator(gold, token),
                          format_manual_label(predicted_label, gold_label)))
        self.classifier.manual_train(batch)

    def gold_dataset(self, frames: Iterable[FrameAnnotation]) -> List[Tuple[Set[str], str]]:
        dataset = []
        for gold in frames:
            for token in gold.tree:
                label = PREDICATE_LABEL if gold.is_predicate(token) else NOT_PREDICATE_LABEL
                dataset.append((self.feature_generator(gold, token), label))
        return dataset

    def train(self, frames: Iterable[FrameAnnotation], epochs: int) -> None:
        dataset = self.gold_dataset(frames)
        logger.info(f"Training predicate detector on {len(dataset)} tokens")
        self.classifier.train_epochs(dataset, epochs)
