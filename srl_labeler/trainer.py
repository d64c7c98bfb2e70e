"""
Semantic Parser Training Module

This module wires a PredicateDetector and an ArgumentDecoder into a full
parser (GEN) and trains them.

Training Strategies:
1. Structured: online perceptron training driven by the parser's own
   (raw-weight) output, corrected sentence by sentence
2. Unstructured: each classifier trained independently on gold examples

Epoch order is shuffled with the epoch number as seed, so two runs over the
same frames with the same settings produce the same weights.
"""

import logging
import random
from typing import List, Optional, Sequence

from .decoders import ArgumentDecoder
from .frames import FrameAnnotation
from .predicate_detector import PredicateDetector
from .sentence import DependencyTree

logger = logging.getLogger(__name__)


class SemanticParser:
    """
    Full predicate + argument parser.

    Usage:
        parser = SemanticParser(detector, decoder)
        frame = parser.parse(tree)
    """

    def __init__(self, detector: PredicateDetector, decoder: ArgumentDecoder):
        self.detector = detector
        self.decoder = decoder

    def parse(self, tree: DependencyTree) -> FrameAnnotation:
        """
        Detect predicates and label their arguments with averaged weights.

        Args:
            tree: Sentence tree

        Returns:
            Predicted frame over tree
        """
        return self.decoder.decode(self.detector.annotate(tree))

    __call__ = parse

    def training_parse(self, tree: DependencyTree) -> FrameAnnotation:
        """Same as parse() but with the raw training weights."""
        return self.decoder.training_decode(self.detector.annotate(tree, training=True))


class StructuredTrainer(SemanticParser):
    """
    Online structured training of both classifiers.

    Modes:
    - all: training parse, trim predicates without arguments, then correct
      both the detector and the decoder
    - predicates: correct the detector only
    - arguments: decode gold predicates and correct the decoder only

    The classifiers must support online updates (AveragedPerceptron).
    """

    MODES = ("all", "predicates", "arguments")

    def __init__(self, detector: PredicateDetector, decoder: ArgumentDecoder,
                 epochs: int = 10, log_every: int = 5000):
        super().__init__(detector, decoder)
        self.epochs = epochs
        self.log_every = log_every

    def train(self, gold_frames: Sequence[FrameAnnotation], epochs: Optional[int] = None,
              mode: str = "all") -> None:
        """
        Train on gold frames.

        Args:
            gold_frames: Frames with gold predicates and arguments
            epochs: Number of passes (defaults to self.epochs)
            mode: One of MODES
        """
        if mode not in self.MODES:
            raise ValueError(f"Unknown training mode {mode!r}, expected one of {self.MODES}")
        epochs = self.epochs if epochs is None else epochs

        for epoch in range(epochs):
            logger.info(f"Begin training epoch {epoch + 1} of {epochs} ({mode})")
            frames: List[FrameAnnotation] = list(gold_frames)
            random.Random(epoch).shuffle(frames)

            for i, gold in enumerate(frames, 1):
                self._train_one(gold, mode)
                if self.log_every and i % self.log_every == 0:
                    logger.info(f"Trained {i} sentences of {len(frames)}")

        if mode in ("all", "predicates"):
            self.detector.classifier.flush()
        if mode in ("all", "arguments"):
            self.decoder.classifier.flush()

    def _train_one(self, gold: FrameAnnotation, mode: str) -> None:
        if mode == "all":
            predicted = self.training_parse(gold.tree)
            predicted.trim_predicates()
            self.detector.update(predicted, gold)
            self.decoder.update(predicted, gold)
        elif mode == "predicates":
            predicted = self.detector.annotate(gold.tree, training=True)
            self.detector.update(predicted, gold)
        else:
            predicted = self.decoder.training_decode(gold.copy_predicates())
            self.decoder.update(predicted, gold)

    def train_predicates(self, gold_frames: Sequence[FrameAnnotation],
                         epochs: Optional[int] = None) -> None:
        self.train(gold_frames, epochs, mode="predicates")

    def train_arguments(self, gold_frames: Sequence[FrameAnnotation],
                        epochs: Optional[int] = None) -> None:
        self.train(gold_frames, epochs, mode="arguments")


class UnstructuredTrainer(SemanticParser):
    """Trains detector and decoder independently on gold examples."""

    def __init__(self, detector: PredicateDetector, decoder: ArgumentDecoder, epochs: int = 10):
        super().__init__(detector, decoder)
        self.epochs = epochs

    def train(self, gold_frames: Sequence[FrameAnnotation], epochs: Optional[int] = None) -> None:
        epochs = self.epochs if epochs is None else epochs
        self.detector.train(gold_frames, epochs)
        self.decoder.train(gold_frames, epochs)

    def train_predicates(self, gold_frames: Sequence[FrameAnnotation],
                         epochs: Optional[int] = None) -> None:
        self.detector.train(gold_frames, self.epochs if epochs is None else epochs)

    def train_arguments(self, gold_frames: Sequence[FrameAnnotation],
                        epochs: Optional[int] = None) -> None:
        self.decoder.train(gold_frames, self.epochs if epochs is None else epochs)
