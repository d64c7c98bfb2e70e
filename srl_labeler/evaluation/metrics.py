"""
Evaluation Module for the Semantic Role Labeler

This module scores a parser against gold frames.

Metrics Implemented:
1. Predicate precision / recall / F1 (a predicate is correct when the
   predicted and gold frames both mark the same token)
2. Argument precision / recall / F1 per role label
3. Aggregate argument scores under the TOTAL bucket

An argument is correct when its predicate is a predicate of both frames
and the predicted (argument, label) pair equals the gold one. Every ratio
with a zero denominator is 0.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List

import pandas as pd

from ..frames import FrameAnnotation
from ..sentence import DependencyTree

logger = logging.getLogger(__name__)

TOTAL = "TOTAL"

Predictor = Callable[[DependencyTree], FrameAnnotation]


def safe_divide(numerator: float, denominator: float) -> float:
    """Division where a zero denominator yields 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def f1_of(precision: float, recall: float) -> float:
    return safe_divide(2 * precision * recall, precision + recall)


@dataclass
class PRF:
    """
    Counts and scores of one bucket.

    Attributes:
        correct: True positives
        predicted: Predicted items
        gold: Gold items
    """
    correct: int = 0
    predicted: int = 0
    gold: int = 0

    @property
    def precision(self) -> float:
        return safe_divide(self.correct, self.predicted)

    @property
    def recall(self) -> float:
        return safe_divide(self.correct, self.gold)

    @property
    def f1(self) -> float:
        return f1_of(self.precision, self.recall)

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return {
            'precision': round(self.precision, 4),
            'recall': round(self.recall, 4),
            'f1': round(self.f1, 4),
            'correct': self.correct,
            'predicted': self.predicted,
            'gold': self.gold
        }


class Evaluator:
    """
    Scores a predictor on gold frames.

    The predictor only ever sees gold.tree; the gold frames are not
    modified, so the same Evaluator can be recalculated after more
    training.

    Usage:
        evaluator = Evaluator(parser.parse, devel_frames)
        evaluator.argument_f1s()["TOTAL"]
        print(evaluator.generate_report())
    """

    def __init__(self, predictor: Predictor, gold_frames: Iterable[FrameAnnotation]):
        """
        Initialize the evaluator and compute the scores.

        Args:
            predictor: Maps a tree to a predicted frame
            gold_frames: Frames with gold predicates and arguments
        """
        self.predictor = predictor
        self.gold_frames: List[FrameAnnotation] = list(gold_frames)
        self.predicates = PRF()
        self._correct: Counter = Counter()
        self._predicted: Counter = Counter()
        self._gold: Counter = Counter()
        self.recalculate_scores()

    def recalculate_scores(self) -> None:
        """Re-parse every gold sentence and recount."""
        self.predicates = PRF()
        self._correct = Counter()
        self._predicted = Counter()
        self._gold = Counter()

        for gold in self.gold_frames:
            predicted = self.predictor(gold.tree)
            self._count(predicted, gold)

        logger.info(f"Evaluated {len(self.gold_frames)} sentences: "
                    f"argument F1 {self.argument_f1s()[TOTAL]:.4f}, "
                    f"predicate F1 {self.predicate_f1():.4f}")

    def _count(self, predicted: FrameAnnotation, gold: FrameAnnotation) -> None:
        predicted_predicates = set(predicted.predicates)
        gold_predicates = set(gold.predicates)

        self.predicates.correct += len(predicted_predicates & gold_predicates)
        self.predicates.predicted += len(predicted_predicates)
        self.predicates.gold += len(gold_predicates)

        for predicate in predicted_predicates:
            for label in predicted.arguments_of(predicate).values():
                self._predicted[label] += 1
                self._predicted[TOTAL] += 1

        for predicate in gold_predicates:
            for label in gold.arguments_of(predicate).values():
                self._gold[label] += 1
                self._gold[TOTAL] += 1

        for predicate in predicted_predicates & gold_predicates:
            gold_arguments = gold.arguments_of(predicate)
            for argument, label in predicted.arguments_of(predicate).items():
                if gold_arguments.get(argument) == label:
                    self._correct[label] += 1
                    self._correct[TOTAL] += 1

    def predicate_correct(self) -> int:
        return self.predicates.correct

    def predicate_predicted(self) -> int:
        return self.predicates.predicted

    def predicate_gold(self) -> int:
        return self.predicates.gold

    def predicate_precision(self) -> float:
        return self.predicates.precision

    def predicate_recall(self) -> float:
        return self.predicates.recall

    def predicate_f1(self) -> float:
        return self.predicates.f1

    def _labels(self) -> List[str]:
        labels = set(self._predicted) | set(self._gold)
        labels.discard(TOTAL)
        return sorted(labels) + [TOTAL]

    def argument_scores(self) -> Dict[str, PRF]:
        """PRF per label (union of predicted and gold labels) plus TOTAL."""
        return {label: PRF(self._correct[label], self._predicted[label], self._gold[label])
                for label in self._labels()}

    def argument_precisions(self) -> Dict[str, float]:
        return {label: prf.precision for label, prf in self.argument_scores().items()}

    def argument_recalls(self) -> Dict[str, float]:
        return {label: prf.recall for label, prf in self.argument_scores().items()}

    def argument_f1s(self) -> Dict[str, float]:
        return {label: prf.f1 for label, prf in self.argument_scores().items()}

    def to_frame(self) -> pd.DataFrame:
        """
        Argument scores as a table.

        Returns:
            DataFrame indexed by label (TOTAL last) with precision, recall,
            f1, correct, predicted and gold columns
        """
        rows = {label: prf.to_dict() for label, prf in self.argument_scores().items()}
        frame = pd.DataFrame.from_dict(rows, orient='index',
                                       columns=['precision', 'recall', 'f1', 'correct', 'predicted', 'gold'])
        frame.index.name = 'label'
        return frame

    def to_dict(self) -> Dict:
        """Convert all scores to a dictionary."""
        return {
            'predicates': self.predicates.to_dict(),
            'arguments': {label: prf.to_dict() for label, prf in self.argument_scores().items()},
        }

    def generate_report(self) -> str:
        """
        Generate a formatted text report.

        Returns:
            Formatted report string
        """
        lines = [
            "=" * 60,
            "Semantic Role Labeler Evaluation Report",
            "=" * 60,
            "",
            "Predicates:",
            f"  Correct:    {self.predicate_correct()}",
            f"  Predicted:  {self.predicate_predicted()}",
            f"  Gold:       {self.predicate_gold()}",
            f"  Precision:  {self.predicate_precision():.4f}",
            f"  Recall:     {self.predicate_recall():.4f}",
            f"  F1 Score:   {self.predicate_f1():.4f}",
            "",
            "Arguments:",
        ]

        lines.append(self.to_frame().to_string(float_format=lambda x: f"{x:.4f}"))
        lines.extend(["", "=" * 60])

        return "\n".join(lines)
