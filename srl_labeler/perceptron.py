"""
Averaged Perceptron Module

This module implements the online multiclass perceptron shared by the
predicate detector and the argument decoders.

Key Features:
1. Append-only feature and label indices (string <-> dense integer id)
2. One dense numpy weight vector per label, grown geometrically on demand
3. Lazy weight averaging: each index remembers the iteration it was last
   caught up at, so averaging costs O(1) per touched index instead of a
   full-vector pass per update
4. Online corrections from externally decoded predictions (manual training)

The averaged weight of a feature is the time-weighted mean of its raw
weight over every training iteration past the burn-in period.

References:
- Collins (2002) Discriminative Training Methods for Hidden Markov Models
- Daume III (2006) Practical Structured Learning Techniques for NLP
"""

import gzip
import json
import logging
import random
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

ARRAY_INCREMENT_FACTOR = 2

PREDICTED_LABEL_PREFIX = "predictedLabel:"
GOLD_LABEL_PREFIX = "goldLabel:"
MANUAL_LABEL_SEPARATOR = "|"


class ManualLabelError(ValueError):
    """Raised when a combined predicted/gold training label is malformed."""


def format_manual_label(predicted: Optional[str], gold: str) -> str:
    """
    Combine a predicted and a gold label into one training label.

    Args:
        predicted: Label predicted by the current model (None if no prediction)
        gold: Gold label

    Returns:
        Combined label, e.g. "predictedLabel:A0|goldLabel:A1"
    """
    return (f"{PREDICTED_LABEL_PREFIX}{predicted or ''}"
            f"{MANUAL_LABEL_SEPARATOR}{GOLD_LABEL_PREFIX}{gold}")


def parse_manual_label(combined: str) -> Tuple[Optional[str], str]:
    """
    Split a combined training label into (predicted, gold).

    Raises:
        ManualLabelError: if either part is missing or the gold label is empty
    """
    parts = combined.split(MANUAL_LABEL_SEPARATOR)
    if len(parts) != 2:
        raise ManualLabelError(f"Expected predicted and gold parts in {combined!r}")
    predicted_part, gold_part = parts
    if not predicted_part.startswith(PREDICTED_LABEL_PREFIX):
        raise ManualLabelError(f"Missing {PREDICTED_LABEL_PREFIX!r} in {combined!r}")
    if not gold_part.startswith(GOLD_LABEL_PREFIX):
        raise ManualLabelError(f"Missing {GOLD_LABEL_PREFIX!r} in {combined!r}")

    predicted = predicted_part[len(PREDICTED_LABEL_PREFIX):] or None
    gold = gold_part[len(GOLD_LABEL_PREFIX):]
    if not gold:
        raise ManualLabelError(f"Empty gold label in {combined!r}")
    return predicted, gold


class FeatureIndex:
    """Append-only bidirectional map between strings and dense ids."""

    def __init__(self, items: Iterable[str] = ()):
        self._items: List[str] = []
        self._ids: Dict[str, int] = {}
        for item in items:
            self.index_of(item, add=True)

    def index_of(self, item: str, add: bool = False) -> int:
        """Id of item, -1 if unknown and add is False."""
        idx = self._ids.get(item)
        if idx is None:
            if not add:
                return -1
            idx = len(self._items)
            self._items.append(item)
            self._ids[item] = idx
        return idx

    def get(self, idx: int) -> str:
        return self._items[idx]

    def clear(self) -> None:
        self._items.clear()
        self._ids.clear()

    def __contains__(self, item: str) -> bool:
        return item in self._ids

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)


class LabelWeights:
    """
    Weight vector of one label with lazily averaged totals.

    totals[i] holds the sum of weights[i] over every iteration up to
    last_update[i]; the remainder is added on the next catch-up.
    """

    def __init__(self, capacity: int):
        self.weights = np.zeros(capacity, dtype=np.float64)
        self.totals = np.zeros(capacity, dtype=np.float64)
        self.last_update = np.zeros(capacity, dtype=np.int64)

    def __len__(self) -> int:
        return len(self.weights)

    def ensure_capacity(self, size: int) -> None:
        """Grow the vectors geometrically until they hold size entries."""
        length = len(self.weights)
        if size <= length:
            return
        new_length = max(length, 1)
        while new_length < size:
            new_length *= ARRAY_INCREMENT_FACTOR
        extra = new_length - length
        self.weights = np.concatenate([self.weights, np.zeros(extra)])
        self.totals = np.concatenate([self.totals, np.zeros(extra)])
        self.last_update = np.concatenate([self.last_update, np.zeros(extra, dtype=np.int64)])

    def _elapsed(self, indices: np.ndarray, now: int, burn_in: int) -> np.ndarray:
        return max(now, burn_in) - np.maximum(self.last_update[indices], burn_in)

    def catch_up(self, indices: np.ndarray, now: int, burn_in: int) -> None:
        """Fold the iterations since the last touch into the totals."""
        self.totals[indices] += self.weights[indices] * self._elapsed(indices, now, burn_in)
        self.last_update[indices] = now

    def update(self, indices: np.ndarray, delta: float, now: int, burn_in: int) -> None:
        self.catch_up(indices, now, burn_in)
        self.weights[indices] += delta

    def raw_dot(self, indices: np.ndarray) -> float:
        return float(self.weights[indices].sum())

    def averaged(self, indices: np.ndarray, now: int, burn_in: int) -> np.ndarray:
        """Averaged weights at indices as of iteration now, without mutating state."""
        span = now - burn_in
        if span <= 0:
            return self.weights[indices].copy()
        pending = self.totals[indices] + self.weights[indices] * self._elapsed(indices, now, burn_in)
        return pending / span


class AveragedPerceptron:
    """
    Online multiclass perceptron with lazily averaged weights.

    Raw weights drive training-time decisions; averaged weights drive
    inference. Both index maps only grow, so ids handed out earlier stay
    valid for the lifetime of the model.

    Usage:
        perceptron = AveragedPerceptron()
        perceptron.train_epochs([({"w=dog"}, "A0"), ({"w=cat"}, "A1")], epochs=5)
        perceptron.class_of({"w=dog"})  # "A0"
    """

    def __init__(
        self,
        labels: Sequence[str] = (),
        burn_in: int = 0,
        initial_capacity: int = 1024
    ):
        """
        Initialize the perceptron.

        Args:
            labels: Labels to index up front (more are added on demand)
            burn_in: Iterations excluded from weight averaging
            initial_capacity: Initial length of every weight vector
        """
        self.burn_in = burn_in
        self.initial_capacity = initial_capacity
        self.iteration = 0
        self.feature_index = FeatureIndex()
        self.label_index = FeatureIndex()
        self._weights: List[LabelWeights] = []
        for label in labels:
            self._label_id(label, add=True)

    @property
    def labels(self) -> List[str]:
        return list(self.label_index)

    def num_features(self) -> int:
        return len(self.feature_index)

    def _label_id(self, label: str, add: bool = False) -> int:
        idx = self.label_index.index_of(label, add=add)
        while idx >= len(self._weights):
            self._weights.append(LabelWeights(max(self.initial_capacity, self.num_features())))
        return idx

    def indices_of(self, features: Iterable[str], add: bool = False) -> np.ndarray:
        """
        Array ids of a feature collection.

        Args:
            features: Feature strings (duplicates collapse)
            add: Index unseen features instead of dropping them

        Returns:
            Sorted unique feature ids
        """
        ids = set()
        for feature in features:
            idx = self.feature_index.index_of(feature, add=add)
            if idx >= 0:
                ids.add(idx)
        size = self.num_features()
        for label_weights in self._weights:
            label_weights.ensure_capacity(size)
        return np.fromiter(sorted(ids), dtype=np.int64, count=len(ids))

    def _argmax(self, scores: Dict[str, float]) -> Optional[str]:
        best_label = None
        best_score = float("-inf")
        for label, score in scores.items():
            if score > best_score:
                best_label = label
                best_score = score
        return best_label

    def _raw_scores(self, indices: np.ndarray) -> Dict[str, float]:
        return {label: self._weights[i].raw_dot(indices)
                for i, label in enumerate(self.label_index)}

    def _averaged_scores(self, indices: np.ndarray) -> Dict[str, float]:
        return {label: float(self._weights[i].averaged(indices, self.iteration, self.burn_in).sum())
                for i, label in enumerate(self.label_index)}

    def score_of(self, features: Iterable[str]) -> Dict[str, float]:
        """Averaged-weight score of every label (empty before any training)."""
        return self._averaged_scores(self.indices_of(features))

    def training_score_of(self, features: Iterable[str]) -> Dict[str, float]:
        """Raw-weight score of every label."""
        return self._raw_scores(self.indices_of(features))

    def class_of(self, features: Iterable[str]) -> Optional[str]:
        """Best label under averaged weights, None if no label is known."""
        return self._argmax(self.score_of(features))

    def training_class_of(self, features: Iterable[str]) -> Optional[str]:
        """Best label under raw weights, None if no label is known."""
        return self._argmax(self.training_score_of(features))

    def _update_indices(self, indices: np.ndarray, gold: str, predicted: Optional[str]) -> None:
        gold_id = self._label_id(gold, add=True)
        if predicted != gold:
            predicted_id = self.label_index.index_of(predicted) if predicted is not None else -1
            if predicted_id >= 0:
                self._weights[predicted_id].update(indices, -1.0, self.iteration, self.burn_in)
            self._weights[gold_id].update(indices, 1.0, self.iteration, self.burn_in)
        self.iteration += 1

    def update(self, features: Iterable[str], gold: str, predicted: Optional[str]) -> None:
        """
        Apply one perceptron step for an externally computed prediction.

        Counts as one training iteration whether or not the labels differ.

        Args:
            features: Feature strings of the example
            gold: Gold label
            predicted: Predicted label (None if the model made no prediction)
        """
        if not gold:
            raise ValueError("gold label must be a non-empty string")
        self._update_indices(self.indices_of(features, add=True), gold, predicted)

    def manual_train(self, batch: Iterable[Tuple[Iterable[str], str]]) -> None:
        """
        Apply online corrections given as combined labels.

        Args:
            batch: Pairs of (features, format_manual_label(predicted, gold))

        Raises:
            ManualLabelError: on a malformed combined label
        """
        for features, combined in batch:
            predicted, gold = parse_manual_label(combined)
            self.update(features, gold, predicted)

    def train_epochs(
        self,
        dataset: Sequence[Tuple[Iterable[str], str]],
        epochs: int,
        shuffle: bool = True
    ) -> None:
        """
        Train on a labelled dataset, then flush the averages.

        Args:
            dataset: Pairs of (features, gold label)
            epochs: Number of passes over the dataset
            shuffle: Visit examples in an epoch-seeded random order
        """
        examples = []
        for features, label in dataset:
            self._label_id(label, add=True)
            examples.append((self.indices_of(features, add=True), label))

        logger.info(f"Training perceptron on {len(examples)} examples, "
                    f"{self.num_features()} features, {len(self.label_index)} labels")

        for epoch in range(epochs):
            order = list(range(len(examples)))
            if shuffle:
                random.Random(epoch).shuffle(order)

            mistakes = 0
            for i in order:
                indices, gold = examples[i]
                predicted = self._argmax(self._raw_scores(indices))
                if predicted != gold:
                    mistakes += 1
                self._update_indices(indices, gold, predicted)

            logger.info(f"Epoch {epoch + 1} of {epochs}: {mistakes} mistakes")

        self.flush()

    def flush(self) -> None:
        """Catch up the averages of every index to the current iteration."""
        indices = np.arange(self.num_features(), dtype=np.int64)
        for label_weights in self._weights:
            label_weights.ensure_capacity(self.num_features())
            label_weights.catch_up(indices, self.iteration, self.burn_in)

    def raw_weights(self, label: str) -> np.ndarray:
        """Raw weight vector of a label, one entry per indexed feature."""
        idx = self.label_index.index_of(label)
        if idx < 0:
            return np.zeros(self.num_features())
        return self._weights[idx].weights[:self.num_features()].copy()

    def averaged_weights(self, label: str) -> np.ndarray:
        """Averaged weight vector of a label, one entry per indexed feature."""
        idx = self.label_index.index_of(label)
        if idx < 0:
            return np.zeros(self.num_features())
        indices = np.arange(self.num_features(), dtype=np.int64)
        self._weights[idx].ensure_capacity(self.num_features())
        return self._weights[idx].averaged(indices, self.iteration, self.burn_in)

    def reset(self, keep_labels: bool = False) -> None:
        """
        Clear the weights, the feature index and the iteration count.

        Args:
            keep_labels: Re-index the current labels in their current order
                instead of forgetting them
        """
        labels = self.labels if keep_labels else []
        self._weights.clear()
        self.label_index.clear()
        self.feature_index.clear()
        self.iteration = 0
        for label in labels:
            self._label_id(label, add=True)

    def snapshot(self) -> Dict:
        """Serializable state: indices, raw weights and averaging bookkeeping."""
        size = self.num_features()
        return {
            'burn_in': self.burn_in,
            'initial_capacity': self.initial_capacity,
            'iteration': self.iteration,
            'features': list(self.feature_index),
            'labels': list(self.label_index),
            'weights': [w.weights[:size].tolist() for w in self._weights],
            'totals': [w.totals[:size].tolist() for w in self._weights],
            'last_update': [w.last_update[:size].tolist() for w in self._weights],
        }

    @classmethod
    def from_snapshot(cls, state: Dict) -> 'AveragedPerceptron':
        """Rebuild a perceptron from snapshot()."""
        perceptron = cls(
            labels=state['labels'],
            burn_in=state['burn_in'],
            initial_capacity=state['initial_capacity']
        )
        perceptron.iteration = state['iteration']
        for feature in state['features']:
            perceptron.feature_index.index_of(feature, add=True)

        size = perceptron.num_features()
        for i, label_weights in enumerate(perceptron._weights):
            label_weights.ensure_capacity(size)
            label_weights.weights[:size] = state['weights'][i]
            label_weights.totals[:size] = state['totals'][i]
            label_weights.last_update[:size] = state['last_update'][i]
        return perceptron

    def save(self, path: str) -> None:
        """Write the model as gzip-compressed JSON."""
        with gzip.open(path, 'wt', encoding='utf-8') as f:
            json.dump(self.snapshot(), f)
        logger.info(f"Saved perceptron ({self.num_features()} features) to {path}")

    @classmethod
    def load(cls, path: str) -> 'AveragedPerceptron':
        """Read a model written by save()."""
        with gzip.open(path, 'rt', encoding='utf-8') as f:
            return cls.from_snapshot(json.load(f))
