from __future__ import annotations

import logging
import pickle
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from sklearn.feature_extraction import DictVectorizer
from sklearn.linear_model import LogisticRegression

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinearConfig:
    C: float = 1.0
    max_iter: int = 200
    random_state: int = 42


class LinearClassifier:
    """Batch logistic-regression classifier over sparse binary features.

    Offers the scoring surface of AveragedPerceptron so it can stand in for
    it during unstructured training. It has no online update, so structured
    training still needs the perceptron.
    """

    def __init__(self, config: LinearConfig | None = None) -> None:
        self.config = config or LinearConfig()
        self._vectorizer: DictVectorizer | None = None
        self._model: LogisticRegression | None = None
        self._constant: str | None = None

    @property
    def labels(self) -> list[str]:
        if self._constant is not None:
            return [self._constant]
        if self._model is None:
            return []
        return [str(c) for c in self._model.classes_]

    def train(self, dataset: Sequence[tuple[Iterable[str], str]]) -> None:
        rows = [{f: 1.0 for f in features} for features, _ in dataset]
        y = [label for _, label in dataset]
        if not y:
            raise ValueError("cannot train on an empty dataset")

        self._vectorizer = DictVectorizer(sparse=True)
        X = self._vectorizer.fit_transform(rows)

        if len(set(y)) < 2:
            # LogisticRegression needs two classes
            self._constant = y[0]
            self._model = None
            return

        self._constant = None
        self._model = LogisticRegression(
            C=self.config.C, max_iter=self.config.max_iter, random_state=self.config.random_state
        )
        self._model.fit(X, y)
        logger.info(f"Trained logistic regression on {X.shape[0]} examples, {X.shape[1]} features")

    def train_epochs(self, dataset: Sequence[tuple[Iterable[str], str]], epochs: int = 1, shuffle: bool = True) -> None:
        """Same signature as the perceptron; the solver decides its own iterations."""
        self.train(dataset)

    def score_of(self, features: Iterable[str]) -> dict[str, float]:
        if self._constant is not None:
            return {self._constant: 0.0}
        if self._model is None or self._vectorizer is None:
            return {}
        X = self._vectorizer.transform([{f: 1.0 for f in features}])
        log_proba = np.asarray(self._model.predict_log_proba(X))[0]
        return {str(label): float(score) for label, score in zip(self._model.classes_, log_proba)}

    def class_of(self, features: Iterable[str]) -> str | None:
        scores = self.score_of(features)
        if not scores:
            return None
        return max(scores, key=scores.get)

    training_score_of = score_of
    training_class_of = class_of

    def save(self, path: str) -> None:
        with open(path, "wb") as f:
            pickle.dump(self, f)
        logger.info(f"Saved linear classifier to {path}")

    @classmethod
    def load(cls, path: str) -> LinearClassifier:
        with open(path, "rb") as f:
            classifier = pickle.load(f)
        if not isinstance(classifier, cls):
            raise TypeError(f"{path} does not hold a {cls.__name__}")
        return classifier
