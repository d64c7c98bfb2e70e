"""
Argument Decoding Module

Decoders assign role labels to the argument candidates of every predicate
in a frame, subject to two constraints:
1. A numbered role (A0-A9) is used at most once
2. An ancestor and a descendant cannot both hold restricted (core) roles

Two strategies are provided. They differ in decoding order, and therefore
in how ties and near-ties are resolved:
- LeftToRightDecoder: fixed scan over candidates in sentence order
- EasyFirstDecoder: per predicate, always commit the most confident
  (candidate, label) decision next
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Set, Tuple

from .config import NIL_LABEL, SU_LABEL, is_modifier, is_numbered_role, is_restricted_label
from .frames import FrameAnnotation
from .perceptron import format_manual_label
from .sentence import DependencyTree, Token

logger = logging.getLogger(__name__)


def argument_candidates(tree: DependencyTree, predicate: Token) -> List[Token]:
    """
    Candidate arguments of a predicate.

    Walks up from the predicate, collecting the children of the predicate
    and of every ancestor; the root itself is also a candidate.

    Args:
        tree: Sentence tree
        predicate: Predicate token

    Returns:
        Candidates sorted by sentence index
    """
    candidates: Set[Token] = set(tree.children_of(predicate))
    ancestors = tree.ancestors_of(predicate)
    for ancestor in ancestors:
        candidates.update(tree.children_of(ancestor))
    candidates.add(ancestors[-1] if ancestors else predicate)
    return sorted(candidates, key=lambda t: t.index)


class ArgumentDecoder(ABC):
    """
    Labels the arguments of the predicates of a frame.

    The classifier is anything with score_of/training_score_of returning a
    label -> score map; the feature generator maps (frame, candidate,
    predicate) to a feature set. Features are always computed against the
    frame being built, so structural features see the arguments assigned
    so far.
    """

    def __init__(self, classifier, feature_generator):
        self.classifier = classifier
        self.feature_generator = feature_generator

    def _scores_of(self, frame: FrameAnnotation, candidate: Token, predicate: Token,
                   training: bool) -> Dict[str, float]:
        features = self.feature_generator(frame, candidate, predicate)
        if training:
            return self.classifier.training_score_of(features)
        return self.classifier.score_of(features)

    @abstractmethod
    def _decode(self, frame: FrameAnnotation, training: bool) -> FrameAnnotation:
        """Label the arguments of frame's predicates into a new frame."""

    def decode(self, frame: FrameAnnotation) -> FrameAnnotation:
        """
        Label arguments with averaged weights.

        Args:
            frame: Frame whose predicates are set (its arguments are ignored)

        Returns:
            New frame with the same predicates and the decoded arguments
        """
        return self._decode(frame, training=False)

    def training_decode(self, frame: FrameAnnotation) -> FrameAnnotation:
        """Label arguments with raw weights, as used inside structured training."""
        return self._decode(frame, training=True)

    def update(self, predicted: FrameAnnotation, gold: FrameAnnotation) -> None:
        """
        Correct the classifier towards the gold arguments.

        Every candidate of every gold predicate that is also a predicate of
        the prediction yields one correction, in sentence order. Gold
        predicates missing from the prediction are skipped.

        Features are taken from the predicted arguments assigned to the
        left of each candidate, the context a left-to-right decode saw.

        Args:
            predicted: Frame produced by a training parse
            gold: Gold frame over the same tree
        """
        batch = []
        partial = predicted.copy_predicates()
        for candidate, predicate in _candidate_predicate_pairs(partial):
            predicted_label = predicted.label_of(predicate, candidate) or NIL_LABEL
            if gold.is_predicate(predicate):
                gold_label = gold.label_of(predicate, candidate) or NIL_LABEL
                batch.append((self.feature_generator(partial, candidate, predicate),
                              format_manual_label(predicted_label, gold_label)))
            if predicted_label != NIL_LABEL:
                partial.add_argument(predicate, candidate, predicted_label)
        self.classifier.manual_train(batch)

    def gold_dataset(self, frames: Iterable[FrameAnnotation]) -> List[Tuple[Set[str], str]]:
        """
        Labelled examples for unstructured training.

        Candidates are visited in sentence order and gold arguments are added
        to a partial frame as they are passed, so structural features see
        the same kind of context they see while decoding.

        Args:
            frames: Gold frames

        Returns:
            (features, gold label) pairs, NIL for non-arguments
        """
        dataset = []
        for gold in frames:
            partial = gold.copy_predicates()
            for candidate, predicate in _candidate_predicate_pairs(partial):
                gold_label = gold.label_of(predicate, candidate) or NIL_LABEL
                dataset.append((self.feature_generator(partial, candidate, predicate), gold_label))
                if gold_label != NIL_LABEL:
                    partial.add_argument(predicate, candidate, gold_label)
        return dataset

    def train(self, frames: Iterable[FrameAnnotation], epochs: int) -> None:
        dataset = self.gold_dataset(frames)
        logger.info(f"Training {type(self).__name__} on {len(dataset)} candidates")
        self.classifier.train_epochs(dataset, epochs)


def _candidate_predicate_pairs(frame: FrameAnnotation) -> List[Tuple[Token, Token]]:
    """(candidate, predicate) pairs by candidate index, then predicate order."""
    pairs = []
    for order, predicate in enumerate(frame.predicates):
        for candidate in argument_candidates(frame.tree, predicate):
            pairs.append((candidate.index, order, candidate, predicate))
    pairs.sort(key=lambda p: (p[0], p[1]))
    return [(candidate, predicate) for _, _, candidate, predicate in pairs]


class LeftToRightDecoder(ArgumentDecoder):
    """
    Scans every candidate of every predicate in sentence order.

    For each candidate the labels are tried best-first: NIL stops the scan,
    SU and modifiers are taken immediately, and any other label is taken
    only if the candidate is not restricted and, for numbered roles, the
    role has not been used yet in this decode.
    """

    def _decode(self, frame: FrameAnnotation, training: bool) -> FrameAnnotation:
        result = frame.copy_predicates()
        tree = frame.tree
        used_roles: Set[str] = set()
        restricted: Set[Token] = set()

        for candidate, predicate in _candidate_predicate_pairs(result):
            scores = self._scores_of(result, candidate, predicate, training)
            for label in sorted(scores, key=scores.get, reverse=True):
                if label == NIL_LABEL:
                    break
                if label == SU_LABEL or is_modifier(label):
                    result.add_argument(predicate, candidate, label)
                    break
                if candidate in restricted:
                    continue
                if is_numbered_role(label) and label in used_roles:
                    continue

                result.add_argument(predicate, candidate, label)
                restricted.update(tree.ancestors_of(candidate))
                restricted.update(tree.descendants_of(candidate))
                if is_numbered_role(label):
                    used_roles.add(label)
                break

        return result


class EasyFirstDecoder(ArgumentDecoder):
    """
    Most-certain-first decoding, one predicate at a time.

    Candidates whose best label is NIL are dropped; the remaining
    (candidate, best label) with the highest score is committed and its
    constraints propagated. The remaining candidates are then rescored
    against the frame built so far, until nothing is left. Numbered roles
    already taken stay stripped across rescoring. Ties go to the left-most
    candidate.
    """

    def _decode(self, frame: FrameAnnotation, training: bool) -> FrameAnnotation:
        result = frame.copy_predicates()
        tree = frame.tree

        for predicate in result.predicates:
            candidates = argument_candidates(tree, predicate)
            stripped: Set[str] = set()
            pending = self._rescore(result, candidates, predicate, stripped, training)

            while pending:
                best_candidate, best_label, best_score = None, None, float("-inf")
                for candidate, scores in pending.items():
                    label = max(scores, key=scores.get)
                    if scores[label] > best_score:
                        best_candidate, best_label, best_score = candidate, label, scores[label]

                result.add_argument(predicate, best_candidate, best_label)
                candidates.remove(best_candidate)

                if is_restricted_label(best_label):
                    spine = set(tree.ancestors_of(best_candidate)) | tree.descendants_of(best_candidate)
                    candidates = [c for c in candidates if c not in spine]

                if is_numbered_role(best_label):
                    stripped.add(best_label)

                # structural features see the argument just committed
                pending = self._rescore(result, candidates, predicate, stripped, training)

        return result

    def _rescore(self, frame: FrameAnnotation, candidates: List[Token], predicate: Token,
                 stripped: Set[str], training: bool) -> Dict[Token, Dict[str, float]]:
        """Live candidates in sentence order, with stripped labels removed."""
        pending: Dict[Token, Dict[str, float]] = {}
        for candidate in candidates:
            scores = self._scores_of(frame, candidate, predicate, training)
            scores = {label: s for label, s in scores.items() if label not in stripped}
            if _is_live(scores):
                pending[candidate] = scores
        return pending


def _is_live(scores: Dict[str, float]) -> bool:
    return bool(scores) and max(scores, key=scores.get) != NIL_LABEL


def label_set(frames: Iterable[FrameAnnotation]) -> List[str]:
    """NIL followed by every role label used in frames, sorted."""
    labels = set()
    for frame in frames:
        for predicate in frame.predicates:
            labels.update(frame.arguments_of(predicate).values())
    return [NIL_LABEL] + sorted(labels)
