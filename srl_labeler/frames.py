"""
Frame Annotation Module

A FrameAnnotation is the per-sentence semantic layer: the dependency tree,
the ordered list of predicates and, for every predicate, its arguments with
their role labels.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .config import NIL_LABEL
from .sentence import DependencyTree, Token

logger = logging.getLogger(__name__)


class FrameAnnotation:
    """
    Predicates and role assignments over one dependency tree.

    Predicates keep insertion order, which is also the order in which
    decoders process them. The NIL label is a decoding sentinel and can
    never be stored.

    Usage:
        frame = FrameAnnotation(tree)
        frame.add_predicate(chase)
        frame.add_argument(chase, dogs, "A0")
        frame.arguments_of(chase)  # {dogs: "A0"}
    """

    def __init__(self, tree: DependencyTree):
        self.tree = tree
        self._predicates: List[Token] = []
        self._arguments: Dict[Token, Dict[Token, str]] = {}

    @property
    def predicates(self) -> List[Token]:
        """Copy of the predicate list in insertion order."""
        return list(self._predicates)

    def add_predicate(self, predicate: Token) -> None:
        self._predicates.append(predicate)

    def add_predicates(self, predicates: Iterable[Token]) -> None:
        self._predicates.extend(predicates)

    def is_predicate(self, token: Token) -> bool:
        return token in self._predicates

    def add_argument(self, predicate: Token, argument: Token, label: str) -> None:
        """
        Record that argument fills role label for predicate.

        Args:
            predicate: Predicate token
            argument: Argument token
            label: Role label (never NIL)
        """
        if label == NIL_LABEL:
            raise ValueError(f"{NIL_LABEL} cannot be stored as a role label")
        self._arguments.setdefault(predicate, {})[argument] = label

    def arguments_of(self, predicate: Token) -> Dict[Token, str]:
        """Copy of the argument -> label map of a predicate."""
        return dict(self._arguments.get(predicate, {}))

    def label_of(self, predicate: Token, argument: Token) -> Optional[str]:
        return self._arguments.get(predicate, {}).get(argument)

    def trim_predicates(self) -> None:
        """Drop predicates that have no arguments."""
        kept = [p for p in self._predicates if self._arguments.get(p)]
        dropped = len(self._predicates) - len(kept)
        if dropped:
            logger.debug(f"Trimmed {dropped} predicate(s) without arguments")
        self._predicates = kept

    def copy_predicates(self) -> 'FrameAnnotation':
        """New frame over the same tree with the predicate list but no arguments."""
        frame = FrameAnnotation(self.tree)
        frame.add_predicates(self._predicates)
        return frame

    def bare(self) -> 'FrameAnnotation':
        """New frame over the same tree without predicates or arguments."""
        return FrameAnnotation(self.tree)

    def to_dict(self) -> Dict:
        """Convert to dictionary representation."""
        return {
            'tokens': [t.form for t in self.tree],
            'predicates': [
                {
                    'index': p.index,
                    'lemma': p.lemma,
                    'arguments': {a.index: label for a, label in
                                  sorted(self.arguments_of(p).items(), key=lambda e: e[0].index)},
                }
                for p in self._predicates
            ],
        }

    def __repr__(self) -> str:
        sentence = " ".join(t.form for t in self.tree)
        return f"FrameAnnotation({sentence!r}, predicates={[p.index for p in self._predicates]})"
