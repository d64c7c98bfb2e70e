"""
Configuration Module for the Semantic Role Labeler

This module contains the configuration settings for training and evaluating
the labeler, together with the role-label conventions shared by the
decoders and the evaluator.

Role labels follow the CoNLL-2008 shared task inventory:
- Numbered core roles: A0 .. A5 (exclusive per predicate)
- Modifier roles: AM-* (not exclusive)
- SU: support verb/noun relation (not exclusive)
- NIL: reserved sentinel meaning "not an argument", never stored
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List

NIL_LABEL = "NIL"
SU_LABEL = "SU"
MODIFIER_PREFIX = "AM-"

PREDICATE_LABEL = "predicate"
NOT_PREDICATE_LABEL = "not_predicate"

_NUMBERED_ROLE_RE = re.compile(r"A[0-9]")

DECODERS = ("left_to_right", "easy_first")
CLASSIFIERS = ("perceptron", "linear")
TRAINING_MODES = ("all", "predicates", "arguments", "separate")


def is_numbered_role(label: str) -> bool:
    """Check if a label is a numbered core role (A0-A9)."""
    return bool(_NUMBERED_ROLE_RE.fullmatch(label))


def is_modifier(label: str) -> bool:
    """Check if a label is a modifier role (AM-*)."""
    return label.startswith(MODIFIER_PREFIX)


def is_restricted_label(label: str) -> bool:
    """
    Check if a label takes part in the non-overlap constraint.

    Every label except NIL, SU and the modifiers is restricted: an ancestor
    and a descendant cannot both hold restricted labels for one predicate.
    """
    return not (label == NIL_LABEL or label == SU_LABEL or is_modifier(label))


@dataclass
class Config:
    """
    Configuration class for the labeler.

    Attributes:
        train_corpus: Path to the training corpus (CoNLL-2008 format)
        devel_corpus: Path to the development corpus
        model_dir: Directory where trained models are written
        decoder: Argument decoding strategy ("left_to_right" or "easy_first")
        classifier: "perceptron" (online, any training) or "linear"
            (logistic regression, unstructured training only)
        training_mode: "all" (joint), "predicates", "arguments" or
            "separate" (predicates, then arguments on gold predicates)
        epochs: Number of passes over the training frames
        burn_in: Perceptron iterations excluded from weight averaging
        feature_count_threshold: Minimum count for non-structural features
        allow_structural_features: Keep features depending on assigned arguments
        initial_capacity: Initial length of each perceptron weight vector
        log_every: Log training progress every N sentences
        argument_feature_generators: Enabled argument sub-generators
    """

    # Data Paths
    train_corpus: str = "./data/train.closed"
    devel_corpus: str = "./data/devel.closed"
    model_dir: str = "./models"

    # Decoding
    decoder: str = "easy_first"
    classifier: str = "perceptron"

    # Training
    training_mode: str = "separate"
    epochs: int = 10
    burn_in: int = 0
    feature_count_threshold: int = 3
    allow_structural_features: bool = True
    initial_capacity: int = 1024
    log_every: int = 5000

    # Feature generation
    argument_feature_generators: List[str] = field(default_factory=lambda: [
        "previousArgClass",
        "existSemDeprel",
        "linePath",
        "hiLoSupport",
        "isArgLeaf",
        "ppHead",
    ])

    def __post_init__(self):
        """Validate settings that would otherwise fail deep inside training."""
        if self.decoder not in DECODERS:
            raise ValueError(
                f"Unknown decoder {self.decoder!r}, expected one of {DECODERS}"
            )
        if self.classifier not in CLASSIFIERS:
            raise ValueError(
                f"Unknown classifier {self.classifier!r}, expected one of {CLASSIFIERS}"
            )
        if self.training_mode not in TRAINING_MODES:
            raise ValueError(
                f"Unknown training mode {self.training_mode!r}, expected one of {TRAINING_MODES}"
            )
        if self.epochs < 0:
            raise ValueError("epochs must be >= 0")
        if self.burn_in < 0:
            raise ValueError("burn_in must be >= 0")
        if self.initial_capacity < 1:
            raise ValueError("initial_capacity must be >= 1")

    @classmethod
    def from_dict(cls, config_dict: Dict) -> 'Config':
        """Create Config instance from dictionary."""
        return cls(**{k: v for k, v in config_dict.items() if k in cls.__annotations__})

    def to_dict(self) -> Dict:
        """Convert Config to dictionary."""
        return {
            'train_corpus': self.train_corpus,
            'devel_corpus': self.devel_corpus,
            'model_dir': self.model_dir,
            'decoder': self.decoder,
            'classifier': self.classifier,
            'training_mode': self.training_mode,
            'epochs': self.epochs,
            'burn_in': self.burn_in,
            'feature_count_threshold': self.feature_count_threshold,
            'allow_structural_features': self.allow_structural_features,
            'initial_capacity': self.initial_capacity,
            'log_every': self.log_every,
            'argument_feature_generators': list(self.argument_feature_generators),
        }
