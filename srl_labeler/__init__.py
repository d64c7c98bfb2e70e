"""
Dependency-based Semantic Role Labeler

This package identifies the predicates of a dependency-parsed sentence and
labels their arguments with semantic roles. It provides tools for:

1. Data Loading: Reading CoNLL-2008 corpora into gold frames
2. Predicate Detection: Per-token predicate classification
3. Argument Decoding: Left-to-right and easy-first constrained decoding
4. Training: Online structured and unstructured averaged-perceptron training
5. Feature Selection: Greedy search over argument feature generators
6. Evaluation: Predicate and per-role precision, recall and F1

Version: 1.0.0
"""

__version__ = "1.0.0"

from .config import Config
from .sentence import CyclicTreeError, DependencyTree, Token, Voice
from .frames import FrameAnnotation
from .perceptron import AveragedPerceptron, ManualLabelError
from .linear import LinearClassifier
from .decoders import ArgumentDecoder, EasyFirstDecoder, LeftToRightDecoder, argument_candidates
from .features import ArgumentFeatureGenerator, FeatureGenerator, PredicateFeatureGenerator
from .predicate_detector import PredicateDetector
from .trainer import SemanticParser, StructuredTrainer, UnstructuredTrainer
from .feature_selection import FeatureSelector
from .data_loader import CorpusFormatError, parse_corpus
from .evaluation import Evaluator

__all__ = [
    'Config',
    'Token',
    'Voice',
    'DependencyTree',
    'CyclicTreeError',
    'FrameAnnotation',
    'AveragedPerceptron',
    'ManualLabelError',
    'LinearClassifier',
    'ArgumentDecoder',
    'LeftToRightDecoder',
    'EasyFirstDecoder',
    'argument_candidates',
    'FeatureGenerator',
    'PredicateFeatureGenerator',
    'ArgumentFeatureGenerator',
    'PredicateDetector',
    'SemanticParser',
    'StructuredTrainer',
    'UnstructuredTrainer',
    'FeatureSelector',
    'parse_corpus',
    'CorpusFormatError',
    'Evaluator'
]
