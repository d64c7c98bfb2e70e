#!/usr/bin/env python3
"""
Dependency-based Semantic Role Labeler

Main entry point for the labeler. This script provides:
1. Training mode (structured or unstructured, optional feature selection)
2. Evaluation mode against a gold corpus

Usage:
    python -m srl_labeler.main train --config config.json
    python -m srl_labeler.main train --unstructured --epochs 5
    python -m srl_labeler.main evaluate --corpus data/devel.closed -o report.json
"""

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from .config import CLASSIFIERS, NOT_PREDICATE_LABEL, PREDICATE_LABEL, TRAINING_MODES, Config
from .data_loader import parse_corpus
from .decoders import ArgumentDecoder, EasyFirstDecoder, LeftToRightDecoder, label_set
from .evaluation.metrics import Evaluator
from .feature_selection import FeatureSelector
from .features import ArgumentFeatureGenerator, PredicateFeatureGenerator
from .frames import FrameAnnotation
from .linear import LinearClassifier
from .perceptron import AveragedPerceptron
from .predicate_detector import PredicateDetector
from .trainer import SemanticParser, StructuredTrainer, UnstructuredTrainer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# (predicate model, argument model) file names per classifier kind
MODEL_FILES = {
    "perceptron": ("predicate_classifier.json.gz", "argument_classifier.json.gz"),
    "linear": ("predicate_classifier.pkl", "argument_classifier.pkl"),
}
FEATURES_FILE = "features.json"

DECODER_CLASSES = {
    "left_to_right": LeftToRightDecoder,
    "easy_first": EasyFirstDecoder,
}

CLASSIFIER_CLASSES = {
    "perceptron": AveragedPerceptron,
    "linear": LinearClassifier,
}


def build_components(
    config: Config,
    frames: Optional[List[FrameAnnotation]] = None
) -> Tuple[PredicateDetector, ArgumentDecoder]:
    """
    Create untrained detector and decoder.

    Args:
        config: Configuration object
        frames: Gold frames used to reduce the feature sets and seed the
            role labels (skipped if None)

    Returns:
        (detector, decoder)
    """
    predicate_features = PredicateFeatureGenerator(
        feature_count_threshold=config.feature_count_threshold
    )
    argument_features = ArgumentFeatureGenerator(
        enabled=config.argument_feature_generators,
        feature_count_threshold=config.feature_count_threshold,
        allow_structural_features=config.allow_structural_features
    )

    roles: List[str] = []
    if frames is not None:
        predicate_features.reduce_feature_set(frames)
        argument_features.reduce_feature_set(frames)
        roles = label_set(frames)

    if config.classifier == "linear":
        predicate_classifier, argument_classifier = LinearClassifier(), LinearClassifier()
    else:
        predicate_classifier = AveragedPerceptron(
            [NOT_PREDICATE_LABEL, PREDICATE_LABEL], config.burn_in, config.initial_capacity
        )
        argument_classifier = AveragedPerceptron(roles, config.burn_in, config.initial_capacity)

    detector = PredicateDetector(predicate_classifier, predicate_features)
    decoder = DECODER_CLASSES[config.decoder](argument_classifier, argument_features)
    return detector, decoder


def save_model(model_dir: str, detector: PredicateDetector, decoder: ArgumentDecoder, config: Config) -> None:
    """Write both perceptrons and the feature configuration to model_dir."""
    path = Path(model_dir)
    path.mkdir(parents=True, exist_ok=True)

    predicate_file, argument_file = MODEL_FILES[config.classifier]
    detector.classifier.save(str(path / predicate_file))
    decoder.classifier.save(str(path / argument_file))
    with open(path / FEATURES_FILE, 'w') as f:
        json.dump({
            'config': config.to_dict(),
            'predicate_features': detector.feature_generator.config_snapshot(),
            'argument_features': decoder.feature_generator.config_snapshot(),
        }, f, indent=2)

    logger.info(f"Model saved to: {path}")


def load_model(model_dir: str) -> Tuple[PredicateDetector, ArgumentDecoder, Config]:
    """Read a model written by save_model()."""
    path = Path(model_dir)
    with open(path / FEATURES_FILE, 'r') as f:
        state = json.load(f)

    config = Config.from_dict(state['config'])
    detector, decoder = build_components(config)
    detector.feature_generator.restore_config(state['predicate_features'])
    decoder.feature_generator.restore_config(state['argument_features'])
    classifier_class = CLASSIFIER_CLASSES[config.classifier]
    predicate_file, argument_file = MODEL_FILES[config.classifier]
    detector.classifier = classifier_class.load(str(path / predicate_file))
    decoder.classifier = classifier_class.load(str(path / argument_file))
    return detector, decoder, config


def run_training(config: Config, unstructured: bool = False, select_features: bool = False) -> None:
    """
    Train a labeler on config.train_corpus and save it to config.model_dir.

    Args:
        config: Configuration object
        unstructured: Train each classifier independently on gold examples
        select_features: Search argument sub-generators against config.devel_corpus
    """
    print("=" * 70)
    print("Semantic Role Labeler - Training Mode")
    print("=" * 70)

    if config.classifier == "linear" and not unstructured:
        raise ValueError("The linear classifier has no online update; use unstructured training")

    frames = parse_corpus(config.train_corpus)
    detector, decoder = build_components(config, frames)

    if unstructured:
        UnstructuredTrainer(detector, decoder, config.epochs).train(frames)
    else:
        trainer = StructuredTrainer(detector, decoder, config.epochs, config.log_every)
        if select_features:
            selector = FeatureSelector(trainer, decoder.feature_generator, frames,
                                       parse_corpus(config.devel_corpus))
            config.argument_feature_generators = sorted(selector.select())
        elif config.training_mode == "separate":
            trainer.train_predicates(frames)
            trainer.train_arguments(frames)
        else:
            trainer.train(frames, mode=config.training_mode)

    save_model(config.model_dir, detector, decoder, config)


def run_evaluation(model_dir: str, corpus: str, output: Optional[str] = None) -> None:
    """
    Evaluate a saved model on a gold corpus.

    Args:
        model_dir: Directory written by the train command
        corpus: Gold corpus path
        output: Optional JSON report path
    """
    print("=" * 70)
    print("Semantic Role Labeler - Evaluation Mode")
    print("=" * 70)

    detector, decoder, _ = load_model(model_dir)
    parser = SemanticParser(detector, decoder)
    evaluator = Evaluator(parser.parse, parse_corpus(corpus))

    print("\n" + evaluator.generate_report())

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(evaluator.to_dict(), f, indent=2)
        print(f"\nReport saved to: {output_path}")


def load_config(path: Optional[str]) -> Config:
    """Config from a JSON file, defaults if no file is given."""
    if path and Path(path).exists():
        with open(path, 'r') as f:
            return Config.from_dict(json.load(f))
    if path:
        logger.warning(f"Config file {path} not found, using defaults")
    return Config()


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Dependency-based Semantic Role Labeler"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to configuration JSON file"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    train_parser = subparsers.add_parser("train", help="Train and save a model")
    train_parser.add_argument("--train-corpus", type=str, help="Training corpus path")
    train_parser.add_argument("--devel-corpus", type=str, help="Development corpus path")
    train_parser.add_argument("--model-dir", type=str, help="Output model directory")
    train_parser.add_argument("--decoder", choices=sorted(DECODER_CLASSES), help="Argument decoder")
    train_parser.add_argument("--classifier", choices=CLASSIFIERS, help="Classifier for both stages")
    train_parser.add_argument("--mode", choices=TRAINING_MODES, help="Structured training mode")
    train_parser.add_argument("--epochs", type=int, help="Number of training epochs")
    train_parser.add_argument(
        "--unstructured",
        action="store_true",
        help="Train each classifier independently on gold examples"
    )
    train_parser.add_argument(
        "--select-features",
        action="store_true",
        help="Search argument feature generators against the development corpus"
    )

    eval_parser = subparsers.add_parser("evaluate", help="Evaluate a saved model")
    eval_parser.add_argument("--model-dir", type=str, help="Model directory")
    eval_parser.add_argument("--corpus", type=str, help="Gold corpus (defaults to the development corpus)")
    eval_parser.add_argument("--output", "-o", type=str, help="JSON report path")

    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.model_dir:
        config.model_dir = args.model_dir

    if args.command == "train":
        if args.train_corpus:
            config.train_corpus = args.train_corpus
        if args.devel_corpus:
            config.devel_corpus = args.devel_corpus
        if args.decoder:
            config.decoder = args.decoder
        if args.classifier:
            config.classifier = args.classifier
        if args.mode:
            config.training_mode = args.mode
        if args.epochs is not None:
            config.epochs = args.epochs
        run_training(config, args.unstructured, args.select_features)
    else:
        run_evaluation(config.model_dir, args.corpus or config.devel_corpus, args.output)


if __name__ == "__main__":
    main()
