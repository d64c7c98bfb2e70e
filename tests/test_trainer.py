"""
Tests for predicate detection and training, including the end-to-end
"Dogs chase cats fast" scenario.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from srl_labeler.config import NOT_PREDICATE_LABEL, PREDICATE_LABEL
from srl_labeler.decoders import EasyFirstDecoder, LeftToRightDecoder
from srl_labeler.features import ArgumentFeatureGenerator, PredicateFeatureGenerator
from srl_labeler.frames import FrameAnnotation
from srl_labeler.perceptron import AveragedPerceptron
from srl_labeler.predicate_detector import PredicateDetector
from srl_labeler.sentence import DependencyTree, Token
from srl_labeler.trainer import SemanticParser, StructuredTrainer, UnstructuredTrainer


def gold_frame():
    tree = DependencyTree([
        Token("Dogs", "dog", "NNS", "SBJ", 0, 1),
        Token("chase", "chase", "VBP", "ROOT", 1, -1),
        Token("cats", "cat", "NNS", "OBJ", 2, 1),
        Token("fast", "fast", "RB", "MNR", 3, 1),
    ])
    dogs, chase, cats, fast = tree.tokens
    frame = FrameAnnotation(tree)
    frame.add_predicate(chase)
    frame.add_argument(chase, dogs, "A0")
    frame.add_argument(chase, cats, "A1")
    frame.add_argument(chase, fast, "AM-MNR")
    return frame


def make_trainer(decoder_class=LeftToRightDecoder, epochs=10):
    detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
    decoder = decoder_class(AveragedPerceptron(), ArgumentFeatureGenerator())
    return StructuredTrainer(detector, decoder, epochs=epochs)


class TestPredicateDetector(unittest.TestCase):
    """Tests for PredicateDetector."""

    def setUp(self):
        """Set up test fixtures."""
        self.gold = gold_frame()
        self.dogs, self.chase, self.cats, self.fast = self.gold.tree.tokens

    def test_untrained_detects_nothing(self):
        """Without labels no token is a predicate."""
        detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
        self.assertEqual(detector.detect(self.gold.tree), [])
        self.assertEqual(detector.annotate(self.gold.tree).predicates, [])

    def test_gold_dataset(self):
        """One example per token."""
        detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
        labels = [label for _, label in detector.gold_dataset([self.gold])]
        self.assertEqual(labels, [NOT_PREDICATE_LABEL, PREDICATE_LABEL,
                                  NOT_PREDICATE_LABEL, NOT_PREDICATE_LABEL])

    def test_unstructured_training(self):
        """Training on gold examples finds the predicate."""
        detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
        detector.train([self.gold], epochs=5)
        self.assertEqual(detector.detect(self.gold.tree), [self.chase])

    def test_update(self):
        """Online corrections touch every token."""
        perceptron = AveragedPerceptron()
        detector = PredicateDetector(perceptron, PredicateFeatureGenerator())
        detector.update(FrameAnnotation(self.gold.tree), self.gold)
        self.assertEqual(perceptron.iteration, 4)
        self.assertEqual(set(perceptron.labels), {NOT_PREDICATE_LABEL, PREDICATE_LABEL})


class TestStructuredTrainer(unittest.TestCase):
    """Tests for StructuredTrainer."""

    def setUp(self):
        """Set up test fixtures."""
        self.gold = gold_frame()
        self.dogs, self.chase, self.cats, self.fast = self.gold.tree.tokens
        self.expected = {self.dogs: "A0", self.cats: "A1", self.fast: "AM-MNR"}

    def test_end_to_end_left_to_right(self):
        """Dogs chase cats fast: the decoder reproduces exactly the gold roles."""
        trainer = make_trainer()
        trainer.train_arguments([self.gold])
        decoded = trainer.decoder.decode(self.gold.copy_predicates())
        self.assertEqual(decoded.arguments_of(self.chase), self.expected)

    def test_end_to_end_easy_first(self):
        """The easy-first decoder learns the same sentence."""
        trainer = make_trainer(EasyFirstDecoder)
        trainer.train_arguments([self.gold])
        decoded = trainer.decoder.decode(self.gold.copy_predicates())
        self.assertEqual(decoded.arguments_of(self.chase), self.expected)

    def test_full_parse(self):
        """Predicates then arguments: parse() recovers the gold frame."""
        trainer = make_trainer()
        trainer.train_predicates([self.gold])
        trainer.train_arguments([self.gold])
        parsed = trainer.parse(self.gold.tree)
        self.assertEqual(parsed.predicates, [self.chase])
        self.assertEqual(parsed.arguments_of(self.chase), self.expected)
        self.assertEqual(trainer(self.gold.tree).to_dict(), parsed.to_dict())

    def test_joint_mode_after_separate_training(self):
        """Joint training leaves an already correct parser correct."""
        trainer = make_trainer()
        trainer.train_predicates([self.gold])
        trainer.train_arguments([self.gold])
        trainer.train([self.gold], epochs=3)
        parsed = trainer.parse(self.gold.tree)
        self.assertEqual(parsed.predicates, [self.chase])
        self.assertEqual(parsed.arguments_of(self.chase), self.expected)

    def test_joint_mode_skips_untrained_arguments(self):
        """Predicates left without arguments are trimmed before correction."""
        trainer = make_trainer(epochs=2)
        trainer.train([self.gold])
        self.assertEqual(trainer.decoder.classifier.labels, [])
        self.assertIn(PREDICATE_LABEL, trainer.detector.classifier.labels)

    def test_training_is_deterministic(self):
        """Same frames, same settings, same weights."""
        first, second = make_trainer(epochs=3), make_trainer(epochs=3)
        first.train_arguments([self.gold, gold_frame()])
        second.train_arguments([self.gold, gold_frame()])
        self.assertEqual(first.decoder.classifier.snapshot(), second.decoder.classifier.snapshot())

    def test_unknown_mode(self):
        """Unknown modes are rejected."""
        with self.assertRaises(ValueError):
            make_trainer().train([self.gold], mode="sometimes")

    def test_gold_frames_untouched(self):
        """Training never modifies the gold frames."""
        before = self.gold.to_dict()
        make_trainer(epochs=2).train([self.gold])
        self.assertEqual(self.gold.to_dict(), before)


class TestUnstructuredTrainer(unittest.TestCase):
    """Tests for UnstructuredTrainer."""

    def test_parse_after_training(self):
        """Independent training of both classifiers."""
        gold = gold_frame()
        dogs, chase, cats, fast = gold.tree.tokens
        detector = PredicateDetector(AveragedPerceptron(), PredicateFeatureGenerator())
        decoder = LeftToRightDecoder(AveragedPerceptron(), ArgumentFeatureGenerator())
        trainer = UnstructuredTrainer(detector, decoder, epochs=10)
        trainer.train([gold])

        parsed = SemanticParser(detector, decoder).parse(gold.tree)
        self.assertEqual(parsed.predicates, [chase])
        self.assertEqual(parsed.arguments_of(chase), {dogs: "A0", cats: "A1", fast: "AM-MNR"})


if __name__ == '__main__':
    unittest.main()
