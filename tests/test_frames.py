"""
Tests for frame annotations, role-label helpers and configuration.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from srl_labeler.config import (
    Config, is_modifier, is_numbered_role, is_restricted_label
)
from srl_labeler.frames import FrameAnnotation
from srl_labeler.sentence import DependencyTree, Token


def dogs_chase_cats_fast():
    return DependencyTree([
        Token("Dogs", "dog", "NNS", "SBJ", 0, 1),
        Token("chase", "chase", "VBP", "ROOT", 1, -1),
        Token("cats", "cat", "NNS", "OBJ", 2, 1),
        Token("fast", "fast", "RB", "MNR", 3, 1),
    ])


class TestRoleLabels(unittest.TestCase):
    """Tests for role-label classification."""

    def test_numbered_roles(self):
        """Only A plus a single digit is numbered."""
        self.assertTrue(is_numbered_role("A0"))
        self.assertTrue(is_numbered_role("A5"))
        self.assertFalse(is_numbered_role("A10"))
        self.assertFalse(is_numbered_role("AM-TMP"))
        self.assertFalse(is_numbered_role("SU"))

    def test_modifiers(self):
        """Test AM- prefix detection."""
        self.assertTrue(is_modifier("AM-LOC"))
        self.assertFalse(is_modifier("A1"))

    def test_restricted(self):
        """NIL, SU and modifiers are unrestricted; everything else is."""
        self.assertTrue(is_restricted_label("A0"))
        self.assertTrue(is_restricted_label("R-A0"))
        self.assertFalse(is_restricted_label("NIL"))
        self.assertFalse(is_restricted_label("SU"))
        self.assertFalse(is_restricted_label("AM-MNR"))


class TestConfig(unittest.TestCase):
    """Tests for configuration module."""

    def test_default_config(self):
        """Test default configuration creation."""
        config = Config()
        self.assertEqual(config.decoder, "easy_first")
        self.assertEqual(config.feature_count_threshold, 3)
        self.assertIn("ppHead", config.argument_feature_generators)

    def test_round_trip(self):
        """to_dict and from_dict agree."""
        config = Config(decoder="left_to_right", epochs=3)
        self.assertEqual(Config.from_dict(config.to_dict()), config)

    def test_from_dict_ignores_unknown_keys(self):
        """Unknown keys in a config file are dropped."""
        config = Config.from_dict({"epochs": 2, "unused": True})
        self.assertEqual(config.epochs, 2)

    def test_validation(self):
        """Invalid settings fail early."""
        with self.assertRaises(ValueError):
            Config(decoder="random")
        with self.assertRaises(ValueError):
            Config(training_mode="sometimes")
        with self.assertRaises(ValueError):
            Config(epochs=-1)


class TestFrameAnnotation(unittest.TestCase):
    """Tests for FrameAnnotation."""

    def setUp(self):
        """Set up test fixtures."""
        self.tree = dogs_chase_cats_fast()
        self.dogs, self.chase, self.cats, self.fast = self.tree.tokens
        self.frame = FrameAnnotation(self.tree)
        self.frame.add_predicate(self.chase)

    def test_arguments(self):
        """Test storing and reading arguments."""
        self.frame.add_argument(self.chase, self.dogs, "A0")
        self.frame.add_argument(self.chase, self.fast, "AM-MNR")
        self.assertEqual(self.frame.arguments_of(self.chase),
                         {self.dogs: "A0", self.fast: "AM-MNR"})
        self.assertEqual(self.frame.label_of(self.chase, self.dogs), "A0")
        self.assertIsNone(self.frame.label_of(self.chase, self.cats))
        self.assertEqual(self.frame.arguments_of(self.dogs), {})

    def test_nil_rejected(self):
        """NIL can never be stored."""
        with self.assertRaises(ValueError):
            self.frame.add_argument(self.chase, self.dogs, "NIL")

    def test_returned_collections_are_copies(self):
        """Mutating returned collections leaves the frame untouched."""
        self.frame.predicates.append(self.dogs)
        self.frame.arguments_of(self.chase)[self.cats] = "A1"
        self.assertEqual(self.frame.predicates, [self.chase])
        self.assertEqual(self.frame.arguments_of(self.chase), {})

    def test_trim_predicates(self):
        """Predicates without arguments are dropped, order is kept."""
        self.frame.add_predicate(self.cats)
        self.frame.add_predicate(self.fast)
        self.frame.add_argument(self.fast, self.cats, "A1")
        self.frame.add_argument(self.chase, self.dogs, "A0")
        self.frame.trim_predicates()
        self.assertEqual(self.frame.predicates, [self.chase, self.fast])

    def test_copy_predicates_and_bare(self):
        """Copies share the tree but not the arguments."""
        self.frame.add_argument(self.chase, self.dogs, "A0")
        copy = self.frame.copy_predicates()
        self.assertIs(copy.tree, self.tree)
        self.assertEqual(copy.predicates, [self.chase])
        self.assertEqual(copy.arguments_of(self.chase), {})
        self.assertEqual(self.frame.bare().predicates, [])

    def test_to_dict(self):
        """Test dictionary conversion."""
        self.frame.add_argument(self.chase, self.cats, "A1")
        self.frame.add_argument(self.chase, self.dogs, "A0")
        result = self.frame.to_dict()
        self.assertEqual(result['tokens'], ["Dogs", "chase", "cats", "fast"])
        self.assertEqual(result['predicates'][0]['arguments'], {0: "A0", 2: "A1"})


if __name__ == '__main__':
    unittest.main()
