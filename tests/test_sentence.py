"""
Tests for the token and dependency tree structures.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from srl_labeler.sentence import (
    EMPTY_TOKEN, CyclicTreeError, DependencyTree, Token, Voice
)


def make_tree(rows):
    """Build a tree from (form, lemma, pos, deprel, head) rows."""
    return DependencyTree([
        Token(form, lemma, pos, deprel, i, head)
        for i, (form, lemma, pos, deprel, head) in enumerate(rows)
    ])


def five_token_tree():
    #        saw
    #       /   \
    #     dog   cat
    #     /       \
    #   The        a
    return make_tree([
        ("The", "the", "DT", "NMOD", 1),
        ("dog", "dog", "NN", "SBJ", 2),
        ("saw", "see", "VBD", "ROOT", -1),
        ("a", "a", "DT", "NMOD", 4),
        ("cat", "cat", "NN", "OBJ", 2),
    ])


class TestToken(unittest.TestCase):
    """Tests for Token."""

    def test_value_equality(self):
        """Tokens with equal fields are equal and hash alike."""
        a = Token("dog", "dog", "NN", "SBJ", 1, 2)
        b = Token("dog", "dog", "NN", "SBJ", 1, 2)
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)

    def test_predicates(self):
        """Test root, verb, noun and ordering helpers."""
        verb = Token("saw", "see", "VBD", "ROOT", 2, -1)
        noun = Token("dog", "dog", "NN", "SBJ", 1, 2)
        self.assertTrue(verb.is_root())
        self.assertFalse(noun.is_root())
        self.assertTrue(verb.is_verb())
        self.assertTrue(noun.is_noun())
        self.assertTrue(noun.comes_before(verb))
        self.assertFalse(verb.comes_before(noun))

    def test_empty_token(self):
        """The empty token has blank fields and negative indices."""
        self.assertEqual(EMPTY_TOKEN.form, "")
        self.assertEqual(EMPTY_TOKEN.index, -1)
        self.assertEqual(EMPTY_TOKEN.head, -1)


class TestDependencyTree(unittest.TestCase):
    """Tests for tree queries on a hand-built 5-token tree."""

    def setUp(self):
        """Set up test fixtures."""
        self.tree = five_token_tree()
        self.the, self.dog, self.saw, self.a, self.cat = self.tree.tokens

    def test_add_token_out_of_order(self):
        """Appending a token with the wrong index fails."""
        with self.assertRaises(ValueError):
            self.tree.add_token(Token("x", "x", "NN", "OBJ", 7, 2))

    def test_basic_access(self):
        """Test length, iteration, root and token lookup."""
        self.assertEqual(len(self.tree), 5)
        self.assertEqual([t.form for t in self.tree], ["The", "dog", "saw", "a", "cat"])
        self.assertEqual(self.tree.root, self.saw)
        self.assertEqual(self.tree.token_at(4), self.cat)
        self.assertIsNone(DependencyTree().root)

    def test_parent_and_children(self):
        """Test parent and child lookup."""
        self.assertEqual(self.tree.parent_of(self.the), self.dog)
        self.assertIsNone(self.tree.parent_of(self.saw))
        self.assertEqual(self.tree.children_of(self.saw), [self.dog, self.cat])
        self.assertEqual(self.tree.children_of(self.the), [])

    def test_ancestors(self):
        """Ancestors run from the head up to the root."""
        self.assertEqual(self.tree.ancestors_of(self.the), [self.dog, self.saw])
        self.assertEqual(self.tree.ancestors_of(self.cat), [self.saw])
        self.assertEqual(self.tree.ancestors_of(self.saw), [])

    def test_descendants(self):
        """Test subtree sets."""
        self.assertEqual(self.tree.descendants_of(self.saw),
                         {self.the, self.dog, self.a, self.cat})
        self.assertEqual(self.tree.descendants_of(self.dog), {self.the})
        self.assertEqual(self.tree.descendants_of(self.a), set())

    def test_common_ancestor(self):
        """Test lowest common ancestors."""
        self.assertEqual(self.tree.common_ancestor_of(self.the, self.a), self.saw)
        self.assertEqual(self.tree.common_ancestor_of(self.the, self.dog), self.dog)
        self.assertEqual(self.tree.common_ancestor_of(self.cat, self.cat), self.cat)

    def test_common_ancestor_disjoint(self):
        """Tokens under different roots have no common ancestor."""
        tree = make_tree([
            ("a", "a", "NN", "ROOT", -1),
            ("b", "b", "NN", "ROOT", -1),
        ])
        self.assertIsNone(tree.common_ancestor_of(tree.token_at(0), tree.token_at(1)))

    def test_path_to_ancestor(self):
        """Paths include both ends; unreachable ancestors give an empty path."""
        self.assertEqual(self.tree.path_to_ancestor(self.the, self.saw),
                         [self.the, self.dog, self.saw])
        self.assertEqual(self.tree.path_to_ancestor(self.cat, self.cat), [self.cat])
        self.assertEqual(self.tree.path_to_ancestor(self.the, self.cat), [])

    def test_siblings(self):
        """Siblings include the token; left and right splits are inclusive."""
        self.assertEqual(self.tree.siblings_of(self.dog), [self.dog, self.cat])
        self.assertEqual(self.tree.siblings_of(self.saw), [self.saw])
        self.assertEqual(self.tree.left_siblings_of(self.cat), [self.dog, self.cat])
        self.assertEqual(self.tree.right_siblings_of(self.dog), [self.dog, self.cat])
        self.assertEqual(self.tree.left_siblings_of(self.dog), [self.dog])

    def test_cycle_detection(self):
        """Cyclic head chains raise instead of looping."""
        tree = make_tree([
            ("a", "a", "NN", "DEP", 1),
            ("b", "b", "NN", "DEP", 0),
        ])
        with self.assertRaises(CyclicTreeError):
            tree.ancestors_of(tree.token_at(0))
        with self.assertRaises(CyclicTreeError):
            tree.descendants_of(tree.token_at(0))


class TestVoice(unittest.TestCase):
    """Tests for the voice heuristic."""

    def test_passive(self):
        """Test be + participle."""
        tree = make_tree([
            ("The", "the", "DT", "NMOD", 1),
            ("cake", "cake", "NN", "SBJ", 2),
            ("was", "be", "VBD", "ROOT", -1),
            ("eaten", "eat", "VBN", "VC", 2),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(3)), Voice.PASSIVE)

    def test_get_passive(self):
        """Test get + participle."""
        tree = make_tree([
            ("He", "he", "PRP", "SBJ", 1),
            ("got", "get", "VBD", "ROOT", -1),
            ("fired", "fire", "VBN", "VC", 1),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(2)), Voice.PASSIVE)

    def test_infinitive(self):
        """Test to + base form."""
        tree = make_tree([
            ("I", "i", "PRP", "SBJ", 1),
            ("want", "want", "VBP", "ROOT", -1),
            ("to", "to", "TO", "OPRD", 1),
            ("eat", "eat", "VB", "IM", 2),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(3)), Voice.INFINITIVE)
        self.assertEqual(tree.voice_of(tree.token_at(1)), Voice.ACTIVE)

    def test_gerund(self):
        """Test -ing form without an auxiliary."""
        tree = make_tree([
            ("Running", "run", "VBG", "SBJ", 1),
            ("helps", "help", "VBZ", "ROOT", -1),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(0)), Voice.GERUND)

    def test_copulative(self):
        """Test forms of be."""
        tree = make_tree([
            ("He", "he", "PRP", "SBJ", 1),
            ("is", "be", "VBZ", "ROOT", -1),
            ("happy", "happy", "JJ", "PRD", 1),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(1)), Voice.COPULATIVE)
        self.assertEqual(tree.voice_of(tree.token_at(2)), Voice.NOT_VERB)

    def test_context_reaches_past_conjunction(self):
        """The token just before a conjunction still modifies the next verb."""
        tree = make_tree([
            ("It", "it", "PRP", "SBJ", 1),
            ("was", "be", "VBD", "ROOT", -1),
            ("and", "and", "CC", "COORD", 1),
            ("sold", "sell", "VBD", "CONJ", 2),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(3)), Voice.PASSIVE)

    def test_context_ends_after_conjunction(self):
        """Auxiliaries two tokens before a conjunction are out of reach."""
        tree = make_tree([
            ("It", "it", "PRP", "SBJ", 1),
            ("was", "be", "VBD", "ROOT", -1),
            ("old", "old", "JJ", "PRD", 1),
            ("and", "and", "CC", "COORD", 1),
            ("sold", "sell", "VBD", "CONJ", 3),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(4)), Voice.ACTIVE)

    def test_past_participle_is_passive(self):
        """Past participles are passive whatever their auxiliary."""
        tree = make_tree([
            ("He", "he", "PRP", "SBJ", 1),
            ("has", "have", "VBZ", "ROOT", -1),
            ("eaten", "eat", "VBN", "VC", 1),
        ])
        self.assertEqual(tree.voice_of(tree.token_at(2)), Voice.PASSIVE)
        self.assertEqual(tree.voice_of(tree.token_at(1)), Voice.ACTIVE)


if __name__ == '__main__':
    unittest.main()
