"""
Dependency Tree Module

This module provides the token and dependency tree structures consumed by
every other component of the labeler. A sentence is stored as an ordered
list of tokens plus a children-by-head multimap, which keeps child lookup
proportional to the number of children and makes ancestor, descendant and
path queries proportional to tree depth or subtree size.

Trees are built once (append-only) and are read-only afterwards.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set

logger = logging.getLogger(__name__)


class CyclicTreeError(ValueError):
    """Raised when a head chain loops back on itself."""


class Voice(Enum):
    """Heuristic voice classes for verb tokens."""
    NOT_VERB = "notVerb"
    ACTIVE = "active"
    PASSIVE = "passive"
    COPULATIVE = "copulative"
    INFINITIVE = "infinitive"
    GERUND = "gerund"


BE_FORMS = frozenset({"be", "am", "is", "was", "are", "were", "been", "being"})
GET_FORMS = frozenset({"get", "got", "gotten", "getting", "geting", "gets"})

# POS prefixes that mark a verb's auxiliary/modal/"to" context
_VERB_MODIFIER_POS = ("TO", "MD", "VB", "AUX")


@dataclass(frozen=True)
class Token:
    """
    A word in a sentence with its syntactic attachment.

    Attributes:
        form: Surface form
        lemma: Lemma
        pos: Part-of-speech tag
        deprel: Syntactic relation to the head
        index: 0-based position in the sentence
        head: 0-based index of the syntactic head (negative for the root)
    """
    form: str
    lemma: str
    pos: str
    deprel: str
    index: int
    head: int

    def is_root(self) -> bool:
        return self.head < 0

    def comes_before(self, other: 'Token') -> bool:
        return self.index < other.index

    def is_verb(self) -> bool:
        return self.pos.startswith("VB")

    def is_noun(self) -> bool:
        return self.pos.startswith("NN")


EMPTY_TOKEN = Token("", "", "", "", -1, -1)


class DependencyTree:
    """
    Ordered tokens of one sentence with parent/child links.

    Every query method must be called with tokens that belong to this tree.

    Usage:
        tree = DependencyTree()
        tree.add_token(Token("Dogs", "dog", "NNS", "SBJ", 0, 1))
        tree.add_token(Token("chase", "chase", "VBP", "ROOT", 1, -1))
        tree.ancestors_of(tree.token_at(0))  # [chase]
    """

    def __init__(self, tokens: Optional[List[Token]] = None):
        self._tokens: List[Token] = []
        self._children: Dict[int, List[Token]] = defaultdict(list)
        for token in tokens or []:
            self.add_token(token)

    def add_token(self, token: Token) -> None:
        """
        Append a token to the end of the sentence.

        Args:
            token: Token whose index equals the current sentence length
        """
        if token.index != len(self._tokens):
            raise ValueError(
                f"Token {token.form!r} has index {token.index}, "
                f"expected {len(self._tokens)}"
            )
        self._tokens.append(token)
        self._children[token.head].append(token)

    def token_at(self, index: int) -> Token:
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    @property
    def tokens(self) -> List[Token]:
        return list(self._tokens)

    @property
    def root(self) -> Optional[Token]:
        """The first token without a head, or None for an empty tree."""
        for token in self._tokens:
            if token.is_root():
                return token
        return None

    def parent_of(self, token: Token) -> Optional[Token]:
        """Syntactic head of a token, None for the root."""
        if token.head < 0:
            return None
        return self._tokens[token.head]

    def children_of(self, token: Token) -> List[Token]:
        """Children of a token in sentence order."""
        return list(self._children.get(token.index, ()))

    def ancestors_of(self, token: Token) -> List[Token]:
        """
        Get the ancestors of a token.

        Args:
            token: Token whose ancestors are requested

        Returns:
            Ancestors ordered from the head up to the root
        """
        ancestors = []
        seen = {token.index}
        current = self.parent_of(token)
        while current is not None:
            if current.index in seen:
                raise CyclicTreeError(
                    f"Head chain of token {token.index} loops at token {current.index}"
                )
            seen.add(current.index)
            ancestors.append(current)
            current = self.parent_of(current)
        return ancestors

    def descendants_of(self, token: Token) -> Set[Token]:
        """
        Get every token dominated by a token.

        Args:
            token: Token whose subtree is requested

        Returns:
            Unordered set of descendants (the token itself excluded)
        """
        descendants: Set[Token] = set()
        pending = self.children_of(token)
        while pending:
            child = pending.pop()
            if child in descendants or child == token:
                raise CyclicTreeError(f"Subtree of token {token.index} contains a cycle")
            descendants.add(child)
            pending.extend(self.children_of(child))
        return descendants

    def siblings_of(self, token: Token) -> List[Token]:
        """Children of the token's parent, the token included."""
        parent = self.parent_of(token)
        if parent is None:
            return [token]
        return self.children_of(parent)

    def left_siblings_of(self, token: Token) -> List[Token]:
        """Siblings at or before the token."""
        return [s for s in self.siblings_of(token) if s.index <= token.index]

    def right_siblings_of(self, token: Token) -> List[Token]:
        """Siblings at or after the token."""
        return [s for s in self.siblings_of(token) if s.index >= token.index]

    def common_ancestor_of(self, a: Token, b: Token) -> Optional[Token]:
        """
        Find the lowest common ancestor of two tokens.

        Each token counts as the head of its own ancestor chain, so the
        common ancestor of a token and one of its descendants is the token.

        Args:
            a: First token
            b: Second token

        Returns:
            Lowest token present in both chains, None if the chains are disjoint
        """
        a_chain = [a] + self.ancestors_of(a)
        b_chain = [b] + self.ancestors_of(b)

        common = None
        while a_chain and b_chain and a_chain[-1] == b_chain[-1]:
            common = a_chain.pop()
            b_chain.pop()
        return common

    def path_to_ancestor(self, token: Token, ancestor: Token) -> List[Token]:
        """
        Path from a token up to one of its ancestors.

        Args:
            token: Starting token
            ancestor: Ancestor of token (or token itself)

        Returns:
            Tokens from token to ancestor inclusive; an empty list when
            ancestor is not reachable from token
        """
        path = [token]
        if token == ancestor:
            return path
        for current in self.ancestors_of(token):
            path.append(current)
            if current == ancestor:
                return path
        logger.debug(f"Token {ancestor.index} is not an ancestor of token {token.index}")
        return []

    def voice_of(self, token: Token) -> Voice:
        """
        Heuristically classify the voice of a verb.

        Scans leftwards from the verb for the nearest auxiliary, modal or
        "to". The scan ends one token past the nearest coordinating
        conjunction. Past participles are always passive; simple past forms
        only under a form of "be" or "get".

        Args:
            token: Token to classify

        Returns:
            Voice of the token (NOT_VERB for non-verbs)
        """
        if not token.is_verb():
            return Voice.NOT_VERB

        # the context reaches one token past the nearest conjunction
        boundary = token.index - 1
        while boundary >= 0 and self._tokens[boundary].pos != "CC":
            boundary -= 1
        boundary = max(boundary - 1, 0)

        modifier = None
        for i in range(token.index - 1, boundary - 1, -1):
            candidate = self._tokens[i]
            if candidate.pos.startswith(_VERB_MODIFIER_POS):
                modifier = candidate
                break

        if token.pos == "VBG" and modifier is None:
            return Voice.GERUND
        if token.pos == "VB" and modifier is not None and modifier.pos.startswith("TO"):
            return Voice.INFINITIVE
        if token.form.lower() in BE_FORMS:
            return Voice.COPULATIVE
        if token.pos == "VBN":
            return Voice.PASSIVE
        if token.pos == "VBD" and modifier is not None and (
                modifier.form.lower() in BE_FORMS or modifier.form.lower() in GET_FORMS):
            return Voice.PASSIVE
        return Voice.ACTIVE
