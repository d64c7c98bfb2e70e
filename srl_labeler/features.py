"""
Feature Generation Module

Feature generators turn a (frame, candidate, predicate) context into a set
of opaque feature strings for the perceptron.

Features fall into two groups:
- Structural features (prefixed with "QQ") depend on arguments already
  assigned in the frame being decoded
- Non-structural features depend only on the sentence; those seen fewer
  than `feature_count_threshold` times in the training frames are dropped
  once reduce_feature_set() has been called

The argument generator is composed from a registry of named
sub-generators that can be switched on and off individually, which is
what the feature selection search operates on.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import regex  # type: ignore
from nltk.probability import FreqDist

from .config import NIL_LABEL
from .decoders import argument_candidates
from .frames import FrameAnnotation
from .sentence import EMPTY_TOKEN, Token

logger = logging.getLogger(__name__)

STRUCTURAL_FEATURE_PREFIX = "QQ"

SubGenerator = Callable[[FrameAnnotation, Token, Token], Iterable[str]]

ARGUMENT_FEATURE_REGISTRY: Dict[str, SubGenerator] = {}


def argument_feature(name: str) -> Callable[[SubGenerator], SubGenerator]:
    """Register a named argument sub-generator."""
    def register(fn: SubGenerator) -> SubGenerator:
        ARGUMENT_FEATURE_REGISTRY[name] = fn
        return fn
    return register


def is_structural_feature(feature: str) -> bool:
    return feature.startswith(STRUCTURAL_FEATURE_PREFIX)


_UPPER_RE = regex.compile(r"\p{Lu}+")
_LOWER_RE = regex.compile(r"\p{Ll}+")
_DIGIT_RE = regex.compile(r"\p{N}+")


def word_shape(form: str) -> str:
    """Collapsed word shape, e.g. "McDonald's" -> "XxXx'x", "1990s" -> "dx"."""
    shape = _UPPER_RE.sub("X", form)
    shape = _LOWER_RE.sub("x", shape)
    return _DIGIT_RE.sub("d", shape)


class FeatureGenerator(ABC):
    """
    Base capability: (frame, candidate, predicate) -> set of feature ids.

    Subclasses implement raw_features_of() and training_contexts(); this
    class applies the frequency cut-off and the structural-feature switch.
    """

    def __init__(self, feature_count_threshold: int = 3, allow_structural_features: bool = True):
        self.feature_count_threshold = feature_count_threshold
        self.allow_structural_features = allow_structural_features
        self.allowed_features: Optional[Set[str]] = None

    @abstractmethod
    def raw_features_of(self, frame: FrameAnnotation, candidate: Token,
                        predicate: Optional[Token] = None) -> Set[str]:
        """Every feature of a context, before any filtering."""

    @abstractmethod
    def training_contexts(self, frame: FrameAnnotation) -> Iterator[Tuple[Token, Optional[Token]]]:
        """(candidate, predicate) pairs a gold frame contributes to training."""

    def features_of(self, frame: FrameAnnotation, candidate: Token,
                    predicate: Optional[Token] = None) -> Set[str]:
        """
        Filtered features of a context.

        Args:
            frame: Sentence with its (partial) annotations
            candidate: Token being classified
            predicate: Predicate the candidate is classified against, if any

        Returns:
            Set of feature strings
        """
        features = set()
        for feature in self.raw_features_of(frame, candidate, predicate):
            if is_structural_feature(feature):
                if self.allow_structural_features:
                    features.add(feature)
            elif self.allowed_features is None or feature in self.allowed_features:
                features.add(feature)
        return features

    __call__ = features_of

    def reduce_feature_set(self, frames: Iterable[FrameAnnotation]) -> int:
        """
        Keep only non-structural features frequent in the given frames.

        Args:
            frames: Gold frames to count features over

        Returns:
            Number of allowed non-structural features
        """
        counts = FreqDist()
        for frame in frames:
            for candidate, predicate in self.training_contexts(frame):
                counts.update(f for f in self.raw_features_of(frame, candidate, predicate)
                              if not is_structural_feature(f))

        self.allowed_features = {f for f, c in counts.items() if c >= self.feature_count_threshold}
        logger.info(f"{type(self).__name__}: kept {len(self.allowed_features)} of "
                    f"{counts.B()} features (threshold {self.feature_count_threshold})")
        return len(self.allowed_features)

    def config_snapshot(self) -> Dict:
        """Serializable feature configuration."""
        return {
            'feature_count_threshold': self.feature_count_threshold,
            'allow_structural_features': self.allow_structural_features,
            'allowed_features': None if self.allowed_features is None else sorted(self.allowed_features),
        }

    def restore_config(self, state: Dict) -> None:
        self.feature_count_threshold = state['feature_count_threshold']
        self.allow_structural_features = state['allow_structural_features']
        allowed = state.get('allowed_features')
        self.allowed_features = None if allowed is None else set(allowed)


class PredicateFeatureGenerator(FeatureGenerator):
    """Context features deciding whether a token is a predicate."""

    def raw_features_of(self, frame: FrameAnnotation, candidate: Token,
                        predicate: Optional[Token] = None) -> Set[str]:
        tree = frame.tree
        window = {}
        for offset in (-2, -1, 0, 1, 2):
            i = candidate.index + offset
            window[offset] = tree.token_at(i) if 0 <= i < len(tree) else EMPTY_TOKEN

        features = set()
        for offset, token in window.items():
            features.add(f"l{offset}|{token.lemma}")
            features.add(f"p{offset}|{token.pos}")
        features.add(f"f0|{candidate.form}")
        features.add(f"l-1l0|{window[-1].lemma}_{candidate.lemma}")
        features.add(f"l0l1|{candidate.lemma}_{window[1].lemma}")
        features.add(f"p-1p0|{window[-1].pos}_{candidate.pos}")
        features.add(f"p0p1|{candidate.pos}_{window[1].pos}")
        features.add(f"shape|{word_shape(candidate.form)}")
        features.add(f"dr|{candidate.deprel}")
        features.add(f"v|{tree.voice_of(candidate).value}")

        parent = tree.parent_of(candidate) or EMPTY_TOKEN
        features.add(f"hl|{parent.lemma}")
        features.add(f"hp|{parent.pos}")

        children = tree.children_of(candidate)
        features.add(f"numch|{len(children)}")
        for child in children:
            features.add(f"cl|{child.lemma}")
            features.add(f"cp|{child.pos}")
            features.add(f"cd|{child.deprel}")
        features.add("cdset|" + " ".join(c.deprel for c in children))

        return features

    def training_contexts(self, frame: FrameAnnotation) -> Iterator[Tuple[Token, Optional[Token]]]:
        for token in frame.tree:
            yield token, None


class ArgumentFeatureGenerator(FeatureGenerator):
    """
    Features for labelling a candidate argument of a predicate.

    Base features are always produced; named sub-generators from
    ARGUMENT_FEATURE_REGISTRY are added when enabled.

    Usage:
        generator = ArgumentFeatureGenerator(enabled=["isArgLeaf"])
        generator.enable("linePath")
        generator.features_of(frame, candidate, predicate)
    """

    def __init__(self, enabled: Optional[Iterable[str]] = None,
                 feature_count_threshold: int = 3, allow_structural_features: bool = True):
        super().__init__(feature_count_threshold, allow_structural_features)
        self._generators: Dict[str, SubGenerator] = dict(ARGUMENT_FEATURE_REGISTRY)
        self._enabled: Set[str] = set()
        self.set_enabled(self._generators if enabled is None else enabled)

    def add_feature_generator(self, name: str, fn: SubGenerator) -> None:
        """Register an extra sub-generator on this instance (disabled)."""
        self._generators[name] = fn

    def feature_generator_names(self) -> List[str]:
        return sorted(self._generators)

    def enabled_features(self) -> Set[str]:
        return set(self._enabled)

    def disabled_features(self) -> Set[str]:
        return set(self._generators) - self._enabled

    def set_enabled(self, names: Iterable[str]) -> None:
        names = set(names)
        unknown = names - set(self._generators)
        if unknown:
            raise ValueError(f"Unknown argument feature generators: {sorted(unknown)}")
        self._enabled = names

    def enable(self, name: str) -> None:
        self.set_enabled(self._enabled | {name})

    def disable(self, name: str) -> None:
        self._enabled.discard(name)

    def clear_features(self) -> None:
        self._enabled.clear()

    def raw_features_of(self, frame: FrameAnnotation, candidate: Token,
                        predicate: Optional[Token] = None) -> Set[str]:
        if predicate is None:
            raise ValueError("argument features need a predicate")

        tree = frame.tree
        argument = candidate
        features = {
            f"aL|{argument.lemma}",
            f"aF|{argument.form}",
            f"aP|{argument.pos}",
            f"aD|{argument.deprel}",
            f"pL|{predicate.lemma}",
            f"pF|{predicate.form}",
            f"pP|{predicate.pos}",
            f"pD|{predicate.deprel}",
            f"pLaL|{predicate.lemma}+{argument.lemma}",
            f"pLaP|{predicate.lemma}+{argument.pos}",
        }

        if argument == predicate:
            position = "self"
        elif argument.comes_before(predicate):
            position = "before"
        else:
            position = "after"
        voice = tree.voice_of(predicate).value
        features.add(f"pos|{position}")
        features.add(f"v|{voice}")
        features.add(f"vPos|{voice}+{position}")
        features.add(f"vPosD|{voice}+{position}+{argument.deprel}")

        if argument.head == predicate.index:
            family = "child"
        elif predicate.head == argument.index:
            family = "parent"
        elif argument == predicate:
            family = "self"
        elif argument.head == predicate.head:
            family = "sibling"
        else:
            family = "other"
        features.add(f"fam|{family}")

        common = tree.common_ancestor_of(argument, predicate)
        if common is None:
            features.add("dpath|none")
        else:
            up = tree.path_to_ancestor(argument, common)
            down = tree.path_to_ancestor(predicate, common)
            up_rels = "^".join(t.deprel for t in up[:-1])
            down_rels = "v".join(t.deprel for t in reversed(down[:-1]))
            up_pos = "^".join(t.pos for t in up)
            down_pos = "v".join(t.pos for t in reversed(down[:-1]))
            features.add(f"dpath|{up_rels}|{down_rels}")
            features.add(f"ppath|{up_pos}|{down_pos}")
            features.add(f"plen|{len(up) + len(down) - 2}")

        for name in sorted(self._enabled):
            features.update(self._generators[name](frame, argument, predicate))

        return features

    def training_contexts(self, frame: FrameAnnotation) -> Iterator[Tuple[Token, Optional[Token]]]:
        for predicate in frame.predicates:
            for candidate in argument_candidates(frame.tree, predicate):
                yield candidate, predicate

    def config_snapshot(self) -> Dict:
        state = super().config_snapshot()
        state['enabled'] = sorted(self._enabled)
        return state

    def restore_config(self, state: Dict) -> None:
        super().restore_config(state)
        self.set_enabled(state['enabled'])


@argument_feature("previousArgClass")
def previous_argument_class(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    """Label of the right-most argument assigned so far."""
    assigned = frame.arguments_of(predicate)
    if not assigned:
        return [f"{STRUCTURAL_FEATURE_PREFIX}prevArgClass|{NIL_LABEL}"]
    last = max(assigned, key=lambda t: t.index)
    return [f"{STRUCTURAL_FEATURE_PREFIX}prevArgClass|{assigned[last]}"]


@argument_feature("existSemDeprel")
def existing_semantic_relations(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    """One feature per role already assigned to the predicate."""
    return [f"{STRUCTURAL_FEATURE_PREFIX}existSemDeprel|{label}"
            for label in sorted(set(frame.arguments_of(predicate).values()))]


@argument_feature("linePath")
def line_path(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    """Surface tokens between predicate and argument, both included."""
    start, end = sorted((argument.index, predicate.index))
    span = [frame.tree.token_at(i) for i in range(start, end + 1)]
    return [
        "linePathF|" + " ".join(t.form for t in span),
        "linePathL|" + " ".join(t.lemma for t in span),
        "linePathD|" + " ".join(t.deprel for t in span),
    ]


@argument_feature("hiLoSupport")
def high_low_support(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    """Nearest and farthest noun and verb on the argument's path to the root."""
    path = frame.tree.ancestors_of(argument)
    nouns = [t for t in path if t.is_noun()]
    verbs = [t for t in path if t.is_verb()]

    lo_noun = nouns[0] if nouns else EMPTY_TOKEN
    hi_noun = nouns[-1] if nouns else EMPTY_TOKEN
    lo_verb = verbs[0] if verbs else EMPTY_TOKEN
    hi_verb = verbs[-1] if verbs else EMPTY_TOKEN

    features = []
    for tag, token in (("HiN", hi_noun), ("LoN", lo_noun), ("HiV", hi_verb), ("LoV", lo_verb)):
        features.append(f"arg{tag}F|{token.form}")
        features.append(f"arg{tag}L|{token.lemma}")
        features.append(f"arg{tag}P|{token.pos}")
    return features


@argument_feature("isArgLeaf")
def argument_leaf(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    return ["argLeaf" if not frame.tree.children_of(argument) else "argNotLeaf"]


@argument_feature("ppHead")
def preposition_head(frame: FrameAnnotation, argument: Token, predicate: Token) -> List[str]:
    """Preposition governing a prepositional object, or the PP object of a preposition."""
    tree = frame.tree
    if argument.deprel == "PMOD":
        head = tree.parent_of(argument)
        if head is not None:
            return [f"ppHeadL|{head.lemma}", f"ppHeadLaL|{head.lemma}+{argument.lemma}"]
    if argument.pos == "IN":
        objects = [c for c in tree.children_of(argument) if c.deprel == "PMOD"]
        if objects:
            return [f"ppObjL|{objects[-1].lemma}", f"ppObjP|{objects[-1].pos}"]
    return []
