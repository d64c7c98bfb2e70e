"""
Corpus Loader Module

This module reads CoNLL-2008 closed-track corpora into gold frames.

One token per line, sentences separated by blank lines. Columns used
(0-based, whitespace separated):
1. 0: token id (1-based)
2. 5, 6, 7: form, lemma and POS
3. 8: head id (1-based, 0 for the root)
4. 9: syntactic dependency relation
5. 10: predicate sense, "_" for non-predicates
6. 11+: one column per predicate with the token's role, "_" for none
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from .frames import FrameAnnotation
from .sentence import DependencyTree, Token

logger = logging.getLogger(__name__)

INDEX_COLUMN = 0
FORM_COLUMN = 5
LEMMA_COLUMN = 6
POS_COLUMN = 7
HEAD_COLUMN = 8
DEPREL_COLUMN = 9
PREDICATE_COLUMN = 10
ARGS_START_COLUMN = 11

EMPTY_FIELD = "_"


class CorpusFormatError(ValueError):
    """Raised for rows with a wrong column count or non-numeric indices."""


def _to_index(value: str, line_number: int) -> int:
    try:
        return int(value) - 1
    except ValueError:
        raise CorpusFormatError(f"line {line_number}: expected a number, got {value!r}") from None


def _build_frame(rows: List[List[str]], line_numbers: List[int]) -> FrameAnnotation:
    num_predicates = sum(1 for row in rows if row[PREDICATE_COLUMN] != EMPTY_FIELD)
    expected = ARGS_START_COLUMN + num_predicates

    tree = DependencyTree()
    predicates = []
    for row, line_number in zip(rows, line_numbers):
        if len(row) != expected:
            raise CorpusFormatError(
                f"line {line_number}: expected {expected} columns, got {len(row)}"
            )
        index = _to_index(row[INDEX_COLUMN], line_number)
        if index != len(tree):
            raise CorpusFormatError(
                f"line {line_number}: token id {index + 1} out of sequence"
            )
        token = Token(
            form=row[FORM_COLUMN],
            lemma=row[LEMMA_COLUMN],
            pos=row[POS_COLUMN],
            deprel=row[DEPREL_COLUMN],
            index=index,
            head=_to_index(row[HEAD_COLUMN], line_number),
        )
        tree.add_token(token)
        if row[PREDICATE_COLUMN] != EMPTY_FIELD:
            predicates.append(token)

    frame = FrameAnnotation(tree)
    frame.add_predicates(predicates)
    for token, row in zip(tree, rows):
        for column in range(ARGS_START_COLUMN, len(row)):
            if row[column] != EMPTY_FIELD:
                frame.add_argument(predicates[column - ARGS_START_COLUMN], token, row[column])
    return frame


def parse_lines(lines: Iterable[str]) -> Iterator[FrameAnnotation]:
    """
    Parse corpus lines into gold frames.

    Args:
        lines: Corpus lines (trailing newlines allowed)

    Yields:
        One FrameAnnotation per sentence; a final sentence without a
        trailing blank line is still emitted
    """
    rows: List[List[str]] = []
    line_numbers: List[int] = []
    for line_number, line in enumerate(lines, 1):
        fields = line.split()
        if not fields:
            if rows:
                yield _build_frame(rows, line_numbers)
                rows, line_numbers = [], []
            continue
        if len(fields) < ARGS_START_COLUMN:
            raise CorpusFormatError(
                f"line {line_number}: expected at least {ARGS_START_COLUMN} columns, got {len(fields)}"
            )
        rows.append(fields)
        line_numbers.append(line_number)

    if rows:
        yield _build_frame(rows, line_numbers)


def parse_corpus(path: Union[str, Path]) -> List[FrameAnnotation]:
    """
    Load every sentence of a corpus file.

    Args:
        path: Corpus file location

    Returns:
        Gold frames, one per sentence

    Raises:
        CorpusFormatError: on malformed rows
    """
    with open(path, 'r', encoding='utf-8') as f:
        frames = list(parse_lines(f))
    logger.info(f"Loaded {len(frames)} sentences from {path}")
    return frames
