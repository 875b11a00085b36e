#!/usr/bin/env python3
"""Tests for the Unicode -> LaTeX escape table."""

import string

from latex_escapes import ESCAPE_TABLE, ESCAPES, escape_special_characters


def test_plain_ascii_is_unchanged():
    text = string.printable + r" {\'e} $x_1$ \& 50% #1"
    assert escape_special_characters(text) == text


def test_empty_string():
    assert escape_special_characters('') == ''


def test_accented_letters():
    assert escape_special_characters('Müller') == r'M{\"u}ller'
    assert escape_special_characters('Gödel, Erdős') == r'G{\"o}del, Erd{\H{o}}s'
    assert escape_special_characters('Dvořák') == r'Dvo{\v{r}}{\'a}k'
    assert escape_special_characters('Łukasiewicz') == r'{\L}ukasiewicz'
    assert escape_special_characters('naïve') == r'na{\"\i}ve'


def test_decomposed_accents():
    assert escape_special_characters('Cafe\u0301') == r"Caf{\'e}"
    assert escape_special_characters('n\u0303') == r'{\~n}'


def test_dashes_and_quotes():
    assert escape_special_characters('1990–2000 — “quoted” ‘single’') == "1990--2000 --- ``quoted'' `single'"


def test_greek_and_symbols():
    assert escape_special_characters('α-helix, 5 °C ± 1') == r'$\alpha$-helix, 5 {\textdegree}C $\pm$ 1'


def test_escaping_twice_changes_nothing():
    once = escape_special_characters('Åsa Øberg – Straße ɛ')
    assert escape_special_characters(once) == once


def test_only_non_ascii_patterns():
    for pattern, _ in ESCAPE_TABLE:
        literal = pattern.replace('([A-Za-z])', '')
        assert not literal.isascii() or literal.startswith('\\u'), pattern


def test_table_order_is_kept():
    assert [pattern.pattern for pattern, _ in ESCAPES] == [pattern for pattern, _ in ESCAPE_TABLE]
