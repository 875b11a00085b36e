#!/usr/bin/env python3
"""Tests for reading BibTeX text into the document model."""

import pytest

from bibtex_document import Property, CURLY, QUOTE, NONE
from bibtex_reader import BibTeXParseError, parse_bibtex


def test_brace_styles_are_kept():
    document = parse_bibtex('@article{k, title = {Braced}, author = "Quoted", year = 2020, month = jan}')
    props = document.entries[0].properties

    assert props['title'] == Property('Braced', CURLY)
    assert props['author'] == Property('Quoted', QUOTE)
    assert props['year'] == Property('2020', NONE)
    assert props['month'] == Property('jan', NONE)


def test_entry_type_id_and_field_names():
    document = parse_bibtex('@InProceedings{Key:2020-x, TITLE = {T}, BookTitle = {B}}')
    entry = document.entries[0]

    assert entry.type == 'InProceedings'
    assert entry.id == 'Key:2020-x'
    assert list(entry.properties) == ['title', 'booktitle']


def test_nested_braces_and_quotes_in_values():
    document = parse_bibtex('@misc{k, title = {The {DNA} of "things"}, note = "A {"} B"}')
    props = document.entries[0].properties

    assert props['title'].value == 'The {DNA} of "things"'
    assert props['note'].value == 'A {"} B'


def test_multiline_value_kept_raw():
    document = parse_bibtex('@misc{k,\n  abstract = {one\n    two}\n}')
    assert document.entries[0].properties['abstract'].value == 'one\n    two'


def test_concatenation_kept_verbatim():
    document = parse_bibtex('@misc{k, note = "See " # jcp # {, p. 3}}')
    assert document.entries[0].properties['note'] == Property('"See " # jcp # {, p. 3}', NONE)


def test_parenthesized_entry_and_trailing_comma():
    document = parse_bibtex('@book(k, title = {T},\n)')
    entry = document.entries[0]
    assert entry.id == 'k'
    assert entry.properties['title'].value == 'T'


def test_entry_without_fields():
    document = parse_bibtex('@misc{lonely}')
    assert document.entries[0].id == 'lonely'
    assert document.entries[0].properties == {}


def test_comments_attach_to_following_entry():
    source = """%Top comment
@preamble{{\\newcommand{\\x}{y}}}
% about a
@misc{a, title = {A}}
Some stray text
@misc{b, title = {B}}
% the end
"""
    document = parse_bibtex(source)

    assert document.comments_before == ['Top comment']
    assert document.preamble == Property('\\newcommand{\\x}{y}', CURLY)
    assert document.entries[0].comments == [' about a']
    assert document.entries[1].comments == ['Some stray text']
    assert document.comments_after == [' the end']


def test_comment_block_lines_become_comments():
    document = parse_bibtex('@comment{first line\n  second line}\n@misc{a, title = {A}}')
    assert document.entries[0].comments == ['first line', 'second line']


def test_strings_are_collected():
    document = parse_bibtex('@string{jcp = "J. Chem. Phys."}\n@String(nat = {Nature})\n@misc{a, journal = jcp}')
    assert document.strings == [
        ('jcp', Property('J. Chem. Phys.', QUOTE)),
        ('nat', Property('Nature', CURLY)),
    ]
    assert document.entries[0].properties['journal'] == Property('jcp', NONE)


def test_at_sign_in_free_text_is_a_comment():
    document = parse_bibtex('Contact me at someone@example.org\n@misc{a, title = {A}}')
    assert document.entries[0].comments == ['Contact me at someone@example.org']


def test_entry_after_stray_at_sign_on_same_line():
    document = parse_bibtex('mail me@x @misc{a,\n title = {T}}\n')
    assert [entry.id for entry in document.entries] == ['a']
    assert document.entries[0].comments == ['mail me@x']
    assert document.entries[0].properties['title'].value == 'T'


def test_empty_text():
    document = parse_bibtex('')
    assert document.entries == []
    assert document.preamble is None
    assert document.comments_before == []
    assert document.comments_after == []


def test_unclosed_value_reports_line():
    with pytest.raises(BibTeXParseError) as info:
        parse_bibtex('@article{a,\n  title = {Foo\n')
    assert info.value.line_num == 2
    assert 'Unclosed brace' in str(info.value)


def test_missing_equals_sign():
    with pytest.raises(BibTeXParseError) as info:
        parse_bibtex('@article{a,\n  title {Foo}\n}')
    assert info.value.line_num == 2


def test_percent_comment_inside_entry_is_explained():
    with pytest.raises(BibTeXParseError) as info:
        parse_bibtex('@article{a,\n  % note to self\n  title = {Foo}\n}')
    assert info.value.line_num == 2
    assert '% comments are not allowed inside an entry' in info.value.message


def test_missing_comma_between_fields():
    with pytest.raises(BibTeXParseError) as info:
        parse_bibtex('@article{a, title = {Foo} year = {2020}}')
    assert "after field 'title'" in info.value.message


def test_unclosed_entry():
    with pytest.raises(BibTeXParseError) as info:
        parse_bibtex('@article{a,\n  title = {Foo},\n')
    assert 'not closed' in info.value.message


def test_missing_key():
    with pytest.raises(BibTeXParseError):
        parse_bibtex('@article{, title = {Foo}}')


def test_second_preamble_is_rejected():
    with pytest.raises(BibTeXParseError):
        parse_bibtex('@preamble{"a"}\n@preamble{"b"}')


def test_parse_error_is_value_error():
    with pytest.raises(ValueError):
        parse_bibtex('@misc{a, title = "open')
