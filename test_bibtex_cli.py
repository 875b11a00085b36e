#!/usr/bin/env python3
"""Tests for the bibtex-tidy command line."""

import pytest

from bibtex_cli import BibTeXTidier, build_options, clean_filepath, main
from bibtex_tidy import TidyOptions


SOURCE = """@article{a, title = {Foo}, year = {2020}}
@article{b, title = {Foo}, journal = {Nature}}
"""


@pytest.fixture
def bib_file(tmp_path):
    path = tmp_path / 'refs.bib'
    path.write_text(SOURCE, encoding='utf-8')
    return path


def test_clean_filepath():
    assert clean_filepath('  "/tmp/my refs.bib" ') == '/tmp/my refs.bib'
    assert clean_filepath("'refs.bib'") == 'refs.bib'
    assert clean_filepath('') == ''


def test_prints_tidied_bibtex_to_stdout(bib_file, capsys):
    main([str(bib_file)])
    captured = capsys.readouterr()

    assert captured.out.startswith('@article{a,\n  title         = {Foo},')
    assert 'BIBTEX TIDY REPORT' in captured.err


def test_merge_and_write_output(bib_file, tmp_path, capsys):
    output = tmp_path / 'tidy.bib'
    report = tmp_path / 'report.txt'
    main([str(bib_file), '--merge', '--numeric', '-o', str(output), '-r', str(report)])

    text = output.read_text(encoding='utf-8')
    assert '@article{b' not in text
    assert '  journal       = {Nature}' in text
    assert '  year          = 2020' in text
    assert 'b merged into a' in report.read_text(encoding='utf-8')
    assert 'Tidied BibTeX saved to' in capsys.readouterr().out


def test_tex_file_and_metadata(bib_file, tmp_path, capsys):
    tex = tmp_path / 'paper.tex'
    tex.write_text(r'\cite{b}', encoding='utf-8')
    main([str(bib_file), '--tex', str(tex), '--metadata'])

    out = capsys.readouterr().out
    assert '{citations: 1, journalcount: 1}' in out


def test_missing_input_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as info:
        main([str(tmp_path / 'missing.bib')])
    assert info.value.code == 1
    assert 'not found' in capsys.readouterr().err


def test_parse_error_exits(tmp_path, capsys):
    path = tmp_path / 'broken.bib'
    path.write_text('@article{a,\n  title = {Foo\n', encoding='utf-8')
    with pytest.raises(SystemExit) as info:
        main([str(path)])
    assert info.value.code == 1
    assert 'Failed to parse BibTeX file' in capsys.readouterr().err


def test_invalid_space_is_a_usage_error(bib_file):
    with pytest.raises(SystemExit) as info:
        main([str(bib_file), '--space', '-2'])
    assert info.value.code == 2


def test_sort_flag_variants():
    class Args:
        omit = None
        curly = numeric = tab = metadata = merge = False
        strip_enclosing_braces = drop_all_caps = no_escape = sort_properties = False
        space = 2
        tex = None
        sort = None

    args = Args()
    assert TidyOptions.from_dict(build_options(args)).sort is False
    args.sort = []
    assert TidyOptions.from_dict(build_options(args)).sort == ('id',)
    args.sort = ['Year', 'title']
    assert TidyOptions.from_dict(build_options(args)).sort == ('year', 'title')


def test_check_output_accepts_tidy_text():
    tidier = BibTeXTidier()
    assert tidier.check_output('@article{a,\n  title         = {Foo}\n}\n')
    assert tidier.warnings == []


def test_check_output_reports_repeated_keys():
    tidier = BibTeXTidier()
    assert not tidier.check_output('@article{a, title = {x}}\n@article{a, title = {y}}\n')
    assert len(tidier.warnings) == 1


def test_verbose_logs_to_stderr(bib_file, capsys):
    main([str(bib_file), '-v', '--check', '--sort'])
    err = capsys.readouterr().err
    assert '[INFO] Loaded 2 entries' in err
    assert '[INFO] Sorted by: id' in err
    assert '[INFO] pybtex read back 2 entries' in err
