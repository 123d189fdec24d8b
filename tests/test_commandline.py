# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os

import pytest

from cppumockgen import commandline
from cppumockgen import generator
from cppumockgen import utils


def test_end_to_end(libclang, script_runner, tmp_path):
    header = tmp_path / 'example.hpp'
    header.write_text('namespace ns1 {\n'
                      'class class1 {\n'
                      'public:\n'
                      '    ~class1();\n'
                      '    virtual int m(const char* s) const;\n'
                      '};\n'
                      '}\n')
    ret = script_runner.run(
        'cppumockgen',
        str(header),
        '-m', str(tmp_path),
        '-e', str(tmp_path),
        '-s', 'c++11',
        '-t', 'ns1::class1::m@=Long',
    )
    assert ret.success
    mock = (tmp_path / 'example_mock.cpp').read_text()
    assert ' * Generation options: -s c++11 -t ns1::class1::m@=Long\n' in mock
    assert '#include "example.hpp"\n' in mock
    assert ('int ns1::class1::m(const char * s) const\n'
            '{\n'
            '    return mock().actualCall("ns1::class1::m")'
            '.onObject(const_cast<ns1::class1*>(this))'
            '.withStringParameter("s", s).returnLongIntValue();\n'
            '}\n') in mock
    header = (tmp_path / 'example_expect.hpp').read_text()
    assert 'namespace expect { namespace ns1$ { namespace class1$ {\n' in header
    assert (tmp_path / 'example_expect.cpp').exists()


def test_version(script_runner):
    ret = script_runner.run('cppumockgen', '--version')
    assert ret.success
    assert ret.stdout == f'cppumockgen {utils.VERSION}\n'


def test_success(monkeypatch, mocker, script_runner):
    args = mocker.Mock(verbose=False)
    monkeypatch.setattr(commandline, 'parse_args', mocker.Mock(return_value=args))
    monkeypatch.setattr(generator, 'main', mocker.Mock())
    ret = script_runner.run('cppumockgen')
    assert ret.success
    generator.main.assert_called_once_with(args)


def test_parser_fails(script_runner):
    # Cause a parser error by not providing required args.
    ret = script_runner.run('cppumockgen')
    assert not ret.success
    assert ret.returncode == 2


def test_failure(monkeypatch, mocker, script_runner):
    args = mocker.Mock(verbose=False)
    monkeypatch.setattr(commandline, 'parse_args', mocker.Mock(return_value=args))
    monkeypatch.setattr(
        generator, 'main',
        mocker.Mock(side_effect=utils.CppUMockGenRuntimeError('foo'))
    )
    ret = script_runner.run('cppumockgen')
    assert not ret.success
    assert ret.returncode == 1
    assert ret.stderr == 'cppumockgen: error: foo\n'


@pytest.mark.parametrize(
    'error', [AttributeError(), IOError(), RuntimeError(), ValueError()]
)
def test_panic(error, monkeypatch, mocker, script_runner):
    args = mocker.Mock(verbose=False)
    monkeypatch.setattr(commandline, 'parse_args', mocker.Mock(return_value=args))
    monkeypatch.setattr(generator, 'main', mocker.Mock(side_effect=error))
    ret = script_runner.run('cppumockgen', print_result=False)
    assert not ret.success


class TestParseArgs:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv('CPPUMOCKGEN_INCLUDE', raising=False)
        args = commandline.parse_args(['foo.h', '-m'])
        assert args.input_path == 'foo.h'
        assert args.mock_output == ''
        assert args.expect_output is None
        assert not args.cpp
        assert args.std is None
        assert args.include_path == []
        assert args.parameter_overrides == []
        assert args.type_overrides == []
        assert args.generation_options == ''

    def test_no_output(self):
        with pytest.raises(utils.CppUMockGenRuntimeError):
            commandline.parse_args(['foo.h'])

    def test_overrides(self):
        args = commandline.parse_args([
            'foo.h', '-e', 'out',
            '-t', 'f#p=Int',
            '-t', '#const char *=ConstPointer',
            '-t', '@Struct1=Int/$.value',
            '-t', 'f@=Bool',
        ])
        assert args.expect_output == 'out'
        assert args.parameter_overrides == ['f#p=Int', 'f@=Bool']
        assert args.type_overrides == ['#const char *=ConstPointer', '@Struct1=Int/$.value']

    def test_generation_options(self):
        args = commandline.parse_args([
            'foo.h', '-m', '-x', '-s', 'c++17', '-u', '-I', 'inc',
            '-t', 'f#p=Int', '-t', '#const char *=ConstPointer',
        ])
        assert args.generation_options == (
            "-x -s c++17 -u -t 'f#p=Int' -t '#const char *=ConstPointer'"
        )

    def test_include_environment(self, monkeypatch):
        monkeypatch.setenv('CPPUMOCKGEN_INCLUDE', '/opt/include')
        args = commandline.parse_args(['foo.h', '-m'])
        assert args.flags[-2:] == ['-I', '/opt/include']


class TestConfigFile:

    def test_expand(self, tmp_path):
        (tmp_path / 'options.txt').write_text('-x -t "f#p=Int~const char *"\n')
        args = commandline.expand_config_files(
            ['foo.h', '-f', str(tmp_path / 'options.txt'), '-m'])
        assert args == ['foo.h', '-x', '-t', 'f#p=Int~const char *', '-m']

    def test_nested_relative(self, tmp_path):
        (tmp_path / 'sub').mkdir()
        (tmp_path / 'outer.txt').write_text('-f sub/inner.txt -u')
        (tmp_path / 'sub' / 'inner.txt').write_text('-x')
        args = commandline.expand_config_files(
            ['--config-file=' + str(tmp_path / 'outer.txt')])
        assert args == ['-x', '-u']

    def test_each_file_once(self, tmp_path):
        (tmp_path / 'a.txt').write_text('-x -f b.txt')
        (tmp_path / 'b.txt').write_text('-u -f a.txt')
        path = str(tmp_path / 'a.txt')
        args = commandline.expand_config_files(['-f', path, '-f' + path])
        assert args == ['-x', '-u']

    def test_missing_file(self, tmp_path):
        with pytest.raises(utils.CppUMockGenRuntimeError) as e:
            commandline.expand_config_files(['-f', str(tmp_path / 'missing.txt')])
        assert 'could not be opened' in str(e.value)

    def test_unbalanced_quotes(self, tmp_path):
        (tmp_path / 'options.txt').write_text('-t "f#p=Int')
        with pytest.raises(utils.CppUMockGenRuntimeError):
            commandline.expand_config_files(['-f', str(tmp_path / 'options.txt')])

    def test_parse_args(self, tmp_path):
        (tmp_path / 'options.txt').write_text('-t f#p=Int\n-s c++11\n')
        args = commandline.parse_args(
            ['foo.hpp', '-m', '-f', str(tmp_path / 'options.txt')])
        assert args.parameter_overrides == ['f#p=Int']
        assert args.std == 'c++11'


class TestRegen:

    def test_reuses_options(self, tmp_path):
        (tmp_path / 'foo_mock.cpp').write_text(
            generator.banner("-x -t 'f#p=Int~const char *'"))
        args = commandline.parse_args(['foo.h', '-m', str(tmp_path), '-r'])
        assert args.cpp
        assert args.parameter_overrides == ['f#p=Int~const char *']
        assert args.generation_options == "-x -t 'f#p=Int~const char *'"

    def test_reads_expectation_header(self, tmp_path):
        (tmp_path / 'foo_expect.hpp').write_text(generator.banner('-u'))
        args = commandline.parse_args(['foo.h', '-e', str(tmp_path), '-r'])
        assert args.underlying_typedef

    def test_no_previous_output(self, tmp_path):
        with pytest.raises(utils.CppUMockGenRuntimeError):
            commandline.parse_args(['foo.h', '-m', str(tmp_path), '-r'])


def test_clang_library_file_default(monkeypatch):
    assert commandline._parser.get_default('clang_library_file') == os.environ.get(
        'CLANG_LIBRARY_FILE')
