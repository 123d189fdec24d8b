# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

import pytest

from cppumockgen import config
from cppumockgen import expectation
from cppumockgen import signature
from cppumockgen import translator

PATH = 'virtual_file_name.h'


def _signature(source, cfg=None, flags=None):
    root = translator.translate(PATH, source, flags or ['-std=c++11'])
    node = list(root.iter_declarations())[-1]
    return signature.Signature.from_node(node, cfg or config.Config())


def _prototype(sig):
    """The formals of the single-call helper."""
    line = expectation.render_prototypes(sig).splitlines()[1]
    return line[line.index('(') + 1:line.rindex(')')]


def _body(sig):
    """The statements of the N-call helper."""
    lines = expectation.render_implementations(sig).splitlines()
    start = len(lines) - 1 - lines[::-1].index('{')
    return [each.strip() for each in lines[start + 1:-2]]


def test_free_function(libclang):
    sig = _signature('void f(int p);')
    assert expectation.render_prototypes(sig) == (
        'namespace expect {\n'
        'MockExpectedCall& f(CppUMockGen::Parameter<int> p);\n'
        'MockExpectedCall& f(unsigned int __numCalls__, CppUMockGen::Parameter<int> p);\n'
        '}\n'
    )
    assert expectation.render_implementations(sig) == (
        'namespace expect {\n'
        'MockExpectedCall& f(CppUMockGen::Parameter<int> p)\n'
        '{\n'
        '    return f(1, p);\n'
        '}\n'
        'MockExpectedCall& f(unsigned int __numCalls__, CppUMockGen::Parameter<int> p)\n'
        '{\n'
        '    bool __ignoreOtherParams__ = false;\n'
        '    MockExpectedCall& __expectedCall__ = mock().expectNCalls(__numCalls__, "f");\n'
        '    if (p.isIgnored()) { __ignoreOtherParams__ = true; } '
        'else { __expectedCall__.withIntParameter("p", p.getValue()); }\n'
        '    if (__ignoreOtherParams__) { __expectedCall__.ignoreOtherParameters(); }\n'
        '    return __expectedCall__;\n'
        '}\n'
        '}\n'
    )


def test_return_value(libclang):
    sig = _signature('unsigned long g();')
    assert _prototype(sig) == 'unsigned long __return__'
    assert _body(sig) == [
        'MockExpectedCall& __expectedCall__ = mock().expectNCalls(__numCalls__, "g");',
        '__expectedCall__.andReturnValue(__return__);',
        'return __expectedCall__;',
    ]


def test_destructor(libclang):
    sig = _signature('namespace ns1 { class class1 { public: ~class1(); }; }')
    formal = 'CppUMockGen::Parameter<const ns1::class1*> __object__'
    default = ' = ::CppUMockGen::IgnoreParameter::YES'
    assert expectation.render_prototypes(sig) == (
        'namespace expect { namespace ns1$ { namespace class1$ {\n'
        f'MockExpectedCall& class1$dtor({formal}{default});\n'
        f'MockExpectedCall& class1$dtor(unsigned int __numCalls__, {formal}{default});\n'
        '} } }\n'
    )
    assert expectation.render_implementations(sig) == (
        'namespace expect { namespace ns1$ { namespace class1$ {\n'
        f'MockExpectedCall& class1$dtor({formal})\n'
        '{\n'
        '    return class1$dtor(1, __object__);\n'
        '}\n'
        f'MockExpectedCall& class1$dtor(unsigned int __numCalls__, {formal})\n'
        '{\n'
        '    MockExpectedCall& __expectedCall__ = '
        'mock().expectNCalls(__numCalls__, "ns1::class1::~class1");\n'
        '    if(!__object__.isIgnored()) { __expectedCall__.onObject('
        'const_cast<ns1::class1*>(__object__.getValue())); }\n'
        '    return __expectedCall__;\n'
        '}\n'
        '} } }\n'
    )


def test_method(libclang):
    sig = _signature('class C { public: int m(bool b) const; };')
    assert _prototype(sig) == (
        'CppUMockGen::Parameter<const C*> __object__, '
        'CppUMockGen::Parameter<bool> b, int __return__'
    )
    lines = expectation.render_implementations(sig).splitlines()
    assert '    return m(1, __object__, b, __return__);' in lines


def test_static_method(libclang):
    sig = _signature('class C { public: static void m(int a); };')
    assert _prototype(sig) == 'CppUMockGen::Parameter<int> a'


def test_unnamed_parameters(libclang):
    sig = _signature('void h(int, const char*);')
    assert _prototype(sig) == (
        'CppUMockGen::Parameter<int> _unnamedArg0, '
        'CppUMockGen::Parameter<const char *> _unnamedArg1'
    )


class TestClassifiedSlot:

    @pytest.mark.parametrize('source, formal, statement', [
        ('void f(short p);', 'CppUMockGen::Parameter<short> p',
         '__expectedCall__.withIntParameter("p", p.getValue());'),
        ('enum Enum1 { A }; void f(Enum1 p);', 'CppUMockGen::Parameter<Enum1> p',
         '__expectedCall__.withIntParameter("p", static_cast<int>(p.getValue()));'),
        ('void f(const int* p);', 'CppUMockGen::Parameter<const int *> p',
         '__expectedCall__.withConstPointerParameter("p", p.getValue());'),
        ('void f(const int& p);', 'CppUMockGen::Parameter<const int *> p',
         '__expectedCall__.withConstPointerParameter("p", p.getValue());'),
        ('void f(int* p);', 'CppUMockGen::Parameter<const int*> p',
         '__expectedCall__.withOutputParameterReturning("p", p.getValue(), '
         'sizeof(*p.getValue()));'),
        ('struct Struct1 {}; void f(Struct1 p);',
         'CppUMockGen::Parameter<const Struct1&> p',
         '__expectedCall__.withParameterOfType("Struct1", "p", &p.getValue());'),
        ('struct Struct1 {}; void f(const Struct1& p);',
         'CppUMockGen::Parameter<const Struct1*> p',
         '__expectedCall__.withParameterOfType("Struct1", "p", p.getValue());'),
        ('struct Struct1 {}; void f(Struct1* p);',
         'CppUMockGen::Parameter<const Struct1*> p',
         '__expectedCall__.withOutputParameterOfTypeReturning("Struct1", "p", '
         'p.getValue());'),
    ])
    def test_wrapped(self, libclang, source, formal, statement):
        sig = _signature(source)
        assert _prototype(sig) == formal
        assert _body(sig)[2] == (
            f'if (p.isIgnored()) {{ __ignoreOtherParams__ = true; }} '
            f'else {{ {statement} }}'
        )

    def test_byte_buffer(self, libclang):
        sig = _signature('void f(char* p);')
        assert _prototype(sig) == 'const void * p, size_t __sizeof_p'
        assert _body(sig) == [
            'MockExpectedCall& __expectedCall__ = mock().expectNCalls(__numCalls__, "f");',
            '__expectedCall__.withOutputParameterReturning("p", p, __sizeof_p);',
            'return __expectedCall__;',
        ]


class TestReturn:

    @pytest.mark.parametrize('source, formal, value', [
        ('short f();', 'short __return__', 'static_cast<int>(__return__)'),
        ('int* f();', 'int * __return__', 'static_cast<void *>(__return__)'),
        ('enum Enum1 { A }; Enum1 f();', 'Enum1 __return__',
         'static_cast<int>(__return__)'),
        ('int& f();', 'int & __return__', 'static_cast<void *>(&__return__)'),
        ('struct Struct1 {}; Struct1 f();', 'const Struct1 & __return__',
         'static_cast<const void *>(&__return__)'),
    ])
    def test_classified(self, libclang, source, formal, value):
        sig = _signature(source)
        assert _prototype(sig) == formal
        assert f'__expectedCall__.andReturnValue({value});' in _body(sig)

    def test_overridden(self, libclang):
        cfg = config.Config(parameter_overrides=['f@=Int~Enum1'])
        sig = _signature('enum Enum1 { A }; Enum1 f();', cfg)
        assert _prototype(sig) == 'Enum1 __return__'
        assert '__expectedCall__.andReturnValue(__return__);' in _body(sig)


class TestOverriddenSlot:

    def test_input_of_type(self, libclang):
        cfg = config.Config(
            parameter_overrides=['f#p2=InputOfType:Struct1~OtherStruct3/##%%$&&//'])
        sig = _signature('struct Struct2; unsigned long f(int p1, struct Struct2* p2, int p3);',
                         cfg)
        assert ('CppUMockGen::Parameter<const OtherStruct3*> p2'
                in _prototype(sig).split(', '))
        assert ('if (p2.isIgnored()) { __ignoreOtherParams__ = true; } '
                'else { __expectedCall__.withParameterOfType("Struct1", "p2", '
                'p2.getValue()); }') in _body(sig)

    @pytest.mark.parametrize('override, formals, statement', [
        ('f#p=Int~Enum1', 'CppUMockGen::Parameter<Enum1> p',
         '__expectedCall__.withIntParameter("p", p.getValue());'),
        ('f#p=ConstPointer', 'CppUMockGen::Parameter<const void *> p',
         '__expectedCall__.withConstPointerParameter("p", p.getValue());'),
        ('f#p=Output~Struct1', 'CppUMockGen::Parameter<const Struct1*> p',
         '__expectedCall__.withOutputParameterReturning("p", p.getValue(), '
         'sizeof(*p.getValue()));'),
        ('f#p=OutputOfType:Struct1', 'CppUMockGen::Parameter<const Struct1*> p',
         '__expectedCall__.withOutputParameterOfTypeReturning("Struct1", "p", '
         'p.getValue());'),
        ('f#p=InputPOD', 'CppUMockGen::Parameter<const Struct2*> p',
         '__expectedCall__.withMemoryBufferParameter("p", static_cast<const unsigned char *>'
         '(static_cast<const void *>(p.getValue())), sizeof(*p.getValue()));'),
        ('f#p=OutputPOD', 'CppUMockGen::Parameter<const Struct2*> p',
         '__expectedCall__.withOutputParameterReturning("p", p.getValue(), '
         'sizeof(*p.getValue()));'),
        ('f#p=MemoryBuffer:n',
         'CppUMockGen::Parameter<const void *> p, size_t __sizeof_p',
         '__expectedCall__.withMemoryBufferParameter("p", static_cast<const unsigned char *>'
         '(p.getValue()), __sizeof_p);'),
        ('f#p=MemoryBuffer:n~Struct1',
         'CppUMockGen::Parameter<const Struct1*> p, size_t __sizeof_p',
         '__expectedCall__.withMemoryBufferParameter("p", static_cast<const unsigned char *>'
         '(static_cast<const void *>(p.getValue())), __sizeof_p);'),
    ])
    def test_wrapped(self, libclang, override, formals, statement):
        cfg = config.Config(parameter_overrides=[override])
        sig = _signature('struct Struct2; void f(Struct2* p);', cfg)
        assert _prototype(sig) == formals
        assert _body(sig)[2] == (
            f'if (p.isIgnored()) {{ __ignoreOtherParams__ = true; }} '
            f'else {{ {statement} }}'
        )

    @pytest.mark.parametrize('source, override, formal', [
        ('struct Struct2; void f(Struct2 *const p);', 'f#p=InputPOD',
         'CppUMockGen::Parameter<const Struct2*> p'),
        ('void f(int *const p);', 'f#p=OutputPOD', 'CppUMockGen::Parameter<const int*> p'),
        ('void f(const int *const p);', 'f#p=InputPOD',
         'CppUMockGen::Parameter<const int*> p'),
        ('void f(int& p);', 'f#p=OutputPOD', 'CppUMockGen::Parameter<const int*> p'),
    ])
    def test_pod_pointee(self, libclang, source, override, formal):
        cfg = config.Config(parameter_overrides=[override])
        assert _prototype(_signature(source, cfg)) == formal

    def test_output_buffer(self, libclang):
        cfg = config.Config(parameter_overrides=['f#p=Output'])
        sig = _signature('struct Struct2; void f(Struct2* p);', cfg)
        assert _prototype(sig) == 'const void * p, size_t __sizeof_p'

    def test_skip(self, libclang):
        cfg = config.Config(parameter_overrides=['f#q=Skip'])
        sig = _signature('void f(int p, int* q, int r);', cfg)
        assert _prototype(sig) == (
            'CppUMockGen::Parameter<int> p, CppUMockGen::Parameter<int> r'
        )
        assert _body(sig) == [
            'MockExpectedCall& __expectedCall__ = mock().expectNCalls(__numCalls__, "f");',
            'if (!p.isIgnored()) { __expectedCall__.withIntParameter("p", p.getValue()); }',
            'if (!r.isIgnored()) { __expectedCall__.withIntParameter("r", r.getValue()); }',
            '__expectedCall__.ignoreOtherParameters();',
            'return __expectedCall__;',
        ]
