# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

from setuptools import setup

with open('README.md') as readme:
    long_description = readme.read()

setup(
    name='cppumockgen',
    author='Malte Kliemann, Ole Kliemann',
    description='CppUTest mock and expectation generator',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='GLP-3.0-or-later',
    version='0.6.0',
    packages=['cppumockgen'],
    package_dir={'': 'src'},
    entry_points={
        'console_scripts': [
            'cppumockgen = cppumockgen.commandline:main'
        ]
    },
    include_package_data=True,
    python_requires='>=3.9',
    install_requires=[
        'clang>=11.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
            'pytest-console-scripts',
        ]
    }
)
