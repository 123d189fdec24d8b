# SPDX-FileCopyrightText: 2021 Malte Kliemann, Ole Kliemann
#
# SPDX-License-Identifier: GPL-3.0-or-later

import os

import pytest

from cppumockgen import translator


@pytest.fixture(scope="module")
def libclang():
    """Point the clang bindings at the library named by
    ``CLANG_LIBRARY_FILE`` before a module parses any header."""
    translator.set_library_file(os.environ["CLANG_LIBRARY_FILE"])
