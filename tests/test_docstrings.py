# tests/test_docstrings.py
"""
The usage examples in module and class docstrings run as written.
"""

import doctest

import pytest

import tsanalysis_shims
from tsanalysis_shims import checkers, policy, type_predicates


@pytest.mark.parametrize("module", [
    tsanalysis_shims,
    checkers,
    policy,
    type_predicates,
])
def test_examples_run(module):
    failed, attempted = doctest.testmod(module)
    assert attempted > 0
    assert failed == 0
