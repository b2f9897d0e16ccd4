"""
tsanalysis_shims — Type Classification and Directive Policy for TypeScript
==========================================================================

Building blocks for lint rules that reason about TypeScript types and
``@ts-`` directive comments.

Core modules
------------
type_flags
    ``TypeFlags`` / ``ObjectFlags`` enumerations with compiler values.
type_predicates
    Classifier and structure walker over type handles.
type_model
    In-memory type graphs, a simple checker and a JSON type dump loader.
comments
    Comment tokens and a comment scanner for TS / JS sources.
directives
    ``@ts-<directive>`` recognition.
policy
    Directive policy configuration and evaluator.
diagnostics
    Diagnostic model, text edits and suggestions.
checkers
    Checker framework, ``ban-ts-comment`` and the runner.

Quick start
-----------
>>> from tsanalysis_shims import CheckerRunner
>>> results = CheckerRunner().run_text("// @ts-ignore\\nfoo();\\n")
>>> results.diagnostics[0].error_id
'tsIgnoreInsteadOfExpectError'

Package layout
--------------
::

    tsanalysis_shims/
    ├── __init__.py            ← this file
    ├── __main__.py
    ├── cli.py
    ├── errors.py
    ├── type_flags.py
    ├── type_predicates.py
    ├── type_model.py
    ├── comments.py
    ├── directives.py
    ├── policy.py
    ├── diagnostics.py
    └── checkers.py
"""

from __future__ import annotations

import importlib
import sys
from typing import List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__author__ = "tsanalysis-shims contributors"
__license__ = "MIT"
__all__: List[str] = []          # populated incrementally below


# ---------------------------------------------------------------------------
# Submodule → public names re-exported at package level.
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "TsShimsError",
        "ConfigurationError",
        "InvalidPatternError",
        "TypeDumpError",
    ],
    "type_flags": [
        "TypeFlags",
        "ObjectFlags",
    ],
    "type_predicates": [
        "TypeSystemAccessor",
        "TypeClassifier",
        "logging_sink",
        "union_type_parts",
        "get_type_flags",
        "is_type_flag_set",
        "is_nullable_type",
        "is_type_never_type",
        "is_type_unknown_type",
        "is_type_any_type",
        "is_type_any_array_type",
        "is_type_unknown_array_type",
        "is_type_bigint_literal_type",
        "is_type_template_literal_type",
        "is_type_reference_type",
        "is_type_array_type_or_union_of_array_types",
        "type_is_or_has_base_type",
    ],
    "type_model": [
        "Symbol",
        "TypeNode",
        "SimpleTypeChecker",
        "load_type_dump",
    ],
    "comments": [
        "CommentKind",
        "Comment",
        "scan_comments",
    ],
    "directives": [
        "Directive",
        "DirectiveMatch",
        "match_directive",
    ],
    "policy": [
        "DEFAULT_OPTIONS",
        "PolicyConfiguration",
        "DirectivePolicyEvaluator",
    ],
    "diagnostics": [
        "Diagnostic",
        "DiagnosticSeverity",
        "SourceLocation",
        "SourceSpan",
        "TextEdit",
        "Suggestion",
    ],
    "checkers": [
        "BanTsCommentChecker",
        "CheckerRunner",
        "CheckerRunResults",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    fq_name = f"{__name__}.{module_rel_name}"
    try:
        mod = importlib.import_module(fq_name)
    except ImportError as exc:
        raise ImportError(
            f"tsanalysis_shims: required submodule '{module_rel_name}' "
            f"failed to import: {exc}"
        ) from exc

    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"tsanalysis_shims.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)


for _mod_name, _names in _CORE_MODULES.items():
    _import_names(_mod_name, _names)
