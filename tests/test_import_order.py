from __future__ import annotations

import libcst as cst

from deadshake.frontend.lines import module_spans
from deadshake.rewrite import order_by_namespace, plan_import_order
from deadshake.rewrite.imports import import_target


def _plan(text: str, package: str):
    module = cst.parse_module(text)
    return plan_import_order(module, module_spans(module), package)


def test_order_by_namespace_prefers_nearest_namespace() -> None:
    items = ["os", "pkg.sub.a", "pkg.x", "zeta", "pkg.sub"]
    assert order_by_namespace(items, "pkg.sub", key=str) == [
        "pkg.sub",
        "pkg.sub.a",
        "pkg.x",
        "os",
        "zeta",
    ]
    assert order_by_namespace(items, "", key=str) == sorted(items)


def test_relative_imports_resolve_against_package() -> None:
    module = cst.parse_module("from .. import a\nfrom .b import c\nimport x.y\n")
    targets = [import_target(stmt, "pkg.sub") for stmt in module.body]
    assert targets == ["pkg", "pkg.sub.b", "x.y"]


def test_plan_reorders_block_after_docstring_and_future_imports() -> None:
    text = (
        '"""Doc."""\n'
        "from __future__ import annotations\n"
        "\n"
        "import os\n"
        "from zeta import thing\n"
        "# sibling helpers\n"
        "from . import sibling\n"
        "from pkg.sub import other\n"
        "\n"
        "\n"
        "def use():\n"
        "    return os, thing, sibling, other\n"
    )
    block = _plan(text, "pkg.sub")
    assert block is not None
    assert (block.start, block.end) == (2, 8)
    assert block.replacement == (
        "\n"
        "# sibling helpers\n"
        "from . import sibling\n"
        "from pkg.sub import other\n"
        "import os\n"
        "from zeta import thing\n"
    )


def test_plan_returns_none_when_already_ordered() -> None:
    text = "import os\nimport sys\n\n\nprint(os, sys)\n"
    assert _plan(text, "") is None
    assert _plan("import os\n", "") is None
