from __future__ import annotations

from fubelt.style import format_style


def test_rules_nest_one_level() -> None:
    lines = [".a {", "color: red;", "}", ".b { color: blue; }"]
    assert format_style(lines, 1) == "\t.a {\n\t\tcolor: red;\n\t}\n\t.b { color: blue; }"


def test_nested_at_rule() -> None:
    lines = ["@media (max-width: 600px) {", ".a {", "margin: 0;", "}", "}"]
    assert format_style(lines, 0) == (
        "@media (max-width: 600px) {\n\t.a {\n\t\tmargin: 0;\n\t}\n}"
    )


def test_only_braces_count() -> None:
    # Parentheses and brackets are not nesting in style code.
    assert format_style(["a[href] (", "b"], 0) == "a[href] (\nb"


def test_blank_lines_and_stray_closer() -> None:
    assert format_style(["}", "", "p {"], 2) == "\t\t}\n\n\t\tp {"
