from __future__ import annotations

from keyless_research.web.langtag import class_rule, detect_language, signature_rule


def test_class_hint_wins_over_signatures():
    assert detect_language("def foo():\n    pass", "highlight language-ruby") == "ruby"
    assert detect_language("x = 1", "lang-go") == "go"


def test_python_signatures():
    assert detect_language("def foo():\n    print(1)") == "python"
    assert detect_language("import os\nos.getcwd()") == "python"
    assert detect_language("from collections import OrderedDict as OD") == "python"


def test_other_signatures():
    assert detect_language("<?php echo 'hi'; ?>") == "php"
    assert detect_language("public class Main { public static void main(String[] a) {} }") == "java"
    assert detect_language("#include <vector>\nint main() {}") == "cpp"
    assert detect_language("console.log('hi')") == "javascript"
    assert detect_language("const add = (a, b) => a + b;") == "javascript"


def test_java_requires_class_declaration():
    assert signature_rule(None, "public static void Main() {}") is None


def test_unknown_code_is_untagged():
    assert detect_language("SELECT * FROM users;") is None
    assert detect_language("") is None
    assert class_rule("", "x") is None
    assert class_rule("highlight", "x") is None
