from __future__ import annotations

"""
Best-effort language tags for extracted code samples.

Rules run in priority order and the first non-None answer wins:

1. ``class_rule``: an explicit ``language-xxx`` / ``lang-xxx`` class.
2. ``signature_rule``: syntactic signatures in the code itself.
3. untagged (``None``).

Short or mixed samples can be mistagged; the tag is a hint, not a fact.
"""

import re
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

_CLASS_RE = re.compile(r"(?:^|\s)(?:language|lang)-([a-z0-9_+#-]+)", re.I)

# Ordered: earlier entries win on overlap (Java before Python because both use
# `import`; C++ before JavaScript because both use `const`).
SIGNATURES: List[Tuple[str, Sequence[Pattern[str]]]] = [
    ("php", [re.compile(r"<\?php")]),
    ("java", [re.compile(r"\bpublic\s+static\s+void\b")]),
    ("cpp", [re.compile(r"^\s*#include\s*[<\"]", re.M), re.compile(r"\bstd::")]),
    ("python", [
        re.compile(r"^\s*def\s+\w+\s*\(", re.M),
        re.compile(r"^\s*(?:from\s+[\w.]+\s+)?import\s+[\w.]+(?:\s+as\s+\w+)?\s*$", re.M),
        re.compile(r"\bprint\("),
    ]),
    ("javascript", [
        re.compile(r"\bconsole\.log\("),
        re.compile(r"=>"),
        re.compile(r"^\s*(?:const|let)\s+[\w$]+", re.M),
    ]),
]


def class_rule(class_attr: Optional[str], code: str = "") -> Optional[str]:
    if not class_attr:
        return None
    m = _CLASS_RE.search(class_attr)
    return m.group(1).lower() if m else None


def signature_rule(class_attr: Optional[str], code: str = "") -> Optional[str]:
    text = code or ""
    for lang, patterns in SIGNATURES:
        if lang == "java":
            # `public static void` alone also shows up in C#; require a class declaration too
            if "class " in text and any(p.search(text) for p in patterns):
                return lang
            continue
        if any(p.search(text) for p in patterns):
            return lang
    return None


RULES: List[Callable[[Optional[str], str], Optional[str]]] = [class_rule, signature_rule]


def detect_language(code: str, class_attr: Optional[str] = None) -> Optional[str]:
    for rule in RULES:
        lang = rule(class_attr, code)
        if lang:
            return lang
    return None
