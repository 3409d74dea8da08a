"""Post-processing of generated content before it is persisted."""

import re

from core.naming import pascal_case

FENCED_BLOCK = re.compile(r"```[\w.+-]*[ \t]*\n(.*?)```", re.DOTALL)

PROPS_INTERFACE = re.compile(r"interface\s+([A-Za-z][\w ]*?)\s*Props\b")
EXPORT_FUNCTION = re.compile(r"export\s+function\s+([A-Za-z][\w ]*?)\s*\(")
EXPORT_DEFAULT = re.compile(r"export\s+default\s+([A-Za-z][\w ]*[\w])")

# `export default function X(` and friends are declarations, not names
DECLARATION_KEYWORDS = ("function", "class", "async", "const", "let", "var", "interface", "type")
# The exported name ends where a heritage or alias clause begins
CLAUSE_KEYWORDS = ("extends", "implements", "as", "satisfies", "from")


def base_name(name: str) -> str:
    """PascalCase file and export base for a unit name."""
    return pascal_case(name)


def extract_code(text: str) -> str:
    """Longest fenced code block, or the raw text when there is none."""
    blocks = FENCED_BLOCK.findall(text)
    if not blocks:
        return text.strip() + "\n"
    return max(blocks, key=len).strip() + "\n"


def _squash(match: re.Match, template: str) -> str:
    return template.format(re.sub(r"\s+", "", match.group(1)))


def _squash_default(match: re.Match) -> str:
    words = match.group(1).split()
    keywords = []
    while words and words[0] in DECLARATION_KEYWORDS:
        keywords.append(words.pop(0))
    name: list[str] = []
    while words and words[0] not in CLAUSE_KEYWORDS:
        name.append(words.pop(0))
    return " ".join(part for part in ["export default", *keywords, "".join(name), *words] if part)


def sanitize_identifiers(code: str, unit_name: str) -> str:
    """
    Remove stray spaces from generated identifiers.

    Models sometimes echo a unit's display name verbatim, producing
    `interface Login Form Props` or `export default Login Form`.
    """
    safe_name = base_name(unit_name)
    code = PROPS_INTERFACE.sub(lambda m: _squash(m, "interface {}Props"), code)
    code = EXPORT_FUNCTION.sub(lambda m: _squash(m, "export function {}("), code)
    code = EXPORT_DEFAULT.sub(_squash_default, code)
    return code.replace(f"{safe_name} Default", f"{safe_name}Default")


def attach_documentation(code: str, documentation: str) -> str:
    """Prepend the planner's self-documentation, after any directive prologue."""
    documentation = documentation.strip()
    if not documentation:
        return code

    directive = re.match(r"""\s*(["'])use (client|server)\1;?[ \t]*\n""", code)
    if directive:
        head = code[: directive.end()]
        return f"{head}\n{documentation}\n{code[directive.end():]}"
    return f"{documentation}\n{code}"


__all__ = ["base_name", "extract_code", "sanitize_identifiers", "attach_documentation"]
