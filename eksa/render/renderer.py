"""``${Key}`` token rendering for generated provider configuration.

Tokens are substituted textually in one pass, so the surrounding YAML
(comments, ordering, quoting) comes out exactly as written in the
template.  Tokens without a value are left in place; callers that need
a fully resolved document check :func:`unresolved_keys`.
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, List, Optional

TOKEN_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def unresolved_keys(text: str) -> List[str]:
    """Return the sorted, de-duplicated token names still present in *text*."""
    return sorted(set(TOKEN_RE.findall(text)))


def render_template(
    template_text: str,
    substitutions: Dict[str, str],
    *,
    required_keys: Optional[FrozenSet[str]] = None,
) -> str:
    """Replace every ``${Key}`` token in *template_text* that has a value.

    Raises:
        ValueError: a key in *required_keys* is missing or empty.
    """
    missing = sorted(k for k in (required_keys or ()) if not substitutions.get(k))
    if missing:
        raise ValueError(f"missing value for template key(s): {', '.join(missing)}")

    def _sub(match: "re.Match[str]") -> str:
        key = match.group(1)
        return substitutions[key] if key in substitutions else match.group(0)

    return TOKEN_RE.sub(_sub, template_text)
