"""Text helpers shared by the policy reader and the synthesizer."""


def strip_comments(rego: str) -> str:
    """Return ``rego`` without its full-line ``#`` comments.

    Only lines whose first non-blank character is ``#`` are dropped; code
    lines are kept verbatim, including any trailing comment, because a
    ``#`` inside a string literal must survive.
    """
    lines = []
    for line in rego.splitlines():
        if line.strip().startswith("#"):
            continue
        lines.append(line + "\n")
    return "".join(lines)
