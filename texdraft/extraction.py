"""Recovery of a LaTeX document from free-form model output."""

import logging

logger = logging.getLogger(__name__)

DOCUMENT_START = "\\documentclass"
DOCUMENT_END = "\\end{document}"
FENCE = "```"
FENCE_TAGS = ("latex", "tex")


def _fenced_block(content: str) -> str | None:
    """Return the trimmed interior of the first latex/tex fenced block.

    A ```latex fence anywhere wins over ```tex. An unterminated block yields None.
    """
    for tag in FENCE_TAGS:
        opener = f"{FENCE}{tag}"
        start_idx = content.find(opener)
        if start_idx == -1:
            continue
        start_pos = start_idx + len(opener)
        end_idx = content.find(FENCE, start_pos)
        if end_idx == -1:
            return None
        return content[start_pos:end_idx].strip()
    return None


def extract_latex_document(content: str) -> str:
    """Extract the best-effort LaTeX document from a model reply.

    Tries, in order:
    1. The span from the first \\documentclass through the first
       \\end{document} after it, both markers included.
    2. The trimmed body of the first ```latex (or ```tex) fenced block.
    3. The reply unchanged.

    Args:
        content: Raw reply text.

    Returns:
        Document text. Never raises.
    """
    start_idx = content.find(DOCUMENT_START)
    if start_idx != -1:
        end_idx = content.find(DOCUMENT_END, start_idx)
        if end_idx != -1:
            return content[start_idx : end_idx + len(DOCUMENT_END)]

    block = _fenced_block(content)
    if block is not None:
        logger.debug("No complete document markers, using fenced code block")
        return block

    logger.debug("No LaTeX structure found, returning reply unchanged")
    return content
