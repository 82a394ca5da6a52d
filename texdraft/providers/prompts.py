"""Prompt construction for LaTeX document generation."""

from texdraft.models import Template

# Document class and preamble packages per template
TEMPLATE_PREAMBLES: dict[Template, tuple[str, str]] = {
    Template.ARTICLE: (
        "article",
        r"\usepackage[utf8]{inputenc}\usepackage{amsmath}\usepackage{graphicx}"
        r"\usepackage{hyperref}",
    ),
    Template.REPORT: (
        "report",
        r"\usepackage[utf8]{inputenc}\usepackage{amsmath}\usepackage{graphicx}"
        r"\usepackage{hyperref}\usepackage{titlesec}",
    ),
    Template.IEEETRAN: (
        "IEEEtran",
        r"\usepackage[utf8]{inputenc}\usepackage{amsmath}\usepackage{graphicx}"
        r"\usepackage{hyperref}\usepackage{cite}\usepackage{amsfonts}"
        r"\usepackage{amssymb}\usepackage{url}",
    ),
    Template.BOOK: (
        "book",
        r"\usepackage[utf8]{inputenc}\usepackage{amsmath}\usepackage{graphicx}"
        r"\usepackage{hyperref}\usepackage{fancyhdr}",
    ),
    Template.LETTER: (
        "letter",
        r"\usepackage[utf8]{inputenc}\usepackage{hyperref}\usepackage{geometry}",
    ),
}

USER_PROMPT = """Generate a comprehensive LaTeX document about '{topic}' using the '{doc_class}' \
document class. Include appropriate sections, equations, and references. Format it as a \
complete LaTeX document that can be compiled directly. Use these packages:

{packages}

Make sure to include:

1. A title section
2. At least 3 content sections
3. At least one equation
4. Proper document structure with begin/end document
5. All necessary template-specific elements for {doc_class}"""


def document_class(template: Template) -> str:
    """Return the LaTeX document class used for a template."""
    return TEMPLATE_PREAMBLES[template][0]


def build_prompt(topic: str, template: Template) -> str:
    """Build the user prompt asking for a complete LaTeX document.

    Args:
        topic: Topic typed by the user.
        template: Template selecting the document class and packages.

    Returns:
        Prompt text sent as the single user message.
    """
    doc_class, packages = TEMPLATE_PREAMBLES[template]
    return USER_PROMPT.format(topic=topic, doc_class=doc_class, packages=packages)
