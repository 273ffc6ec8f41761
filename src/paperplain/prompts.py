"""Prompt templates and rendering helpers."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import TYPE_CHECKING

from .models import SummaryStyle

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_STYLE = "simple"
KEY_TERMS_HEADING = "**Key Terms:**"
PLACEHOLDER_PATTERN = re.compile(r"\{\{\w+\}\}")

_PLAIN_ENGLISH_SYSTEM_PROMPT = (
    "You are an expert at translating complex academic papers into clear, "
    "simple English that anyone can understand."
)

_KEY_TERMS_FORMAT = """**Key Terms:**
• **Term 1**: Definition
• **Term 2**: Definition
• **Term 3**: Definition"""

SIMPLE_TEMPLATE = f"""You are an expert at explaining complex academic research in simple, plain English.

Paper Title: {{{{title}}}}
Abstract: {{{{abstract}}}}

Please provide a clear, concise summary that includes:

1. THE PROBLEM: What problem is this research trying to solve? (2-3 sentences)

2. THE METHOD: How did they approach it? What did they do? (2-3 sentences)

3. THE CONCLUSION: What did they find? Why does it matter? (2-3 sentences)

4. KEY TERMS: Define the 3 most important technical terms from this paper in simple language.

Format your response as follows:
**The Problem:**
[Your explanation]

**The Method:**
[Your explanation]

**The Conclusion:**
[Your explanation]

{_KEY_TERMS_FORMAT}

Use simple language, avoid jargon, and make it accessible to someone without expertise in this field."""

DETAILED_TEMPLATE = f"""Explain the following research paper in depth for an educated reader who is new to the field.

Paper Title: {{{{title}}}}
Abstract: {{{{abstract}}}}

Cover each section with 3-5 sentences:

**Background:**
[What was known before and why this area matters]

**The Problem:**
[The specific gap or question the authors address]

**The Method:**
[How the study was designed and carried out]

**Key Findings:**
[The main results, with numbers when the abstract gives them]

**The Conclusion:**
[What the findings mean and why they matter]

**Limitations:**
[Caveats the abstract states or implies; say so if none are given]

Then define the 5 most important technical terms:
**Key Terms:**
• **Term 1**: Definition
• **Term 2**: Definition
• **Term 3**: Definition
• **Term 4**: Definition
• **Term 5**: Definition

Stay faithful to the abstract. Do not invent results."""

TECHNICAL_TEMPLATE = f"""Write a technical brief of the following paper for a researcher in an adjacent field.

Paper Title: {{{{title}}}}
Abstract: {{{{abstract}}}}

Use precise terminology and keep each section to 2-4 sentences:

**Problem Formulation:**
[The formal task, inputs, outputs and assumptions]

**Technical Approach:**
[Architecture, algorithm or experimental design]

**Results:**
[Quantitative results and the baselines they are compared against]

**Contributions:**
[What is novel relative to prior work]

**Open Questions:**
[What remains unresolved or untested]

{_KEY_TERMS_FORMAT}

Do not speculate beyond what the abstract supports."""

TLDR_TEMPLATE = """Summarize this paper in one or two plain-English sentences.

Paper Title: {{title}}
Abstract: {{abstract}}

Format your response as:
**TL;DR:** [Your summary]

Do not add any other sections."""

SUMMARY_STYLES: Mapping[str, SummaryStyle] = MappingProxyType(
    {
        "simple": SummaryStyle(
            name="simple",
            description="Plain-English overview of problem, method and conclusion",
            max_tokens=1000,
            system_prompt=_PLAIN_ENGLISH_SYSTEM_PROMPT,
            template=SIMPLE_TEMPLATE,
        ),
        "detailed": SummaryStyle(
            name="detailed",
            description="Longer walkthrough with background, findings and limitations",
            max_tokens=1500,
            system_prompt=(
                "You are a patient science communicator who explains research "
                "thoroughly and accurately without assuming expertise."
            ),
            template=DETAILED_TEMPLATE,
        ),
        "technical": SummaryStyle(
            name="technical",
            description="Precise brief for researchers in adjacent fields",
            max_tokens=1200,
            system_prompt=(
                "You are a senior researcher writing concise, technically precise "
                "briefs of academic papers for other researchers."
            ),
            template=TECHNICAL_TEMPLATE,
        ),
        "tldr": SummaryStyle(
            name="tldr",
            description="One or two sentence takeaway",
            max_tokens=200,
            system_prompt=_PLAIN_ENGLISH_SYSTEM_PROMPT,
            template=TLDR_TEMPLATE,
            requires_key_terms=False,
        ),
    }
)

KEY_TERMS_REPAIR_SYSTEM_PROMPT = (
    "You define technical terms from academic papers in plain language. "
    "Output only the requested block, nothing else."
)

KEY_TERMS_REPAIR_TEMPLATE = f"""Paper Title: {{{{title}}}}
Abstract: {{{{abstract}}}}

Summary already written:
{{{{summary}}}}

Define the 3 most important technical terms from this paper in simple language.
Respond with exactly this block and nothing else:
{_KEY_TERMS_FORMAT}"""

QA_SYSTEM_PROMPT = (
    "You answer questions about one academic paper using only the text provided "
    "(title, authors, abstract and summary). If the text does not contain the "
    "answer, say briefly that the paper text provided does not say. Keep answers "
    "short and concrete."
)

QA_TEMPLATE = """Paper Title: {{title}}
Authors: {{authors}}
Abstract: {{abstract}}
Summary: {{summary}}

Question: {{question}}"""

PDF_METADATA_SYSTEM_PROMPT = (
    "You extract bibliographic metadata from the raw text of academic papers. "
    "Copy text exactly as it appears; never invent values."
)

PDF_METADATA_TEMPLATE = """Below is the raw text extracted from the beginning of a PDF.
Identify the paper's title, its authors and its abstract.

Respond with exactly three labeled blocks:
TITLE: <the paper title on one line>
AUTHORS: <author names separated by commas>
ABSTRACT: <the full abstract>

Write UNKNOWN for any block you cannot find.

PDF text:
{{text}}"""


def _replace_placeholders(template: str, replacements: dict[str, str]) -> str:
    def _substitute(match: re.Match[str]) -> str:
        return replacements.get(match.group(0), match.group(0))

    return PLACEHOLDER_PATTERN.sub(_substitute, template)


def resolve_style(
    name: str | None,
    styles: Mapping[str, SummaryStyle] = SUMMARY_STYLES,
) -> SummaryStyle:
    """Look up a style by name, falling back to ``simple``."""

    key = (name or "").strip().lower()
    if key in styles:
        return styles[key]
    return styles[DEFAULT_STYLE]


def build_summary_prompt(template: str, title: str, abstract: str) -> str:
    safe_abstract = abstract.strip() or "[No abstract available]"
    if "{{title}}" in template or "{{abstract}}" in template:
        return _replace_placeholders(
            template,
            {"{{title}}": title, "{{abstract}}": safe_abstract},
        )
    return f"{template.strip()}\n\nPaper Title: {title}\nAbstract: {safe_abstract}"


def build_key_terms_prompt(title: str, abstract: str, summary: str) -> str:
    return _replace_placeholders(
        KEY_TERMS_REPAIR_TEMPLATE,
        {
            "{{title}}": title,
            "{{abstract}}": abstract.strip() or "[No abstract available]",
            "{{summary}}": summary.strip(),
        },
    )


def build_qa_prompt(
    question: str,
    title: str,
    authors: str,
    abstract: str,
    summary: str,
) -> str:
    return _replace_placeholders(
        QA_TEMPLATE,
        {
            "{{title}}": title,
            "{{authors}}": authors,
            "{{abstract}}": abstract,
            "{{summary}}": summary,
            "{{question}}": question,
        },
    )


def build_pdf_metadata_prompt(text: str) -> str:
    return _replace_placeholders(PDF_METADATA_TEMPLATE, {"{{text}}": text})
