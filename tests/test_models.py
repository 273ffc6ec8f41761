from paperplain.models import (
    CrossrefWork,
    Paper,
    PubMedSummary,
    RelatedPaper,
    SemanticScholarRecord,
    SourceType,
)


def test_paper_clamped_applies_limits_and_placeholders():
    paper = Paper(
        title="",
        authors="A" * 700,
        abstract="B" * 5000,
        source_type=SourceType.MANUAL,
    )

    clamped = paper.clamped()

    assert clamped.title == "Unknown Title"
    assert len(clamped.authors) == 600
    assert len(clamped.abstract) == 4000


def test_paper_to_dict_exposes_source_specific_ids():
    paper = Paper(
        title="T",
        authors="A",
        abstract="",
        source_type=SourceType.ARXIV,
        source_id="2301.00234",
        pdf_url="https://arxiv.org/pdf/2301.00234.pdf",
    ).with_summary("summary", "tldr")

    payload = paper.to_dict()

    assert payload["sourceType"] == "arxiv"
    assert payload["arxivId"] == "2301.00234"
    assert payload["doi"] is None
    assert payload["pdfUrl"] == "https://arxiv.org/pdf/2301.00234.pdf"
    assert payload["summary"] == "summary"
    assert payload["style"] == "tldr"


def test_crossref_work_year_falls_back_to_print_date():
    work = CrossrefWork.from_payload(
        "10.1/x",
        {
            "title": ["A <i>Study</i>"],
            "author": [{"given": "Ada", "family": "Lovelace"}, {"name": "Consortium"}],
            "published-print": {"date-parts": [[2019, 4]]},
            "container-title": ["Journal of Things"],
            "is-referenced-by-count": 7,
        },
    )

    paper = work.to_paper()

    assert paper.title == "A Study"
    assert paper.authors == "Ada Lovelace, Consortium"
    assert paper.year == 2019
    assert paper.journal == "Journal of Things"
    assert paper.citation_count == 7
    assert paper.url == "https://doi.org/10.1/x"
    assert paper.doi == "10.1/x"


def test_pubmed_summary_reads_pmcid_from_article_ids():
    summary = PubMedSummary.from_payload(
        "31452104",
        {
            "uid": "31452104",
            "title": "Gut microbes.",
            "authors": [{"name": "Smith J"}],
            "pubdate": "2019 Aug 26",
            "source": "Nature",
            "articleids": [
                {"idtype": "pubmed", "value": "31452104"},
                {"idtype": "pmc", "value": "PMC6712345"},
            ],
        },
        "Background text.",
    )

    paper = summary.to_paper()

    assert paper.pmid == "31452104"
    assert paper.pmcid == "PMC6712345"
    assert paper.year == 2019
    assert paper.abstract == "Background text."


def test_semantic_scholar_record_maps_open_access_pdf():
    record = SemanticScholarRecord.from_payload(
        {
            "paperId": "abc",
            "title": "Deep Things",
            "authors": [{"authorId": "1", "name": "Ada"}],
            "year": 2021,
            "citationCount": 12,
            "openAccessPdf": {"url": "https://example.org/a.pdf"},
            "journal": {"name": "JMLR"},
            "fieldsOfStudy": ["Computer Science"],
            "externalIds": {"DOI": "10.1/y", "ArXiv": None},
        }
    )

    paper = record.to_paper()

    assert paper.source_type is SourceType.SEMANTIC_SCHOLAR
    assert paper.pdf_url == "https://example.org/a.pdf"
    assert paper.journal == "JMLR"
    assert paper.fields_of_study == ("Computer Science",)
    assert paper.external_ids == {"DOI": "10.1/y"}
    assert paper.abstract == ""


def test_related_paper_defaults():
    related = RelatedPaper.from_payload({"paperId": "p1"})

    assert related.title == "Unknown Title"
    assert related.authors == "Unknown Authors"
    assert related.citation_count == 0


def test_paper_is_hashable_despite_external_ids():
    first = Paper(
        title="T",
        authors="A",
        abstract="",
        source_type=SourceType.SEMANTIC_SCHOLAR,
        external_ids={"DOI": "10.1/y"},
    )
    second = Paper(
        title="T",
        authors="A",
        abstract="",
        source_type=SourceType.SEMANTIC_SCHOLAR,
        external_ids={"DOI": "10.1/y"},
    )

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1
