import json

from jobtrail.adapters.page.structured import parse_structured

SCENARIO_A = json.dumps(
    {
        "@type": "JobPosting",
        "title": "Data Engineer",
        "hiringOrganization": {"name": "Acme"},
        "jobLocation": {"address": {"addressLocality": "Austin", "addressRegion": "TX"}},
    }
)


def test_job_posting_block():
    result = parse_structured([SCENARIO_A])
    assert result is not None
    assert result.job_title == "Data Engineer"
    assert result.company == "Acme"
    assert result.location == "Austin, TX"
    assert result.confidence == 0.95
    assert result.source == "structured"


def test_malformed_block_is_skipped():
    result = parse_structured(["{not json", SCENARIO_A])
    assert result is not None
    assert result.job_title == "Data Engineer"


def test_no_match_returns_none():
    blocks = [json.dumps({"@type": "Organization", "name": "Acme"}), "[]", "oops"]
    assert parse_structured(blocks) is None
    assert parse_structured([]) is None


def test_graph_container_is_searched_recursively():
    block = json.dumps(
        {
            "@context": "https://schema.org",
            "@graph": [
                {"@type": "WebPage", "name": "Careers"},
                {"@graph": [{"@type": ["Thing", "JobPosting"], "title": "Nested Role"}]},
            ],
        }
    )
    result = parse_structured([block])
    assert result.job_title == "Nested Role"


def test_array_of_objects():
    block = json.dumps(
        [
            {"@type": "BreadcrumbList"},
            {"@type": "jobposting", "title": "QA Lead", "hiringOrganization": "Initech"},
        ]
    )
    result = parse_structured([block])
    assert result.job_title == "QA Lead"
    assert result.company == "Initech"


def test_first_match_wins_across_blocks():
    first = json.dumps({"@type": "JobPosting", "title": "First"})
    second = json.dumps(
        {"@type": "JobPosting", "title": "Second", "hiringOrganization": {"name": "Better"}}
    )
    assert parse_structured([first, second]).job_title == "First"


def test_legal_name_and_first_location_only():
    block = json.dumps(
        {
            "@type": "JobPosting",
            "title": "Nurse",
            "hiringOrganization": {"legalName": "Globex LLC"},
            "jobLocation": [
                {
                    "address": {
                        "addressLocality": "Lyon",
                        "addressRegion": "",
                        "addressCountry": {"name": "France"},
                    }
                },
                {"address": {"addressLocality": "Paris"}},
            ],
        }
    )
    result = parse_structured([block])
    assert result.company == "Globex LLC"
    assert result.location == "Lyon, France"


def test_match_without_fields_has_zero_confidence():
    result = parse_structured([json.dumps({"@type": "JobPosting"})])
    assert result is not None
    assert not result.has_any_field()
    assert result.confidence == 0.0
