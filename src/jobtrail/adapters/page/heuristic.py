from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from ...core.page import PageSignal
from ...core.schema import COMPANY_MAX, LOCATION_MAX, TITLE_MAX
from ...core.utils import normalize_whitespace, within

Lookup = Callable[[PageSignal], str]

# Ordered by how specific the hint is to a job board; first non-empty hit wins.
TITLE_SELECTORS = [
    "h1",
    "[data-test='job-title']",
    "[data-testid='job-title']",
    ".jobsearch-JobInfoHeader-title",
    ".topcard__title",
    ".jobs-unified-top-card__job-title",
    "[itemprop='title']",
]

COMPANY_SELECTORS = [
    "[data-test='employer-name']",
    "[data-testid='company-name']",
    ".topcard__org-name-link",
    ".jobs-unified-top-card__company-name",
    ".jobsearch-InlineCompanyRating div:first-child",
    "[itemprop='hiringOrganization']",
]

LOCATION_SELECTORS = [
    "[data-test='job-location']",
    "[data-test='location']",
    "[data-testid='job-location']",
    "[data-testid='inlineHeader-companyLocation']",
    ".topcard__flavor--bullet",
    ".jobs-unified-top-card__bullet",
    "[itemprop='jobLocation']",
]

META_TITLE_KEYS = ["og:title", "twitter:title"]
META_SITE_NAME_KEYS = ["og:site_name"]

RE_META_TITLE_CUT = re.compile(r"[|\-]")


@dataclass
class LocatedFields:
    job_title: str = ""
    company: str = ""
    location: str = ""

    def is_complete(self) -> bool:
        return bool(self.job_title and self.company)


def _selector_lookup(selector: str) -> Lookup:
    return lambda page: page.text_by_selector(selector)


def _attr_lookup(selector: str, attr: str) -> Lookup:
    return lambda page: page.attr_by_selector(selector, attr)


def _meta_title(page: PageSignal) -> str:
    for key in META_TITLE_KEYS:
        raw = page.meta(key)
        if raw:
            return normalize_whitespace(RE_META_TITLE_CUT.split(raw, maxsplit=1)[0])
    return ""


def _meta_site_name(page: PageSignal) -> str:
    for key in META_SITE_NAME_KEYS:
        raw = page.meta(key)
        if raw:
            return raw
    return ""


def split_document_title(title: str) -> Tuple[str, str]:
    """``"Role - Company | Board"`` -> ``("Role", "Company")``.

    Splits on ``|`` first, then the head segment on ``" - "``. When the head
    has no dash, the second ``|`` segment (if any) is taken as the company.
    """
    title = normalize_whitespace(title)
    if not title:
        return "", ""
    pipe_parts = [p.strip() for p in title.split("|")]
    dash_parts = [p.strip() for p in pipe_parts[0].split(" - ")]
    job_title = dash_parts[0]
    if len(dash_parts) > 1:
        company = dash_parts[1]
    elif len(pipe_parts) > 1:
        company = pipe_parts[1]
    else:
        company = ""
    return job_title, company


def first_match(page: PageSignal, lookups: Sequence[Lookup], max_chars: int) -> str:
    for lookup in lookups:
        value = within(normalize_whitespace(lookup(page)), max_chars)
        if value:
            return value
    return ""


TITLE_LOOKUPS: List[Lookup] = [_selector_lookup(s) for s in TITLE_SELECTORS]
COMPANY_LOOKUPS: List[Lookup] = [_selector_lookup(s) for s in COMPANY_SELECTORS] + [
    # schema.org microdata keeps the name in a <meta content=...>
    _attr_lookup("[itemprop='hiringOrganization'] meta[itemprop='name']", "content"),
]
LOCATION_LOOKUPS: List[Lookup] = [_selector_lookup(s) for s in LOCATION_SELECTORS]


def locate_fields(page: PageSignal) -> LocatedFields:
    # selectors -> metadata -> document title; order is fixed
    fields = LocatedFields(
        job_title=first_match(page, TITLE_LOOKUPS, TITLE_MAX),
        company=first_match(page, COMPANY_LOOKUPS, COMPANY_MAX),
        location=first_match(page, LOCATION_LOOKUPS, LOCATION_MAX),
    )

    if not fields.job_title:
        fields.job_title = first_match(page, [_meta_title], TITLE_MAX)
    if not fields.company:
        fields.company = first_match(page, [_meta_site_name], COMPANY_MAX)

    if not fields.is_complete():
        title_guess, company_guess = split_document_title(page.document_title())
        if not fields.job_title:
            fields.job_title = within(title_guess, TITLE_MAX)
        if not fields.company:
            fields.company = within(company_guess, COMPANY_MAX)

    return fields
