from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ...infra.config import AppConfig
from ...infra.tool_provider import (
    OFFLINE_PROVIDERS,
    invoke_intranet_tool,
    normalize_provider,
)
from ...observability.logging_utils import log_event, summarize_text
from ...schemas import SchemeInfoResult, ToolInvocation


NOT_FOUND_TEMPLATE = (
    'No specific information found for "{query}". Please try a more specific '
    "query about a known government scheme like PM-KISAN or NABARD."
)

# (keywords, summary); first entry with a keyword in the query wins
SCHEME_KNOWLEDGE: Sequence[Tuple[Tuple[str, ...], str]] = (
    (
        ("pm-kisan", "pm kisan", "kisan samman"),
        "The Pradhan Mantri Kisan Samman Nidhi (PM-KISAN) is a central sector scheme "
        "with 100% funding from the Government of India. It provides an income support "
        "of Rs. 6,000 per year in three equal installments to all landholding farmer "
        "families. Eligibility is based on land ownership, and certain exclusion criteria "
        "apply, such as institutional landholders and high-income individuals.",
    ),
    (
        ("nabard",),
        "The National Bank for Agriculture and Rural Development (NABARD) provides and "
        "regulates credit and other facilities for the promotion and development of "
        "agriculture, small-scale industries, cottage and village industries, handicrafts "
        "and other rural crafts and other allied economic activities in rural areas with "
        "a view to promoting integrated rural development and securing prosperity of "
        "rural areas.",
    ),
    (
        ("crop insurance", "fasal bima", "pmfby"),
        "The Pradhan Mantri Fasal Bima Yojana (PMFBY) is the government-sponsored crop "
        "insurance scheme that integrates multiple stakeholders on a single platform. It "
        "provides financial support to farmers suffering crop loss/damage arising out of "
        "unforeseen events.",
    ),
    (
        ("kisan credit card", "kcc"),
        "The Kisan Credit Card (KCC) scheme gives farmers timely short-term credit for "
        "cultivation, post-harvest expenses and allied activities at a subsidised "
        "interest rate. Owner cultivators, tenant farmers, oral lessees and share croppers "
        "are eligible. Apply at any commercial, regional rural or co-operative bank with "
        "land records, an identity proof and a passport photograph.",
    ),
    (
        ("soil health card", "soil health"),
        "The Soil Health Card scheme provides every farmer with a card reporting the "
        "nutrient status of their soil along with crop-wise fertilizer recommendations. "
        "Soil samples are collected by the state agriculture department; farmers can "
        "register through the local agriculture office or the Soil Health Card portal.",
    ),
)


def no_scheme_found(query: str, source: str) -> SchemeInfoResult:
    return SchemeInfoResult(
        query=query,
        summary=NOT_FOUND_TEMPLATE.format(query=query),
        found=False,
        source=source,
    )


def search_scheme_knowledge(query: str) -> Optional[str]:
    lowered = query.lower()
    for keywords, summary in SCHEME_KNOWLEDGE:
        if any(keyword in lowered for keyword in keywords):
            return summary
    return None


def _coerce_intranet_summary(query: str, payload: ToolInvocation) -> Optional[SchemeInfoResult]:
    data = payload.data or {}
    summary = data.get("summary") or data.get("payload")
    if not isinstance(summary, str) or not summary.strip():
        return None
    return SchemeInfoResult(query=query, summary=summary.strip(), found=True, source="intranet")


def lookup_scheme_info(query: str, *, config: AppConfig) -> SchemeInfoResult:
    query = (query or "").strip()
    provider = normalize_provider(config.scheme_search_provider)
    if not query:
        return no_scheme_found(query, provider)

    if provider in OFFLINE_PROVIDERS:
        summary = search_scheme_knowledge(query)
        result = (
            SchemeInfoResult(query=query, summary=summary, found=True, source="mock")
            if summary
            else no_scheme_found(query, provider)
        )
    elif provider == "intranet":
        payload = invoke_intranet_tool(
            "scheme_info_lookup",
            {"query": query},
            config.scheme_search_api_url,
            config.scheme_search_api_key,
            timeout=config.tool_timeout_seconds,
        )
        result = _coerce_intranet_summary(query, payload) or no_scheme_found(query, provider)
    else:
        result = no_scheme_found(query, provider)

    log_event(
        "scheme_info_lookup",
        query=summarize_text(query),
        found=result.found,
        source=result.source,
    )
    return result
