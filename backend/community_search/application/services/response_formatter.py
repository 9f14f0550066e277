"""Template-based response formatter.

Renders ranked members as a short Markdown answer whose layout depends on
the query intent. Pure data transform: no provider calls, no I/O.
"""

import logging

from community_search.domain.entities import ExtractedEntities, Intent, ScoredMember

logger = logging.getLogger(__name__)

MAX_LISTED = 10
MAX_LISTED_PERSON = 5

_CRORE = 10_000_000
_LAKH = 100_000


def format_turnover(amount: int | float) -> str:
    """Indian-style rupee amount: ``₹15.0 Cr``, ``₹5.0 L``, ``₹50K``."""
    if amount >= _CRORE:
        return f"₹{amount / _CRORE:.1f} Cr"
    if amount >= _LAKH:
        return f"₹{amount / _LAKH:.1f} L"
    return f"₹{amount / 1000:.0f}K"


def short_year(year: int) -> str:
    return f"'{str(year)[-2:]}"


def highlight_matched_fields(member: ScoredMember, entities: ExtractedEntities) -> list[str]:
    """Which of the extracted entities this member actually matches."""
    matched = []
    if entities.location and member.city and member.city.lower() == entities.location.lower():
        matched.append("location")
    if entities.graduation_year and member.graduation_year in entities.graduation_year:
        matched.append("batch year")
    branches = [b.lower() for b in entities.branch_labels()]
    if branches and member.branch and member.branch.lower() in branches:
        matched.append("branch")
    if entities.degree and member.degree:
        held = member.degree.replace(".", "").lower()
        if any(d.replace(".", "").lower() == held for d in entities.degree):
            matched.append("degree")
    if entities.skills and member.skills:
        skills = member.skills.lower()
        if any(s.lower() in skills for s in entities.skills):
            matched.append("skills")
    if entities.services and member.services:
        services = member.services.lower()
        if any(s.lower() in services for s in entities.services):
            matched.append("services")
    return matched


def _contacts(member: ScoredMember) -> str | None:
    parts = []
    if member.phone:
        parts.append(f"📞 {member.phone}")
    if member.email:
        parts.append(f"✉️ {member.email}")
    return " | ".join(parts) if parts else None


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


# ── Headers ──────────────────────────────────────────────────────────


def _business_header(entities: ExtractedEntities, total: int) -> str:
    parts = ["Found"]
    if entities.services:
        parts.append(f"**{entities.services[0]}**")
    parts.append("companies")
    if entities.location:
        parts.append(f"in **{entities.location}**")
    parts.append(f"({total} results):")
    return " ".join(parts)


def _peer_header(entities: ExtractedEntities, total: int) -> str:
    parts = []
    if entities.graduation_year:
        parts.append(f"**{entities.graduation_year[0]} batch**")
    branches = entities.branch_labels()
    if branches:
        parts.append(f"**{branches[0]}**")
    parts.append("alumni")
    if len(parts) == 1:
        parts.insert(0, "Found")
    parts.append(f"({total} results):")
    return " ".join(parts)


def _person_header(entities: ExtractedEntities, total: int) -> str:
    if entities.name:
        return f"Found matches for **{entities.name}**:"
    return f"Found {total} members:"


def _alumni_business_header(entities: ExtractedEntities, total: int) -> str:
    parts = []
    if entities.graduation_year:
        parts.append(f"**{entities.graduation_year[0]} batch**")
    parts.append("entrepreneurs")
    if entities.services:
        parts.append(f"in **{entities.services[0]}**")
    if entities.location:
        parts.append(f"from **{entities.location}**")
    parts.append(f"({total} results):")
    return " ".join(parts)


# ── Per-intent layouts ───────────────────────────────────────────────


def format_business_results(members: list[ScoredMember], entities: ExtractedEntities, total: int) -> str:
    items = []
    for index, member in enumerate(members[:MAX_LISTED], start=1):
        lines = [f"{index}. **{member.organization or member.name or 'Unknown'}**"]
        if member.city:
            lines.append(f"   📍 {member.city}")
        if member.services:
            lines.append(f"   💼 {member.services}")
        elif member.skills:
            lines.append(f"   💼 {member.skills}")
        contacts = _contacts(member)
        if contacts:
            lines.append(f"   {contacts}")
        if member.annual_turnover and member.annual_turnover > 0:
            lines.append(f"   💰 Turnover: {format_turnover(member.annual_turnover)}")
        matched = member.matched_fields or highlight_matched_fields(member, entities)
        if matched:
            lines.append(f"   ✓ Matched: {', '.join(matched)}")
        items.append("\n".join(lines))

    footer = f"_Found {total} {_plural(total, 'result', 'results')}_"
    return "\n\n".join([_business_header(entities, total), *items, footer])


def format_peer_results(members: list[ScoredMember], entities: ExtractedEntities, total: int) -> str:
    items = []
    for index, member in enumerate(members[:MAX_LISTED], start=1):
        lines = [f"{index}. **{member.name or 'Unknown'}**"]
        alumni = []
        if member.graduation_year:
            alumni.append(short_year(member.graduation_year))
        if member.degree:
            alumni.append(member.degree)
        if member.branch:
            alumni.append(member.branch)
        if alumni:
            lines.append(f"   🎓 {' • '.join(alumni)}")
        if member.organization or member.designation:
            role = member.designation or "Working"
            org = f" at {member.organization}" if member.organization else ""
            lines.append(f"   💼 {role}{org}")
        if member.city:
            lines.append(f"   📍 {member.city}")
        contacts = _contacts(member)
        if contacts:
            lines.append(f"   {contacts}")
        items.append("\n".join(lines))

    footer = f"_Found {total} alumni_"
    return "\n\n".join([_peer_header(entities, total), *items, footer])


def format_person_results(members: list[ScoredMember], entities: ExtractedEntities, total: int) -> str:
    items = []
    for index, member in enumerate(members[:MAX_LISTED_PERSON], start=1):
        lines = [f"{index}. **{member.name or 'Unknown'}**"]
        role = [p for p in (member.designation, member.organization) if p]
        if role:
            lines.append(f"   💼 {' at '.join(role)}")
        alumni = []
        if member.graduation_year:
            alumni.append(f"Batch of {member.graduation_year}")
        if member.degree:
            alumni.append(member.degree)
        if member.branch:
            alumni.append(member.branch)
        if alumni:
            lines.append(f"   🎓 {' • '.join(alumni)}")
        if member.city:
            lines.append(f"   📍 {member.city}")
        if member.skills:
            lines.append(f"   🛠️ Skills: {member.skills}")
        if member.services:
            lines.append(f"   💼 Services: {member.services}")
        if member.phone:
            lines.append(f"   📞 {member.phone}")
        if member.email:
            lines.append(f"   ✉️ {member.email}")
        if member.annual_turnover and member.annual_turnover > 0:
            lines.append(f"   💰 Annual Turnover: {format_turnover(member.annual_turnover)}")
        items.append("\n".join(lines))

    if total > MAX_LISTED_PERSON:
        footer = f"_Showing top {MAX_LISTED_PERSON} of {total} matches_"
    else:
        footer = f"_Found {total} {_plural(total, 'match', 'matches')}_"
    return "\n\n".join([_person_header(entities, total), *items, footer])


def format_alumni_business_results(members: list[ScoredMember], entities: ExtractedEntities, total: int) -> str:
    items = []
    for index, member in enumerate(members[:MAX_LISTED], start=1):
        org = f" - {member.organization}" if member.organization else ""
        lines = [f"{index}. **{member.name or 'Unknown'}**{org}"]
        alumni = []
        if member.graduation_year:
            alumni.append(short_year(member.graduation_year))
        if member.branch:
            alumni.append(member.branch)
        if alumni:
            lines.append(f"   🎓 {' • '.join(alumni)}")
        if member.services:
            lines.append(f"   💼 {member.services}")
        if member.city:
            lines.append(f"   📍 {member.city}")
        if member.annual_turnover and member.annual_turnover > 0:
            lines.append(f"   💰 {format_turnover(member.annual_turnover)}")
        contacts = _contacts(member)
        if contacts:
            lines.append(f"   {contacts}")
        items.append("\n".join(lines))

    footer = f"_Found {total} alumni entrepreneurs_"
    return "\n\n".join([_alumni_business_header(entities, total), *items, footer])


def format_generic_results(members: list[ScoredMember], total: int | None = None) -> str:
    """Minimal one-line-per-member listing; also the fallback layout."""
    total = len(members) if total is None else total
    lines = [f"Found {total} members:", ""]
    for index, member in enumerate(members[:MAX_LISTED], start=1):
        parts = [member.name or "Unknown"]
        parts.extend(p for p in (member.email, member.phone, member.city) if p)
        lines.append(f"{index}. {', '.join(parts)}")
    return "\n".join(lines)


def format_empty_results(query: str, entities: ExtractedEntities) -> str:
    parts = ["I couldn't find any members matching"]
    described = False
    if entities.graduation_year:
        parts.append(f"from **{entities.graduation_year[0]} batch**")
        described = True
    branches = entities.branch_labels()
    if branches:
        parts.append(f"in **{branches[0]}**")
        described = True
    if entities.location:
        parts.append(f"from **{entities.location}**")
        described = True
    if entities.services:
        parts.append(f"offering **{entities.services[0]}**")
        described = True
    if not described:
        parts.append(f"**{query.strip()}**")
    return " ".join(parts) + ".\n\nTry different keywords, locations, or time periods."


_LAYOUTS = {
    Intent.FIND_BUSINESS: format_business_results,
    Intent.FIND_PEERS: format_peer_results,
    Intent.FIND_SPECIFIC_PERSON: format_person_results,
    Intent.FIND_ALUMNI_BUSINESS: format_alumni_business_results,
}


def format_results(
    members: list[ScoredMember],
    *,
    query: str,
    intent: Intent,
    entities: ExtractedEntities,
    total: int | None = None,
) -> str:
    """Render a page of ranked members for the given intent.

    ``total`` is the size of the full result set; defaults to the page length.
    """
    total = len(members) if total is None else total
    if not members:
        return format_empty_results(query, entities)

    layout = _LAYOUTS.get(intent)
    if layout is None:
        return format_generic_results(members, total)
    return layout(members, entities, total)
