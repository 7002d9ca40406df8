from typing import Dict, Iterable, List, Tuple

from validator_module.models import DetailRecord, Finding, Summary


def reduce(
    findings: Iterable[Finding],
    allowed_types: Iterable[str],
    url: str,
    context_name: str,
) -> Tuple[Summary, List[DetailRecord]]:
    """
    Filters findings by allowed type and folds them into a summary plus one detail record each.
    - Stable filter: detail records keep the input order.
    - A type key only appears in the summary once a finding of that type survives.
    """
    allowed = frozenset(allowed_types)
    counts: Dict[str, int] = {}
    details: List[DetailRecord] = []

    for finding in findings:
        if finding.type not in allowed:
            continue
        details.append(DetailRecord(
            url=url,
            context=context_name,
            type=finding.type,
            message=finding.message,
            extract=finding.extract,
        ))
        counts[finding.type] = counts.get(finding.type, 0) + 1

    summary = Summary(url=url, context=context_name, counts=tuple(counts.items()))
    return summary, details
