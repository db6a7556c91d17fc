"""Rule-based performance suggestions derived from a session snapshot."""

from __future__ import annotations

from .models.snapshot import InstrumentationSnapshot
from .models.suggestions import (
    PRIORITY_ORDER,
    SEVERITY_ORDER,
    Suggestion,
    SuggestionPriority,
    SuggestionSeverity,
)
from .models.web_vitals import WEB_VITALS_THRESHOLDS, VitalRating, format_vital_value

VITALS_DOC_URL = "https://web.dev/vitals/"

LCP_HINT = (
    "Optimize LCP: reduce server response time, use a CDN, preload the LCP image or font, "
    "and minimize render-blocking resources."
)
FCP_HINT = "Improve FCP: minimize critical path length, reduce render-blocking CSS/JS, and optimize server response."
CLS_HINT = (
    "Reduce layout shifts: set explicit width/height on images and embeds, avoid inserting content "
    "above existing content, and reserve space for dynamic content."
)
INP_HINT = (
    "Improve interactivity: break up long JavaScript tasks, reduce main-thread work, "
    "and avoid heavy execution during user input."
)
TTFB_HINT = "Improve TTFB: optimize server response, use a CDN, enable caching, and reduce server-side work."

METRIC_HINTS: dict[str, str] = {
    "LCP": LCP_HINT,
    "FCP": FCP_HINT,
    "CLS": CLS_HINT,
    "INP": INP_HINT,
    "TTFB": TTFB_HINT,
}

CLS_ERROR_TOTAL = 0.25
CLS_GOOD_TOTAL = 0.1
CLS_MANY_SHIFTS = 8
CLS_SOME_SHIFTS = 3
NETWORK_MANY_REQUESTS = 40
TIMELINE_BUSY_ENTRIES = 60


def _rank(rating: VitalRating) -> tuple[SuggestionPriority, SuggestionSeverity]:
    if rating == "poor":
        return "high", "error"
    if rating == "needs-improvement":
        return "medium", "warning"
    return "low", "info"


def analyze(snapshot: InstrumentationSnapshot) -> list[Suggestion]:
    """Score the snapshot against fixed thresholds.

    Ordered high/error first, then medium/warning, then low/info; rules that tie
    keep their evaluation order.
    """
    suggestions: list[Suggestion] = []

    def add(
        *,
        id: str,
        title: str,
        description: str,
        priority: SuggestionPriority,
        severity: SuggestionSeverity,
        metric: str,
        improvement_hint: str | None = None,
        action: str | None = None,
        doc_url: str | None = None,
    ) -> None:
        suggestions.append(
            Suggestion(
                id=id,
                title=title,
                description=description,
                priority=priority,
                severity=severity,
                metric=metric,
                improvement_hint=improvement_hint,
                action=action,
                doc_url=doc_url,
            )
        )

    # --- Web vitals ---
    for metric in snapshot.web_vitals.metrics_list:
        if metric.rating == "good":
            continue
        priority, severity = _rank(metric.rating)
        good, _poor = WEB_VITALS_THRESHOLDS[metric.name]
        add(
            id=f"vital-{metric.name}-{metric.id}",
            title=f"Improve {metric.name}",
            description=(
                f"{metric.name} is {metric.rating.replace('-', ' ')} "
                f"({format_vital_value(metric.name, metric.value)}; "
                f"threshold {format_vital_value(metric.name, good)})."
            ),
            priority=priority,
            severity=severity,
            metric=metric.name,
            improvement_hint=METRIC_HINTS[metric.name],
            doc_url=VITALS_DOC_URL,
        )

    # --- Layout shift ---
    shift_count = len(snapshot.layout_shift.entries)
    total_cls = snapshot.layout_shift.total_cls
    if total_cls > CLS_ERROR_TOTAL or shift_count > CLS_MANY_SHIFTS:
        is_error = total_cls > CLS_ERROR_TOTAL
        add(
            id="layout-shift-summary",
            title="Reduce cumulative layout shift",
            description=(
                f"Total CLS is {total_cls:.3f} with {shift_count} shift event{'' if shift_count == 1 else 's'}. "
                "This can hurt user experience."
            ),
            priority="high" if is_error else "medium",
            severity="error" if is_error else "warning",
            metric="CLS",
            improvement_hint=CLS_HINT,
            action="Review the layout shift sources to find affected elements.",
        )
    elif shift_count > CLS_SOME_SHIFTS and total_cls <= CLS_GOOD_TOTAL:
        add(
            id="layout-shift-count",
            title="Monitor layout shift count",
            description=(
                f"CLS score is good ({total_cls:.3f}) but {shift_count} shift events were recorded. "
                "Consider reducing shifts to improve stability."
            ),
            priority="low",
            severity="info",
            metric="CLS",
            improvement_hint=CLS_HINT,
        )

    # --- Network ---
    network_count = len(snapshot.network.entries)
    if network_count > NETWORK_MANY_REQUESTS:
        add(
            id="network-count",
            title="Reduce number of network requests",
            description=(
                f"{network_count} requests were captured during the session. Fewer requests can improve load time."
            ),
            priority="medium",
            severity="warning",
            metric="general",
            improvement_hint="Combine resources, use lazy loading for below-the-fold content, and leverage caching.",
            action="Review the network waterfall for optimization opportunities.",
        )

    # --- Timeline (only when nothing else fired) ---
    timeline_count = len(snapshot.timeline.entries)
    if not suggestions and timeline_count > TIMELINE_BUSY_ENTRIES:
        add(
            id="timeline-activity",
            title="High timeline activity",
            description=(
                f"Many timeline entries ({timeline_count}) were recorded. "
                "Consider profiling to find long tasks or heavy paint."
            ),
            priority="low",
            severity="info",
            metric="general",
            improvement_hint="Use the timeline to identify long tasks and optimize the critical path.",
        )

    suggestions.sort(key=lambda s: (PRIORITY_ORDER.index(s.priority), SEVERITY_ORDER.index(s.severity)))
    return suggestions
