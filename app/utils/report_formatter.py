"""
Generates a Markdown report from a stored analysis.
"""
from typing import Any, Dict, List

from app.constants import SUB_SCORE_KEYS, SUB_SCORE_DETAILS
from app.models import Analysis


def _score_icon(score: int) -> str:
    if score >= 80:
        return "🟢"
    if score >= 60:
        return "🟡"
    return "🔴"


def _severity_icon(level: str) -> str:
    icons = {
        "high": "🔴",
        "medium": "🟡",
        "low": "🟢",
    }
    return icons.get(level, "⚪")


def _format_timestamp(seconds: Any) -> str:
    if seconds is None:
        return "-"
    return f"{float(seconds):.1f}s"


def _ordered_sub_scores(sub_scores: Dict[str, Any]) -> List[str]:
    known = [key for key in SUB_SCORE_KEYS if key in sub_scores]
    return known + [key for key in sub_scores if key not in SUB_SCORE_DETAILS]


def generate_markdown_report(analysis: Analysis) -> str:
    """
    Builds a Markdown export of an analysis.

    Sections without data (e.g. an analysis still running) are left out.

    Args:
        analysis: Stored analysis record

    Returns:
        Markdown document
    """
    preliminary = analysis.preliminary_result or {}
    full = analysis.full_result or {}

    report = [
        f"# Ad Video Analysis Report: {analysis.video_name}",
        f"**Date** : {analysis.date.strftime('%Y-%m-%d %H:%M')}",
        f"**Uploader** : {analysis.uploader_name}",
        f"**Model** : {analysis.model_used or '-'}",
        f"**Status** : {analysis.status}",
        "",
    ]

    if analysis.total_score is not None:
        report.append(
            f"**Total Score** : {_score_icon(analysis.total_score)} {analysis.total_score}/100"
            f" | **Grade** : {analysis.grade or '-'}"
        )
        report.append("")

    report.extend(["---", ""])

    # Preliminary report
    if preliminary:
        report.append("## Overview")
        if preliminary.get("coreTheme"):
            report.append(f"**Core Theme** : {preliminary['coreTheme']}")
        if preliminary.get("sceneTags"):
            report.append(f"**Scene Tags** : {', '.join(preliminary['sceneTags'])}")
        if preliminary.get("riskWords"):
            report.append(f"**Risk Words** : {', '.join(preliminary['riskWords'])}")
        report.append("")
        if preliminary.get("transcript"):
            report.append("### Transcript")
            report.append(f"> {preliminary['transcript']}")
            report.append("")

    # Sub-scores
    sub_scores = full.get("subScores") or {}
    if sub_scores:
        report.append("## Sub-Scores")
        report.append("| Dimension | Score |")
        report.append("|---|---|")
        for key in _ordered_sub_scores(sub_scores):
            name = SUB_SCORE_DETAILS.get(key, {}).get("name", key)
            score = int(sub_scores[key] or 0)
            report.append(f"| {name} ({key}) | {_score_icon(score)} {score} |")
        report.append("")

    # Compliance
    breakdown = full.get("complianceBreakdown")
    if breakdown:
        report.append("## Compliance")
        report.append(f"**Overall** : {breakdown.get('overallScore', '-')}/100")
        if breakdown.get("overallSummary"):
            report.append(breakdown["overallSummary"])
        report.append("")
        for field, title in (("legal", "Legal"), ("social", "Social"), ("adPolicy", "Ad Policy")):
            category = breakdown.get(field) or {}
            report.append(f"### {title} ({category.get('score', '-')}/100)")
            if category.get("summary"):
                report.append(category["summary"])
            for issue in category.get("issues") or []:
                report.append(
                    f"- {_severity_icon(issue.get('severity'))} [{_format_timestamp(issue.get('timestamp'))}] "
                    f"{issue.get('description', '')}"
                )
            report.append("")

    # Diagnostics
    diagnostics = full.get("diagnostics") or []
    if diagnostics:
        report.append("## Timeline Diagnostics")
        for item in diagnostics:
            report.append(
                f"### {_format_timestamp(item.get('timestamp'))} - {item.get('title', '')}"
            )
            report.append(
                f"**Impact** : {_severity_icon(item.get('impact'))} {item.get('impact', '-')}"
                f" | **Fix** : {item.get('fixType', '-')}"
            )
            if item.get("penaltyReason"):
                report.append(f"- **Issue** : {item['penaltyReason']}")
            if item.get("suggestion"):
                report.append(f"- **Suggestion** : {item['suggestion']}")
            report.append("")

    # Strengths
    strengths = full.get("strengths") or []
    if strengths:
        report.append("## ✅ Strengths")
        for item in strengths:
            report.append(f"- **{item.get('title', '')}** : {item.get('description', '')}")
        report.append("")

    # Improvement package
    improvements = full.get("improvementPackage") or []
    if improvements:
        report.append("## Improvement Package")
        for item in improvements:
            report.append(f"### [{item.get('type', '-')}] {item.get('title', '')}")
            if item.get("description"):
                report.append(item["description"])
            if item.get("actionableItem"):
                report.append(f"> {item['actionableItem']}")
            report.append("")

    return "\n".join(report).rstrip() + "\n"
