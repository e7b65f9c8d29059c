"""
Agents for ad video analysis.

Each agent wraps one request (or one small sequence of requests) to the AI
provider:
- transcription: two-pass verified transcript
- preliminary: core theme, scene tags and risk words
- scores: sub-scores and compliance breakdown
- diagnostics: time-stamped optimisation points
- strategy: strengths and improvement package
- copywriting: concrete copy lines for a suggestion
"""
from .transcription import generate_transcript, strip_markers, apply_correction
from .preliminary import generate_preliminary_report
from .scores import generate_scores_and_compliance
from .diagnostics import generate_diagnostics
from .strategy import generate_strengths_and_improvements
from .copywriting import generate_copy_suggestions

__all__ = [
    "generate_transcript",
    "strip_markers",
    "apply_correction",
    "generate_preliminary_report",
    "generate_scores_and_compliance",
    "generate_diagnostics",
    "generate_strengths_and_improvements",
    "generate_copy_suggestions",
]
