"""
Progress Messages.

Human-readable progress strings stored in `progressMessage` and streamed to
clients, keyed by pipeline step.
"""

PROGRESS_QUEUED = "In queue"
PROGRESS_STARTED = "Added to the analysis queue..."
PROGRESS_PRELIMINARY = "Generating thumbnail and extracting transcript..."
PROGRESS_PRELIMINARY_DONE = "Preliminary analysis complete, starting in-depth analysis..."
PROGRESS_FULL_FRAMES = "Extracting keyframes for in-depth analysis..."
PROGRESS_SCORES_DONE = "Scores and compliance check complete"
PROGRESS_DIAGNOSTICS_DONE = "Timeline diagnostics complete"
PROGRESS_STRATEGY_DONE = "Strategy suggestions complete"
PROGRESS_SCORING = "All analyses complete, computing final score..."
PROGRESS_COMPLETE = "Analysis complete"
PROGRESS_ERROR = "An error occurred during analysis, please retry."

# Pipeline step names with their nominal completion percentage
STEP_QUEUED = ("queued", 0)
STEP_PRELIMINARY = ("preliminary", 10)
STEP_PRELIMINARY_DONE = ("preliminary_done", 40)
STEP_FRAMES = ("frames", 45)
STEP_SCORES = "scores"
STEP_DIAGNOSTICS = "diagnostics"
STEP_STRATEGY = "strategy"
STEP_FINAL = ("final", 95)
STEP_COMPLETE = ("complete", 100)

# The three full-stage agents finish in any order; each one that lands
# advances the percentage by an equal share of this range
FULL_STAGE_PERCENT_RANGE = (45, 90)
