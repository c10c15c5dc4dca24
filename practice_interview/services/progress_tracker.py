from practice_interview.models import (
    InterviewRound,
    SessionSummary,
    format_duration,
    score_band,
)

BAND_MARKS = {"good": "✅", "average": "⚠️", "poor": "❌"}


def get_interview_stats(records: list[dict]) -> dict:
    """Aggregate statistics over practice sessions ordered newest first."""
    if not records:
        return {
            "total_practices": 0,
            "average_score": 0,
            "best_score": 0,
            "technical_count": 0,
            "hr_count": 0,
            "aptitude_count": 0,
            "recent_improvement": 0,
        }

    percentages = [r["percentage"] for r in records]
    rounds = [r["round_type"] for r in records]

    # Newest three against the three before them
    recent_improvement = 0
    if len(records) >= 4:
        recent = sum(percentages[:3]) / 3
        previous = percentages[3:6]
        recent_improvement = round(recent - sum(previous) / len(previous))

    return {
        "total_practices": len(records),
        "average_score": round(sum(percentages) / len(records)),
        "best_score": max(percentages),
        "technical_count": rounds.count(InterviewRound.TECHNICAL.value),
        "hr_count": rounds.count(InterviewRound.HR.value),
        "aptitude_count": rounds.count(InterviewRound.APTITUDE.value),
        "recent_improvement": recent_improvement,
    }


def format_history(records: list[dict], limit: int = 10) -> str:
    """Format recent practice sessions as a readable text."""
    if not records:
        return "No practice sessions yet. Start your first AI interview practice!"

    lines = ["Recent practice sessions:\n"]
    for r in records[:limit]:
        mark = BAND_MARKS[score_band(r["percentage"])]
        lines.append(
            f"{mark} {r['created_at'] or 'Recently'}  {r['round_type']}: "
            f"{r['total_score']}/{r['max_score']} ({r['percentage']}%), "
            f"{format_duration(r['duration_seconds'])}"
        )
    return "\n".join(lines)


def format_stats(stats: dict) -> str:
    """Format overall statistics."""
    if not stats.get("total_practices"):
        return ""

    improvement = stats["recent_improvement"]
    sign = "+" if improvement > 0 else ""
    return (
        f"\nOverall statistics:\n"
        f"Practices completed: {stats['total_practices']}\n"
        f"Average score: {stats['average_score']}%\n"
        f"Best score: {stats['best_score']}%\n"
        f"Technical / HR / Aptitude: {stats['technical_count']} / "
        f"{stats['hr_count']} / {stats['aptitude_count']}\n"
        f"Recent improvement: {sign}{improvement}%"
    )


def format_summary(summary: SessionSummary) -> str:
    """Format the results of a finished session."""
    lines = [
        f"{summary.round_type.value} interview complete",
        f"Score: {summary.total_score}/{summary.max_score} ({summary.percentage}%)",
        f"Duration: {format_duration(summary.duration_seconds)}",
        "",
        summary.overall_feedback,
    ]
    if summary.tips:
        lines.append("\nTips:")
        lines.extend(f"  • {tip}" for tip in summary.tips)

    lines.append("\nQuestion breakdown:")
    for i, result in enumerate(summary.per_question, 1):
        lines.append(f"\nQ{i}: {result.question}")
        lines.append(f"Your answer: {result.answer}")
        lines.append(f"Score: {result.score}/10 - {result.feedback}")
        if result.strengths:
            lines.append("Strengths: " + "; ".join(result.strengths))
        if result.improvements:
            lines.append("To improve: " + "; ".join(result.improvements))

    return "\n".join(lines)
