from practice_interview.models import InterviewRound

ROUND_FOCUS = {
    InterviewRound.TECHNICAL: (
        "technical interview questions commonly asked in campus placements.\n"
        "Focus on topics like data structures, algorithms, OOP concepts, DBMS, OS, "
        "networking, and programming fundamentals.\n"
        "Questions should be suitable for engineering students."
    ),
    InterviewRound.HR: (
        "HR interview questions commonly asked in campus placements.\n"
        "Focus on behavioral questions, situational questions, questions about "
        "strengths/weaknesses, career goals, teamwork, and leadership.\n"
        "Questions should be suitable for fresh graduates."
    ),
    InterviewRound.APTITUDE: (
        "aptitude/logical reasoning interview questions commonly asked in campus placements.\n"
        "Focus on problem-solving, logical reasoning, analytical thinking, and quantitative aptitude.\n"
        "Questions should be verbal (not requiring pen-paper calculations) suitable for a voice interview."
    ),
}

STRICT_JSON_SUFFIX = "\n\nIMPORTANT: Output ONLY valid JSON. No markdown, no extra text."


def build_questions_prompt(round_type: InterviewRound, count: int) -> str:
    return f"""Generate {count} {ROUND_FOCUS[round_type]}

Return ONLY a valid JSON array with exactly {count} objects in this format:
[
  {{
    "question": "the interview question here",
    "expectedKeyPoints": ["key point 1", "key point 2", "key point 3"]
  }}
]

Do not include any text before or after the JSON array. Only return the JSON."""


def build_evaluation_prompt(question: str, answer: str, round_type: InterviewRound) -> str:
    return f"""You are an expert interviewer evaluating a candidate's answer in a {round_type.value} interview round.

Question: "{question}"
Candidate's Answer: "{answer}"

Evaluate the answer and return ONLY a valid JSON object (no markdown, no extra text):
{{
  "score": <number from 0 to 10>,
  "feedback": "<brief 1-2 sentence feedback>",
  "strengths": ["<strength 1>", "<strength 2>"],
  "improvements": ["<area to improve 1>", "<area to improve 2>"]
}}

If the answer is empty, irrelevant, or just noise, give score 0-1. Be fair but constructive."""


def build_feedback_prompt(round_type: InterviewRound, results: list[dict]) -> str:
    """Prompt for the end-of-session summary.

    Each result is a dict with "question", "answer" and "score" keys.
    """
    questions_and_answers = "\n\n".join(
        f"Q{i + 1}: {r['question']}\nA{i + 1}: {r['answer']}\nScore: {r['score']}/10"
        for i, r in enumerate(results)
    )
    average = sum(r["score"] for r in results) / len(results) if results else 0.0

    return f"""You are an expert career counselor. A student just completed a practice {round_type.value} interview. Here are their responses:

{questions_and_answers}

Average Score: {average:.1f}/10

Provide overall feedback. Return ONLY a valid JSON object:
{{
  "overallFeedback": "<2-3 sentences summarizing performance>",
  "tips": ["<tip 1>", "<tip 2>", "<tip 3>"]
}}"""
