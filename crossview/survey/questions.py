"""The fixed political-profile questionnaire and its category mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

INDIVIDUAL_RIGHTS = "Individual Rights"
ECONOMIC_SYSTEMS = "Economic Systems"
GOVERNMENT_ROLE = "Government Role"
ENVIRONMENTAL = "Environmental"
FOREIGN_POLICY = "Foreign Policy"
SOCIAL_ISSUES = "Social Issues"
DIALOGIC_TENDENCY = "Dialogic Tendency"
MARKET_REGULATION = "Market Regulation"
CIVIL_LIBERTIES = "Civil Liberties"
NATIONAL_SECURITY = "National Security"
TRUTH_SEEKING = "Truth-Seeking"
ARGUMENTATIVE = "Argumentative"
STORY_TELLING = "Story-Telling"
EMPATHY = "Empathy"
RESPECTFULNESS = "Respectfulness"
OPEN_MINDEDNESS = "Open-Mindedness"

CATEGORIES: Tuple[str, ...] = (
    INDIVIDUAL_RIGHTS,
    ECONOMIC_SYSTEMS,
    GOVERNMENT_ROLE,
    ENVIRONMENTAL,
    FOREIGN_POLICY,
    SOCIAL_ISSUES,
    DIALOGIC_TENDENCY,
    MARKET_REGULATION,
    CIVIL_LIBERTIES,
    NATIONAL_SECURITY,
    TRUTH_SEEKING,
    ARGUMENTATIVE,
    STORY_TELLING,
    EMPATHY,
    RESPECTFULNESS,
    OPEN_MINDEDNESS,
)

DIALOGUE_CATEGORIES: Tuple[str, ...] = (
    TRUTH_SEEKING,
    ARGUMENTATIVE,
    STORY_TELLING,
    EMPATHY,
    RESPECTFULNESS,
    OPEN_MINDEDNESS,
)


@dataclass(frozen=True)
class SurveyOption:
    text: str
    value: int
    weight: float


@dataclass(frozen=True)
class SurveyQuestion:
    text: str
    category: str
    options: Tuple[SurveyOption, ...]


def _q(text: str, category: str, *options: Tuple[str, int, float]) -> SurveyQuestion:
    return SurveyQuestion(text, category, tuple(SurveyOption(*option) for option in options))


# Values run from 1 to 10; higher answers lean libertarian, progressive or open.
QUESTIONS: Tuple[SurveyQuestion, ...] = (
    _q(
        "A whistleblower leaks classified information about government surveillance. What should happen?",
        INDIVIDUAL_RIGHTS,
        ("Prosecute them to the fullest extent", 1, 1.2),
        ("Investigate but weigh their motivations at sentencing", 5, 1.0),
        ("Protect them with strong whistleblower laws", 10, 1.5),
    ),
    _q(
        "A social media platform removes posts containing health misinformation. This is:",
        INDIVIDUAL_RIGHTS,
        ("Appropriate, platforms should prevent harmful misinformation", 3, 1.0),
        ("Acceptable only for clear medical falsehoods", 6, 1.0),
        ("Censorship, all speech should be protected", 10, 1.3),
    ),
    _q(
        "How should healthcare be structured?",
        GOVERNMENT_ROLE,
        ("Fully private system with minimal regulation", 1, 1.4),
        ("Mixed public-private system with subsidies", 5, 1.0),
        ("Universal single-payer system", 10, 1.2),
    ),
    _q(
        "A factory would create jobs but increase pollution. The government should:",
        ENVIRONMENTAL,
        ("Allow it, economic growth comes first", 1, 1.1),
        ("Permit it with regulation and monitoring", 5, 1.0),
        ("Block it unless zero-emission standards are met", 10, 1.3),
    ),
    _q(
        "The wealthiest citizens should pay in taxes:",
        ECONOMIC_SYSTEMS,
        ("Lower rates to encourage investment", 1, 1.2),
        ("Rates similar to middle-income earners", 5, 1.0),
        ("Significantly higher rates to fund social programs", 10, 1.4),
    ),
    _q(
        "When discussing politics with someone who disagrees with you, you typically:",
        DIALOGIC_TENDENCY,
        ("Avoid the conversation or end it quickly", 1, 1.5),
        ("Listen politely but rarely change position", 5, 1.0),
        ("Engage deeply and consider revising your views", 10, 1.3),
    ),
    _q(
        "A country considers military intervention in a foreign conflict. The best approach is:",
        FOREIGN_POLICY,
        ("Intervene decisively to protect strategic interests", 3, 1.1),
        ("Provide humanitarian aid without military involvement", 7, 1.0),
        ("Act only with broad international consensus", 10, 1.2),
    ),
    _q(
        "Universities should use affirmative action in admissions:",
        SOCIAL_ISSUES,
        ("No, admissions should be based solely on merit", 1, 1.3),
        ("Yes, as one factor in a holistic process", 6, 1.0),
        ("Yes, aggressive measures are needed", 10, 1.2),
    ),
    _q(
        "Should the government impose price controls on essential goods?",
        MARKET_REGULATION,
        ("Yes, price controls ensure affordability", 10, 1.2),
        ("Only during emergencies", 5, 1.0),
        ("No, they distort markets", 1, 1.3),
    ),
    _q(
        "Should recreational drug use be decriminalized?",
        CIVIL_LIBERTIES,
        ("Fully decriminalize all drugs", 10, 1.2),
        ("Partial decriminalization for certain substances", 5, 1.0),
        ("Keep current laws", 1, 1.3),
    ),
    _q(
        "Should same-sex marriage be protected at the federal level?",
        SOCIAL_ISSUES,
        ("Yes, it is a fundamental right", 10, 1.2),
        ("Support, but states can decide", 5, 1.0),
        ("No, it should be defined by tradition", 1, 1.3),
    ),
    _q(
        "Should military spending be reduced to fund social welfare programs?",
        NATIONAL_SECURITY,
        ("Significantly reduce the military budget", 10, 1.2),
        ("Moderate cuts to reallocate funds", 5, 1.0),
        ("Maintain or increase spending for security", 1, 1.3),
    ),
    _q(
        "When you hear a political argument from the other party, you typically:",
        TRUTH_SEEKING,
        ("Search for factual evidence before reacting", 10, 1.2),
        ("Listen, then fact-check later", 5, 1.0),
        ("Dismiss it without considering the facts", 1, 1.3),
    ),
    _q(
        "When engaging with someone from the opposite party, you tend to:",
        ARGUMENTATIVE,
        ("Focus only on winning the debate", 1, 1.3),
        ("Aim for constructive dialogue", 10, 1.2),
        ("Avoid conflict altogether", 5, 1.0),
    ),
    _q(
        "You prefer to explain your political views through:",
        STORY_TELLING,
        ("Personal anecdotes and narratives", 10, 1.2),
        ("Statistical data and reports", 5, 1.0),
        ("Short slogans and catchphrases", 1, 1.3),
    ),
    _q(
        "When someone from the other party shares a personal story, you respond by:",
        EMPATHY,
        ("Showing understanding and empathy", 10, 1.2),
        ("Acknowledging it but fact-checking", 5, 1.0),
        ("Changing the subject to debate points", 1, 1.3),
    ),
    _q(
        "During political discussions, you display:",
        RESPECTFULNESS,
        ("A polite and respectful tone throughout", 10, 1.2),
        ("Sometimes harsh language", 5, 1.0),
        ("Frequent insults", 1, 1.3),
    ),
    _q(
        "When you disagree strongly with someone politically, you:",
        OPEN_MINDEDNESS,
        ("Keep an open mind and consider new perspectives", 10, 1.2),
        ("Stand firm but listen", 5, 1.0),
        ("Shut down the conversation", 1, 1.3),
    ),
)


def _category_questions() -> Dict[str, List[int]]:
    mapping: Dict[str, List[int]] = {category: [] for category in CATEGORIES}
    for index, question in enumerate(QUESTIONS):
        mapping[question.category].append(index)
    return mapping


CATEGORY_QUESTIONS: Dict[str, List[int]] = _category_questions()

QUESTION_COUNT = len(QUESTIONS)


__all__ = [
    "CATEGORIES",
    "DIALOGUE_CATEGORIES",
    "CATEGORY_QUESTIONS",
    "QUESTIONS",
    "QUESTION_COUNT",
    "SurveyOption",
    "SurveyQuestion",
    "INDIVIDUAL_RIGHTS",
    "ECONOMIC_SYSTEMS",
    "GOVERNMENT_ROLE",
    "ENVIRONMENTAL",
    "FOREIGN_POLICY",
    "SOCIAL_ISSUES",
    "DIALOGIC_TENDENCY",
    "MARKET_REGULATION",
    "CIVIL_LIBERTIES",
    "NATIONAL_SECURITY",
    "TRUTH_SEEKING",
    "ARGUMENTATIVE",
    "STORY_TELLING",
    "EMPATHY",
    "RESPECTFULNESS",
    "OPEN_MINDEDNESS",
]
