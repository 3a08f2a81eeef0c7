# api/feedback_app/analytics/question_aggregator.py
"""
Per-question statistics.

Raw answers arrive in whatever shape the client sent (string, number as
string, boolean-like string, list for multi-select). All coercion lives
here so every consumer (analytics views, exports) shares one parsing
policy; a malformed answer is simply left out of the statistic it cannot
feed.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Union

from feedback_app.analytics.domain import (
    TEXT_TYPES, QuestionDefinition, QuestionSnapshot, SubjectResponse,
)
from feedback_app.analytics.rating import rating_label
from feedback_app.analytics.text_processing import (
    DEFAULT_SIMILARITY_THRESHOLD, cluster_responses, frequent_words,
)
from feedback_app.schemas.analytics import (
    ChoiceOption, MultipleChoiceAnalytics, ResponseGroupOut, ScaleAnalytics,
    TextAnalytics, WordCount, YesNoAnalytics,
)

AnyQuestion = Union[QuestionDefinition, QuestionSnapshot]

YES_TOKENS = {"yes", "true"}
NO_TOKENS = {"no", "false"}


# -------------------- coercion -------------------- #

def is_answered(raw: Any) -> bool:
    """None, blank strings and empty lists count as no answer."""
    if raw is None:
        return False
    if isinstance(raw, str):
        return bool(raw.strip())
    if isinstance(raw, (list, tuple)):
        return any(is_answered(x) for x in raw)
    return True


def coerce_scale(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if isinstance(raw, str):
        s = raw.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            return None
        return int(f) if f.is_integer() else None
    return None


def coerce_yes_no(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        token = raw.strip().lower()
        if token in YES_TOKENS:
            return True
        if token in NO_TOKENS:
            return False
    return None


def _choice_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (list, tuple, dict)):
        return None
    s = str(value).strip()
    return s or None


def coerce_choices(raw: Any) -> List[str]:
    """A single value is one choice; a list contributes each element."""
    if isinstance(raw, (list, tuple)):
        return [c for c in (_choice_text(v) for v in raw) if c]
    c = _choice_text(raw)
    return [c] if c else []


def coerce_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        parts = [str(v).strip() for v in raw if v is not None and str(v).strip()]
        return "; ".join(parts) or None
    s = str(raw).strip()
    return s or None


def answer_as_text(raw: Any) -> str:
    """Flat cell text for exports (multi-select joined with "; ")."""
    return coerce_text(raw) or ""


# -------------------- collection -------------------- #

def collect_answers(question_id: str, subject_responses: Iterable[SubjectResponse]) -> List[Any]:
    answers = []
    for sr in subject_responses:
        raw = sr.answer_for(question_id)
        if is_answered(raw):
            answers.append(raw)
    return answers


def _rate(answered: int, total_responses: int) -> float:
    if total_responses <= 0:
        return 0.0
    return min(answered / total_responses * 100.0, 100.0)


# -------------------- per type -------------------- #

def _scale(question: AnyQuestion, answers: List[Any], rate: float) -> ScaleAnalytics:
    lo, hi = question.scale_min, question.scale_max
    values = []
    for raw in answers:
        v = coerce_scale(raw)
        if v is not None and lo <= v <= hi:
            values.append(v)

    distribution = {v: 0 for v in range(lo, hi + 1)}
    for v in values:
        distribution[v] += 1

    average = sum(values) / len(values) if values else 0.0
    return ScaleAnalytics(
        question_id=question.question_id,
        question_text=question.question_text,
        total_responses=len(values),
        response_rate=rate,
        scale_min=lo,
        scale_max=hi,
        min=min(values) if values else 0,
        max=max(values) if values else 0,
        average=average,
        distribution=distribution,
        rating_label=rating_label(average, hi),
    )


def _yes_no(question: AnyQuestion, answers: List[Any], rate: float) -> YesNoAnalytics:
    yes = no = 0
    for raw in answers:
        v = coerce_yes_no(raw)
        if v is True:
            yes += 1
        elif v is False:
            no += 1

    recognized = yes + no
    yes_pct = yes / recognized * 100.0 if recognized else 0.0
    no_pct = 100.0 - yes_pct if recognized else 0.0
    return YesNoAnalytics(
        question_id=question.question_id,
        question_text=question.question_text,
        total_responses=recognized,
        response_rate=rate,
        yes_count=yes,
        no_count=no,
        yes_percentage=yes_pct,
        no_percentage=no_pct,
    )


def _multiple_choice(question: AnyQuestion, answers: List[Any], rate: float) -> MultipleChoiceAnalytics:
    counts = {opt: 0 for opt in question.options}
    respondents = 0
    for raw in answers:
        choices = coerce_choices(raw)
        if not choices:
            continue
        respondents += 1
        for c in choices:
            counts[c] = counts.get(c, 0) + 1

    options = [
        ChoiceOption(text=opt, count=n, percentage=(n / respondents * 100.0) if respondents else 0.0)
        for opt, n in counts.items()
    ]
    top = max(counts.items(), key=lambda kv: kv[1], default=(None, 0))
    return MultipleChoiceAnalytics(
        question_id=question.question_id,
        question_text=question.question_text,
        total_responses=respondents,
        response_rate=rate,
        choice_counts=counts,
        options=options,
        top_choice=top[0] if top[1] > 0 else None,
    )


def _text(
    question: AnyQuestion,
    answers: List[Any],
    rate: float,
    threshold: int,
    words_limit: int,
    groups_limit: int,
    samples_limit: int,
) -> TextAnalytics:
    texts = [t for t in (coerce_text(raw) for raw in answers) if t]
    groups = cluster_responses(texts, threshold=threshold, limit=groups_limit)
    return TextAnalytics(
        question_id=question.question_id,
        question_text=question.question_text,
        question_type=question.question_type,
        total_responses=len(texts),
        response_rate=rate,
        frequent_words=[WordCount(word=w, count=n) for w, n in frequent_words(texts, words_limit)],
        sample_responses=texts[:samples_limit],
        response_groups=[ResponseGroupOut(representative=g.representative, count=g.count) for g in groups],
        average_length=(sum(len(t) for t in texts) / len(texts)) if texts else 0.0,
    )


def aggregate(
    question: AnyQuestion,
    answers: List[Any],
    total_responses: int,
    *,
    threshold: int = DEFAULT_SIMILARITY_THRESHOLD,
    words_limit: int = 5,
    groups_limit: int = 5,
    samples_limit: int = 5,
):
    """
    Summary for one question over ``answers`` (the answered raw values of that
    question in some response set). ``total_responses`` is the size of that
    response set and is the response-rate denominator.
    """
    rate = _rate(len(answers), total_responses)
    qtype = question.question_type
    if qtype == "scale":
        return _scale(question, answers, rate)
    if qtype == "yesno":
        return _yes_no(question, answers, rate)
    if qtype == "multiplechoice":
        return _multiple_choice(question, answers, rate)
    if qtype in TEXT_TYPES:
        return _text(question, answers, rate, threshold, words_limit, groups_limit, samples_limit)
    raise ValueError(f"unsupported question type: {qtype!r}")


def empty_analytics(question: AnyQuestion):
    return aggregate(question, [], 0)
