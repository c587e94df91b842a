"""
Scoring and statistics helpers for exercises and submissions
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple

from backend.exceptions import ValidationFailed

MULTIPLE_CHOICE = 'multiple_choice'
TWO_PLACES = Decimal('0.01')


class GradingResult(NamedTuple):
    score: Decimal
    matches: int
    non_matches: int
    correct_count: int


def round_half_up(value, places=0):
    """
    Round like a person would (2.5 -> 3), not banker's rounding.

    Returns an int when places is 0, otherwise a Decimal.
    """
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else rounded


def correct_option_ids(options) -> set:
    return {str(option['id']) for option in options or [] if option.get('is_correct')}


def parse_submitted_ids(answer: str) -> list:
    """
    Split a comma-separated answer into option ids.

    Blank entries are dropped and repeated ids only count once, so the same
    correct option cannot be submitted twice to inflate the score.
    """
    seen = []
    for part in (answer or '').split(','):
        option_id = part.strip()
        if option_id and option_id not in seen:
            seen.append(option_id)
    return seen


def score_multiple_choice(answer: str, options, max_score) -> GradingResult:
    """
    Score a multiple choice answer.

    Args:
        answer (str): comma separated option ids, e.g. "a,c"
        options (list): [{'id', 'text', 'is_correct'}, ...]
        max_score (int): points awarded for a fully correct answer

    Returns:
        GradingResult with score = max(0, (matches - non_matches) / correct_count) * max_score,
        always within [0, max_score] and rounded to 2 decimal places.

    Example:
        >>> score_multiple_choice('a,b', [{'id': 'a', 'is_correct': True}, {'id': 'b'}], 20).score
        Decimal('0.00')
    """
    correct_ids = correct_option_ids(options)
    correct_count = len(correct_ids)
    if correct_count == 0:
        raise ValidationFailed('Multiple choice exercises must have at least one correct answer')

    submitted = parse_submitted_ids(answer)
    matches = sum(1 for option_id in submitted if option_id in correct_ids)
    non_matches = len(submitted) - matches

    max_score = Decimal(str(max_score))
    ratio = max(Decimal(0), Decimal(matches - non_matches) / Decimal(correct_count))
    score = min(ratio * max_score, max_score).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    return GradingResult(score, matches, non_matches, correct_count)


def build_grading_feedback(result: GradingResult) -> dict:
    """Automatic grading payload stored on the submission (confidence is total for exact scoring)"""
    if result.non_matches > 0:
        suggestions = ['Review the selected options']
    else:
        suggestions = ['Excellent work!']

    return {
        'score': float(result.score),
        'feedback': f"{result.matches} correct answers out of {result.correct_count}",
        'suggestions': suggestions,
        'confidence': 1.0,
    }


def validate_exercise_content(exercise_type, options):
    if exercise_type != MULTIPLE_CHOICE:
        return
    if not options:
        raise ValidationFailed('Multiple choice exercises must have options')
    if not correct_option_ids(options):
        raise ValidationFailed('Multiple choice exercises must have at least one correct answer')


def empty_exercise_stats():
    return {
        'total_submissions': 0,
        'unique_students': 0,
        'average_score': 0,
        'pass_rate': 0,
        'average_attempts': 0,
        'average_time_spent': 0,
        'status_distribution': {'submitted': 0, 'graded': 0, 'needs_review': 0},
    }


def build_exercise_stats(submissions, passing_score=None) -> dict:
    """
    Aggregate statistics over a set of submissions.

    pass_rate is only meaningful for a single exercise, so callers pass
    passing_score only in that case; otherwise it stays 0.
    average_time_spent is in seconds, over submissions that recorded a time.
    """
    submissions = list(submissions)
    if not submissions:
        return empty_exercise_stats()

    attempts_per_student = {}
    for submission in submissions:
        attempts_per_student[submission.student_id] = attempts_per_student.get(submission.student_id, 0) + 1
    unique_students = len(attempts_per_student)

    graded = [s for s in submissions if s.status == 'graded' and s.score is not None]
    average_score = sum(Decimal(s.score) for s in graded) / len(graded) if graded else 0

    pass_rate = 0
    if graded and passing_score:
        passed = sum(1 for s in graded if s.score >= passing_score)
        pass_rate = Decimal(passed * 100) / len(graded)

    timed = [s.time_spent for s in submissions if s.time_spent]
    average_time_spent = sum(timed) / len(timed) if timed else 0

    status_distribution = {'submitted': 0, 'graded': 0, 'needs_review': 0}
    for submission in submissions:
        status_distribution[submission.status] = status_distribution.get(submission.status, 0) + 1

    return {
        'total_submissions': len(submissions),
        'unique_students': unique_students,
        'average_score': float(round_half_up(average_score, 2)),
        'pass_rate': float(round_half_up(pass_rate, 2)),
        'average_attempts': float(round_half_up(len(submissions) / unique_students, 2)),
        'average_time_spent': round_half_up(average_time_spent),
        'status_distribution': status_distribution,
    }
