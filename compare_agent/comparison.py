"""Build a Comparison from a Question and its completed Responses."""

import logging
from collections.abc import Sequence

from compare_agent.analysis import MIN_RESPONSES, analyze
from compare_agent.errors import ValidationError
from compare_agent.models import Comparison, Question, Response

logger = logging.getLogger(__name__)


def create_comparison(question: Question, responses: Sequence[Response]) -> Comparison:
    """Analyze the responses and wrap everything in a new Comparison.

    Raises:
        ValidationError: If fewer than 2 responses are given or two responses
            share a model name.
    """
    if question is None:
        raise ValidationError("Question must not be None")
    if len(responses) < MIN_RESPONSES:
        raise ValidationError(
            f"Need at least {MIN_RESPONSES} responses to create a comparison, got {len(responses)}"
        )

    frozen = tuple(responses)
    analysis = analyze([(r.model_name, r.response_text) for r in frozen])
    comparison = Comparison(question=question, responses=frozen, analysis=analysis)

    logger.debug(
        "Comparison %s built for %s: %d shared words across %d responses",
        comparison.id,
        question.file_name,
        len(analysis.shared_words),
        len(frozen),
    )
    return comparison
