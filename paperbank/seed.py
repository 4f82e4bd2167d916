"""Sample question bank for demos and fresh installs."""
import logging

from paperbank.models.schemas import QuestionCreate
from paperbank.storage import Storage

logger = logging.getLogger(__name__)

SAMPLE_QUESTIONS = [
    {
        "subject": "Mathematics",
        "chapter": "Trigonometry",
        "topic": "Introduction to Trigonometry",
        "difficulty": "easy",
        "type": "mcq",
        "questionText": "If sin θ = 3/5, then the value of cos θ is:",
        "options": ["4/5", "3/4", "5/3", "4/3"],
        "answer": "4/5",
        "explanation": "sin²θ + cos²θ = 1 gives cos²θ = 1 - 9/25 = 16/25, so cos θ = 4/5.",
        "marks": 2,
        "tags": ["trigonometry", "pythagorean identity"],
    },
    {
        "subject": "Mathematics",
        "chapter": "Trigonometry",
        "topic": "Trigonometric Identities",
        "difficulty": "medium",
        "type": "short_answer",
        "questionText": "Prove the identity: (1 + tan²A) = sec²A",
        "answer": "Divide sin²A + cos²A = 1 by cos²A.",
        "marks": 3,
        "tags": ["trigonometry", "identities"],
    },
    {
        "subject": "Mathematics",
        "chapter": "Triangles",
        "topic": "Similar Triangles",
        "difficulty": "hard",
        "type": "long_answer",
        "questionText": "In a triangle ABC, if sin A = 1/2 and sin B = 1/3, find sin C and "
                        "show whether the triangle can be obtuse-angled.",
        "answer": "A = 30°, B ≈ 19.5°, so C ≈ 130.5° and sin C ≈ 0.766; C > 90° so it is obtuse.",
        "marks": 5,
        "tags": ["triangles", "sine rule"],
    },
    {
        "subject": "Science",
        "chapter": "Chemical Reactions",
        "topic": "Types of Chemical Reactions",
        "difficulty": "medium",
        "type": "mcq",
        "questionText": "The reaction 2H₂O₂ → 2H₂O + O₂ is an example of which type of reaction?",
        "options": ["Combination reaction", "Decomposition reaction",
                    "Displacement reaction", "Double displacement reaction"],
        "answer": "Decomposition reaction",
        "explanation": "Hydrogen peroxide breaks down into water and oxygen.",
        "marks": 1,
        "tags": ["chemistry", "chemical reactions"],
    },
]


def seed_questions(storage: Storage) -> int:
    """Insert the sample questions into an empty bank. Returns how many were added."""
    if storage.count_questions():
        return 0
    for raw in SAMPLE_QUESTIONS:
        storage.create_question(**QuestionCreate.model_validate(raw).model_dump(mode="json"))
    logger.info(f"Seeded {len(SAMPLE_QUESTIONS)} sample questions")
    return len(SAMPLE_QUESTIONS)
