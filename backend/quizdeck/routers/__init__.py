from quizdeck.routers import auth, exams, health, question_bank, questions, quiz_sets, wrong_questions

__all__ = [
    "auth",
    "exams",
    "health",
    "question_bank",
    "questions",
    "quiz_sets",
    "wrong_questions",
]
