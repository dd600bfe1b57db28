from quizdeck.models.user import User
from quizdeck.models.quiz_set import Option, Question, QuestionType, QuizSet
from quizdeck.models.exam import Exam, ExamAnswer, ExamQuestion, ExamStatus
from quizdeck.models.wrong_question import WrongQuestionRecord
from quizdeck.models.practice import PracticeAttempt

__all__ = [
    "User",
    "QuizSet",
    "Question",
    "QuestionType",
    "Option",
    "Exam",
    "ExamStatus",
    "ExamQuestion",
    "ExamAnswer",
    "WrongQuestionRecord",
    "PracticeAttempt",
]
