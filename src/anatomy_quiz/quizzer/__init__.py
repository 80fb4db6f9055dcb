from ._main import build_arg_parser
from .bank import QuestionBank, QuestionBankError, default_bank, load_bank, shuffle
from .flags import WELCOME_SEEN, FlagStore, JsonFlagStore, MemoryFlagStore
from .grading import fallback_grade, grade
from .models import (
    DEFAULT_MODEL,
    GradeResult,
    Mode,
    ModelTier,
    Question,
    ResultRecord,
    SessionSummary,
)
from .service import ChatQuizService, RemoteServiceError
from .session import PhaseKind, QuizSession, SessionStateError
from .summary import summarize
from .view import parse_session_command, run_quiz_session

__all__ = [
    "build_arg_parser",
    "QuestionBank",
    "QuestionBankError",
    "default_bank",
    "load_bank",
    "shuffle",
    "WELCOME_SEEN",
    "FlagStore",
    "JsonFlagStore",
    "MemoryFlagStore",
    "fallback_grade",
    "grade",
    "DEFAULT_MODEL",
    "GradeResult",
    "Mode",
    "ModelTier",
    "Question",
    "ResultRecord",
    "SessionSummary",
    "ChatQuizService",
    "RemoteServiceError",
    "PhaseKind",
    "QuizSession",
    "SessionStateError",
    "summarize",
    "parse_session_command",
    "run_quiz_session",
]
