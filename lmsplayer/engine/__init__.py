"""
Assessment session engine.

Components:
- timer: per-section countdown on the asyncio loop
- answers: test-scoped answer storage
- questions: closed question-type registry (one handler per answer family)
- quiz: lesson quiz state machine
- progress: monotonic course completion tracking
- sequencer: timed section flow and single submission
- recording: audio capture lifecycle
- course / session: orchestration for the course player and a test attempt
- session_store: save/resume for test attempts
"""

from .answers import AnswerStore, match_key
from .course import CoursePlayer
from .progress import ProgressOutcome, ProgressTracker, completion_threshold
from .questions import QuestionType, get_handler
from .quiz import QuizEngine, parse_quiz
from .recording import RecordingSession, RecordingState
from .sequencer import SectionSequencer, SequencerState, Transition
from .session import PracticeTestSession
from .session_store import SessionStore, TestSessionState, create_session_state
from .timer import SectionTimer

__all__ = [
    "AnswerStore",
    "match_key",
    "CoursePlayer",
    "ProgressOutcome",
    "ProgressTracker",
    "completion_threshold",
    "QuestionType",
    "get_handler",
    "QuizEngine",
    "parse_quiz",
    "RecordingSession",
    "RecordingState",
    "SectionSequencer",
    "SequencerState",
    "Transition",
    "PracticeTestSession",
    "SessionStore",
    "TestSessionState",
    "create_session_state",
    "SectionTimer",
]
