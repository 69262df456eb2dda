from .item import Item, SelectionUpdate, UserItemCreate
from .package import VocabularyPackage, PackageInfo, WordEntry, ExampleText
from .review import GradeRequest, AnswerRequest, Progress, GradeResult, QueueEntryOut
from .session import SessionStart, SessionEnd, Session
from .stats import TodayStats, Streak, Quota, DailyStat, History

__all__ = [
    'Item', 'SelectionUpdate', 'UserItemCreate',
    'VocabularyPackage', 'PackageInfo', 'WordEntry', 'ExampleText',
    'GradeRequest', 'AnswerRequest', 'Progress', 'GradeResult', 'QueueEntryOut',
    'SessionStart', 'SessionEnd', 'Session',
    'TodayStats', 'Streak', 'Quota', 'DailyStat', 'History',
]
