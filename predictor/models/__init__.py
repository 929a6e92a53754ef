from .user import User
from .session import Session
from .match import Match
from .team_stat import TeamStat
from .prediction import Prediction
from .user_score import UserScore
from .comment import Comment

__all__ = [
    "User",
    "Session",
    "Match",
    "TeamStat",
    "Prediction",
    "UserScore",
    "Comment",
]
