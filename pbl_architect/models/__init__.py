"""领域枚举。"""

from pbl_architect.models.enums import Difficulty, KnowledgeBaseMode, Rating, StagingStatus

__all__ = ["Difficulty", "KnowledgeBaseMode", "Rating", "StagingStatus"]
