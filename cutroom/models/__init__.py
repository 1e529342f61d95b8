from cutroom.models.base import Base
from cutroom.models.project import ProjectRecord

__all__ = [
    "Base",
    "ProjectRecord",
]
