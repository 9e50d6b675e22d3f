"""SQLAlchemy models module.

Importing the package registers every mapped class, so string-based
relationships ("Profile", "ProjectNeed", …) always resolve.
"""

from memberdir.models.user import AccountStatus, User
from memberdir.models.access_token import AccessToken
from memberdir.models.profile import ApprovalStatus, Profile
from memberdir.models.project import Project, ProjectStatus
from memberdir.models.needs import NeedCategory, NeedOption, ProjectNeed, ProjectNeedOption
from memberdir.models.job import Job, JobType
from memberdir.models.bookmarks import ProjectFollow, UserFavorite

__all__ = [
    "AccessToken",
    "AccountStatus",
    "ApprovalStatus",
    "Job",
    "JobType",
    "NeedCategory",
    "NeedOption",
    "Profile",
    "Project",
    "ProjectFollow",
    "ProjectNeed",
    "ProjectNeedOption",
    "ProjectStatus",
    "User",
    "UserFavorite",
]
