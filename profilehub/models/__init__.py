from profilehub.models.education import Education
from profilehub.models.experience import Experience
from profilehub.models.image import Image
from profilehub.models.ownership import OwnerKind
from profilehub.models.profile import Profile
from profilehub.models.project import Project
from profilehub.models.user import User

__all__ = [
	"Education",
	"Experience",
	"Image",
	"OwnerKind",
	"Profile",
	"Project",
	"User",
]
