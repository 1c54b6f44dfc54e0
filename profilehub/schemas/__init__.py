from profilehub.schemas.portfolio import (
	EducationCreate,
	EducationRead,
	EducationUpdate,
	ExperienceCreate,
	ExperienceRead,
	ExperienceUpdate,
	ImageRead,
	ImageUploadResponse,
	ProjectCreate,
	ProjectRead,
	ProjectUpdate,
)
from profilehub.schemas.profile import ProfileRead, ProfileUpdateForm, ProfileView, SaveProfilePayload, SaveProfileResult
from profilehub.schemas.upload import UploadErrorKind, UploadResult
from profilehub.schemas.user import DeleteAccountRequest, Token, TokenData, UserCreate, UserLogin, UserRead

__all__ = [
	"EducationCreate",
	"EducationRead",
	"EducationUpdate",
	"ExperienceCreate",
	"ExperienceRead",
	"ExperienceUpdate",
	"ImageRead",
	"ImageUploadResponse",
	"ProjectCreate",
	"ProjectRead",
	"ProjectUpdate",
	"ProfileRead",
	"ProfileUpdateForm",
	"ProfileView",
	"SaveProfilePayload",
	"SaveProfileResult",
	"UploadErrorKind",
	"UploadResult",
	"DeleteAccountRequest",
	"Token",
	"TokenData",
	"UserCreate",
	"UserLogin",
	"UserRead",
]
