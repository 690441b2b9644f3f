"""Convenience exports for schema layer."""
from .auth import (
    AuthActionResponse,
    AuthResult,
    AuthSession,
    AuthStateView,
    AuthUser,
    GuardDecision,
    LoginCredentials,
    ResetPasswordData,
    SignUpCredentials,
    UpdatePasswordData,
)
from .common import ApiResponse, PaginatedResponse, Pagination, build_pagination
from .follow import Follow
from .posts import (
    Comment,
    CommentCreateRequest,
    CommentInsert,
    CommentUpdate,
    Like,
    Post,
    PostCreateRequest,
    PostInsert,
    PostUpdate,
)
from .profiles import Profile, ProfileInsert, ProfileSetupRequest, ProfileUpdate
from .storage import FileUploadResult, ImageValidation, StorageObject, UploadedFile
from .stories import Story, StoryBucket, StoryCreateRequest, StoryInsert

__all__ = [
    "ApiResponse",
    "AuthActionResponse",
    "AuthResult",
    "AuthSession",
    "AuthStateView",
    "AuthUser",
    "Comment",
    "CommentCreateRequest",
    "CommentInsert",
    "CommentUpdate",
    "FileUploadResult",
    "Follow",
    "GuardDecision",
    "ImageValidation",
    "Like",
    "LoginCredentials",
    "PaginatedResponse",
    "Pagination",
    "Post",
    "PostCreateRequest",
    "PostInsert",
    "PostUpdate",
    "Profile",
    "ProfileInsert",
    "ProfileSetupRequest",
    "ProfileUpdate",
    "ResetPasswordData",
    "SignUpCredentials",
    "StorageObject",
    "Story",
    "StoryBucket",
    "StoryCreateRequest",
    "StoryInsert",
    "UpdatePasswordData",
    "UploadedFile",
    "build_pagination",
]
