"""Shared enums for models and the activation flow."""

from enum import Enum


class MemberRole(str, Enum):
    """Role of an identity within its academy."""

    OWNER = "owner"
    INSTRUCTOR = "instructor"
    ASSISTANT = "assistant"
    PARENT = "parent"
    STUDENT = "student"


class ApprovalStatus(str, Enum):
    """Approval status of an identity."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvitationStatus(str, Enum):
    """Invitation status. Transitions only leave PENDING, never return to it."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class ActivationStage(str, Enum):
    """Derived activation stage. Never persisted."""

    NO_PROFILE = "NO_PROFILE"
    PENDING_OWNER_REVIEW = "PENDING_OWNER_REVIEW"
    OWNER_SETUP_REQUIRED = "OWNER_SETUP_REQUIRED"
    MEMBER_INVITED = "MEMBER_INVITED"
    READY = "READY"


class Destination(str, Enum):
    """Where the caller should go next.

    Intents only; concrete routes are chosen at the HTTP boundary.
    """

    PROFILE_SETUP = "GoToProfileSetup"
    INVITE_ACCEPTANCE = "GoToInviteAcceptance"
    PENDING_REVIEW = "GoToPendingReview"
    OWNER_SETUP = "GoToOwnerSetup"
    DASHBOARD = "GoToDashboard"
    SIGN_IN = "GoToSignIn"
