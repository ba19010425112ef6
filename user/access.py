"""
Capability gate.

An authenticated account resolves to one of four states: no profile yet
(onboarding required), passenger or driver. Admin is an independent
capability read from ``UserRole`` and never implies either role.
"""

from dataclasses import dataclass
from typing import Optional

from .models import DriverDetails, Profile, UserRole

ANONYMOUS = 'anonymous'
ONBOARDING_REQUIRED = 'onboarding_required'
PASSENGER = Profile.ROLE_PASSENGER
DRIVER = Profile.ROLE_DRIVER


def has_role(user, role: str) -> bool:
    if user is None or not user.is_authenticated:
        return False
    return UserRole.objects.filter(user=user, role=role).exists()


@dataclass(frozen=True)
class AccessContext:
    user: object = None
    profile: Optional[Profile] = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and self.user.is_authenticated

    @property
    def state(self) -> str:
        if not self.is_authenticated:
            return ANONYMOUS
        if self.profile is None:
            return ONBOARDING_REQUIRED
        return self.profile.role

    @property
    def is_driver(self) -> bool:
        return self.state == DRIVER

    @property
    def is_passenger(self) -> bool:
        return self.state == PASSENGER

    @property
    def driver_details(self) -> Optional[DriverDetails]:
        if not self.is_driver:
            return None
        return DriverDetails.objects.filter(user=self.user).first()


def resolve_access(user) -> AccessContext:
    """Look up the profile and admin capability of ``user``."""
    if user is None or not user.is_authenticated:
        return AccessContext()

    profile = Profile.objects.filter(user=user).first()
    return AccessContext(
        user=user,
        profile=profile,
        is_admin=has_role(user, UserRole.ADMIN),
    )
