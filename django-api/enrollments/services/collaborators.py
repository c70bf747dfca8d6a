"""Interfaces of the collaborators services call out to.

Services depend only on these and on the store interface; concrete
implementations are chosen in enrollments.wiring.
"""

from abc import ABC, abstractmethod

from enrollments.domain import CapacityPatch, Course, Enrollment, UserIdentity


class CapacityRenderer(ABC):
    """Receives availability patches for display."""

    @abstractmethod
    def render(self, patch: CapacityPatch) -> None:
        ...


class PhoneProvider(ABC):
    """Obtains a contact phone when the user's profile has none."""

    @abstractmethod
    def request_phone(self, user: UserIdentity) -> str | None:
        """Return the phone the user entered, or None if they cancelled."""
        ...


class SuppliedPhone(PhoneProvider):
    """Phone already collected by the caller (e.g. sent in the request body)."""

    def __init__(self, phone: str | None) -> None:
        self._phone = phone

    def request_phone(self, user: UserIdentity) -> str | None:
        return self._phone or None


class AdmissionObserver(ABC):
    """Side effect run after an enrollment has been written."""

    name = "observer"

    @abstractmethod
    def on_admitted(self, enrollment: Enrollment, course: Course) -> None:
        ...

    def on_status_changed(self, enrollment: Enrollment) -> None:
        """Called after an administrator or the owner changes the status."""


class IdentityProvider(ABC):
    """Resolves the signed-in user of a request."""

    @abstractmethod
    def current_user(self, request) -> UserIdentity | None:
        ...
