from __future__ import annotations

import enum
import typing as t

from progress89.model import User, UserID, UserRole

from .errors import AuthorizationError


class Capability(enum.Enum):
    ViewOwnResults = "view_own_results"
    ListStudents = "list_students"
    ViewStudentPerformance = "view_student_performance"
    AuthorScales = "author_scales"
    ManageAllScales = "manage_all_scales"
    GradeOwnEvaluations = "grade_own_evaluations"
    ManageAllEvaluations = "manage_all_evaluations"
    ManageUsers = "manage_users"
    ViewReports = "view_reports"


RoleCapabilities: t.Final[dict[UserRole, frozenset[Capability]]] = {
    UserRole.Student: frozenset({
        Capability.ViewOwnResults,
    }),
    UserRole.Teacher: frozenset({
        Capability.ListStudents,
        Capability.ViewStudentPerformance,
        Capability.AuthorScales,
        Capability.GradeOwnEvaluations,
    }),
    UserRole.Admin: frozenset(Capability),
}


class Actor(t.NamedTuple):
    """The identity on whose behalf a request runs"""

    user_id: UserID
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> Actor:
        return cls(user_id=user.user_id, role=user.role)

    @property
    def capabilities(self) -> frozenset[Capability]:
        return RoleCapabilities[self.role]

    def can(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability, message: str = "Not authorized for this action") -> None:
        if not self.can(capability):
            raise AuthorizationError(message)
