"""Dashboard schemas"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class SubjectDemand(BaseModel):
    subjectId: int
    subjectName: str
    sessions: int


class MonthlyRevenue(BaseModel):
    month: str  # YYYY-MM
    gross: Decimal
    platform: Decimal


class PaymentOverview(BaseModel):
    byStatus: dict[str, int]
    recentConfirmedRevenue: Decimal
    revenueByMonth: list[MonthlyRevenue]


class UniversityUsers(BaseModel):
    universityId: Optional[int] = None
    universityName: str
    users: int


class UserTypeTotals(BaseModel):
    tutors: int
    tutees: int
    admins: int


class DashboardStats(BaseModel):
    totalUsers: int
    totalTutors: int
    pendingApplications: int
    grossRevenue: Decimal
    totalRevenue: Decimal
    confirmedSessions: int
    mostInDemandSubjects: list[SubjectDemand]
    paymentOverview: PaymentOverview
    universityDistribution: list[UniversityUsers]
    userTypeTotals: UserTypeTotals
