"""Dashboard service - platform statistics for the admin home page"""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from ... import config
from ...shared.formatting import quantize_amount
from .repository import DashboardRepository
from .schemas import (
    DashboardStats,
    MonthlyRevenue,
    PaymentOverview,
    SubjectDemand,
    UniversityUsers,
    UserTypeTotals,
)

logger = logging.getLogger(__name__)

RECENT_REVENUE_DAYS = 30
REVENUE_MONTHS = 6


def last_months(today: date, count: int) -> list[str]:
    """YYYY-MM keys for the current month and the count - 1 before it, oldest first"""
    year, month = today.year, today.month
    keys = []
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def platform_cut(amount: Decimal) -> Decimal:
    return quantize_amount(amount * config.PLATFORM_SHARE)


class DashboardService:
    """Service layer for admin dashboard statistics"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DashboardRepository()

    def get_stats(self) -> DashboardStats:
        confirmed = [
            (Decimal(str(amount)), created_at) for amount, created_at in self.repo.confirmed_payments(self.db)
        ]
        gross = sum((amount for amount, _ in confirmed), Decimal("0"))

        recent_cutoff = datetime.utcnow() - timedelta(days=RECENT_REVENUE_DAYS)
        recent = sum(
            (
                amount
                for amount, created_at in confirmed
                if created_at and created_at.replace(tzinfo=None) >= recent_cutoff
            ),
            Decimal("0"),
        )

        months = last_months(date.today(), REVENUE_MONTHS)
        by_month = {key: Decimal("0") for key in months}
        for amount, created_at in confirmed:
            if created_at is None:
                continue
            key = f"{created_at.year:04d}-{created_at.month:02d}"
            if key in by_month:
                by_month[key] += amount

        names = self.repo.university_names(self.db)
        distribution = [
            UniversityUsers(
                universityId=university_id,
                universityName=names.get(university_id, "Unknown") if university_id else "Unassigned",
                users=count,
            )
            for university_id, count in self.repo.users_per_university(self.db).items()
        ]
        distribution.sort(key=lambda u: (-u.users, u.universityName))

        types = self.repo.user_type_counts(self.db)

        stats = DashboardStats(
            totalUsers=self.repo.count_users(self.db),
            totalTutors=self.repo.count_tutors(self.db, "approved"),
            pendingApplications=self.repo.count_tutors(self.db, "pending"),
            grossRevenue=quantize_amount(gross),
            totalRevenue=platform_cut(gross),
            confirmedSessions=self.repo.count_completed_sessions(self.db),
            mostInDemandSubjects=[
                SubjectDemand(subjectId=subject_id, subjectName=name, sessions=count)
                for subject_id, name, count in self.repo.top_subjects(self.db)
            ],
            paymentOverview=PaymentOverview(
                byStatus=self.repo.payments_by_status(self.db),
                recentConfirmedRevenue=quantize_amount(recent),
                revenueByMonth=[
                    MonthlyRevenue(month=key, gross=quantize_amount(total), platform=platform_cut(total))
                    for key, total in by_month.items()
                ],
            ),
            universityDistribution=distribution,
            userTypeTotals=UserTypeTotals(
                tutors=types.get("tutor", 0),
                tutees=types.get("tutee", 0),
                admins=types.get("admin", 0),
            ),
        )
        logger.info(f"📊 Dashboard stats computed: {stats.totalUsers} users, gross {stats.grossRevenue}")
        return stats
