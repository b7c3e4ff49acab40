# rentals/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances so services share one
construction path and tests can substitute implementations.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from .audit_repository import AuditRepository
    from .blackout_repository import BlackoutRepository
    from .booking_repository import BookingRepository
    from .car_unit_repository import CarUnitRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .ledger_repository import LedgerRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_car_unit_repository(db: Session) -> "CarUnitRepository":
        from .car_unit_repository import CarUnitRepository

        return CarUnitRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_ledger_repository(db: Session) -> "LedgerRepository":
        from .ledger_repository import LedgerRepository

        return LedgerRepository(db)

    @staticmethod
    def create_audit_repository(db: Session) -> "AuditRepository":
        from .audit_repository import AuditRepository

        return AuditRepository(db)

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_blackout_repository(db: Session) -> "BlackoutRepository":
        from .blackout_repository import BlackoutRepository

        return BlackoutRepository(db)
