"""Declared schemas for the OTC advisor application tables."""

import re
from typing import Dict, List, Optional, Type

from pydantic import Field

from .record import PrismaDateTime, TableRecord


class TimestampedRecord(TableRecord):
    """Tables carrying Prisma's createdAt / updatedAt columns."""
    created_at: Optional[PrismaDateTime] = Field(default=None, alias="createdAt")
    updated_at: Optional[PrismaDateTime] = Field(default=None, alias="updatedAt")


class UserRecord(TimestampedRecord):
    email: Optional[str] = None
    phone: Optional[str] = None
    phone_verified: Optional[bool] = None
    role: Optional[str] = None


class DrugRecord(TimestampedRecord):
    generic_name: str
    name_fa: Optional[str] = None
    name_en: Optional[str] = None
    atc_code: Optional[str] = None
    infant_dose_mg_kg: Optional[float] = None
    child_dose_mg_kg: Optional[float] = None
    adult_dose_mg: Optional[float] = None
    max_single_dose_mg: Optional[float] = None
    max_daily_dose_mg: Optional[float] = None
    min_age_months: Optional[int] = None
    max_age_years: Optional[int] = None
    dosing_interval_hours: Optional[int] = None
    max_doses_per_day: Optional[int] = None


class PatientProfileRecord(TimestampedRecord):
    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[PrismaDateTime] = None
    gender: Optional[str] = None
    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None


class MedicalHistoryRecord(TimestampedRecord):
    patient_profile_id: str
    condition_name: Optional[str] = None
    condition_type: Optional[str] = None
    diagnosed_date: Optional[PrismaDateTime] = None
    is_chronic: Optional[bool] = None
    is_active: Optional[bool] = None


class MedicationHistoryRecord(TimestampedRecord):
    patient_profile_id: str
    drug_id: Optional[str] = None
    medication_name: Optional[str] = None
    start_date: Optional[PrismaDateTime] = None
    end_date: Optional[PrismaDateTime] = None
    is_current: Optional[bool] = None


class ReminderRecord(TimestampedRecord):
    patient_profile_id: str
    medication_history_id: Optional[str] = None
    title: Optional[str] = None
    medication_name: Optional[str] = None
    start_date: Optional[PrismaDateTime] = None
    end_date: Optional[PrismaDateTime] = None
    frequency_type: Optional[str] = None
    frequency_value: Optional[int] = None
    times_per_day: Optional[int] = None
    is_active: Optional[bool] = None
    notification_enabled: Optional[bool] = None


class DoseCalculationRecord(TimestampedRecord):
    drug_id: str
    user_id: Optional[str] = None
    patient_age_years: Optional[int] = None
    patient_age_months: Optional[int] = None
    patient_weight_kg: Optional[float] = None
    age_group: Optional[str] = None
    calculated_dose_mg: Optional[float] = None
    total_daily_dose_mg: Optional[float] = None
    doses_per_day: Optional[int] = None
    is_safe: Optional[bool] = None


class EducationalContentRecord(TimestampedRecord):
    slug: str
    title_fa: Optional[str] = None
    title_en: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    view_count: Optional[int] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None
    published_at: Optional[PrismaDateTime] = None


class FAQRecord(TimestampedRecord):
    slug: str
    question_fa: Optional[str] = None
    answer_fa: Optional[str] = None
    category: Optional[str] = None
    view_count: Optional[int] = None
    is_featured: Optional[bool] = None
    is_published: Optional[bool] = None


# Foreign key dependency order: every table comes after the tables it references.
MIGRATION_ORDER: List[str] = [
    "User",
    "Drug",
    "PatientProfile",
    "MedicalHistory",
    "MedicationHistory",
    "Reminder",
    "DoseCalculation",
    "EducationalContent",
    "FAQ",
]

TABLE_SCHEMAS: Dict[str, Type[TableRecord]] = {
    "User": UserRecord,
    "Drug": DrugRecord,
    "PatientProfile": PatientProfileRecord,
    "MedicalHistory": MedicalHistoryRecord,
    "MedicationHistory": MedicationHistoryRecord,
    "Reminder": ReminderRecord,
    "DoseCalculation": DoseCalculationRecord,
    "EducationalContent": EducationalContentRecord,
    "FAQ": FAQRecord,
}


def get_record_model(table: str) -> Type[TableRecord]:
    """Get the declared model for a table, or the generic one for unknown tables."""
    return TABLE_SCHEMAS.get(table, TableRecord)


def order_tables(tables: List[str]) -> List[str]:
    """
    Order table names by MIGRATION_ORDER.

    Known tables keep their dependency position; unknown tables follow in
    the order given.
    """
    known = [t for t in MIGRATION_ORDER if t in tables]
    unknown = [t for t in tables if t not in TABLE_SCHEMAS]
    return known + unknown


_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def quote_identifier(name: str) -> str:
    """Quote a table or column name for SQL, rejecting anything unusual."""
    if not _IDENTIFIER_RE.fullmatch(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'
