"""
Validated citation and arrest records.

The wire format keeps the form's parallel arrays (``officerBadges``,
``penalCodes``, ``amountsDue``...). Everything downstream of the HTTP layer
reads the normalized ``officers``/``offenses`` views and ``summary()``.
"""

from typing import Annotated, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from form_session import DEFAULT_COURT_DATE, DEFAULT_COURT_LOCATION, DEFAULT_COURT_PHONE, MAX_OFFICERS
from messages import decode_data_url
from ledger import compute_totals, compute_warrant, format_amount, format_jail_time, parse_amount, parse_jail_time
from penal_codes import ARREST_CATALOG, CITATION_CATALOG, PenalCodeCatalog

AMOUNT_PATTERN = r"^\d+(\.\d{1,2})?$"

NonEmpty = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Amount = Annotated[str, StringConstraints(strip_whitespace=True, pattern=AMOUNT_PATTERN)]


class Officer(NamedTuple):
    badge: str
    username: str
    rank: str
    user_id: str
    signature: Optional[str] = None


class Offense(NamedTuple):
    code: str
    amount: str
    jail_time: str


class OffenseSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_fine_amount: str
    total_jail_time_seconds: int
    remaining_jail_time_seconds: int
    warrant_needed: bool


def _check_same_length(values: list, info: ValidationInfo, other: str, message: str) -> list:
    reference = info.data.get(other)
    if reference is not None and len(values) != len(reference):
        raise PydanticCustomError("length_mismatch", message)
    return values


def _check_catalog(codes: list, catalog: PenalCodeCatalog) -> list:
    unknown = [code for code in codes if code not in catalog]
    if unknown:
        raise PydanticCustomError(
            "unknown_penal_code", "Unknown penal code(s): {codes}", {"codes": ", ".join(unknown)}
        )
    return codes


def _check_catalog_amounts(amounts: list, info: ValidationInfo, catalog: PenalCodeCatalog) -> list:
    for code, amount in zip(info.data.get("penal_codes") or [], amounts):
        entry = catalog.lookup(code)
        if entry is not None and parse_amount(amount) != parse_amount(entry.fine_amount):
            raise PydanticCustomError(
                "amount_mismatch", "Amount for {code} must be {amount}",
                {"code": code, "amount": format_amount(entry.fine_amount)},
            )
    return amounts


def _check_catalog_jail_times(jail_times: list, info: ValidationInfo, catalog: PenalCodeCatalog) -> list:
    for code, jail_time in zip(info.data.get("penal_codes") or [], jail_times):
        entry = catalog.lookup(code)
        if entry is not None and parse_jail_time(jail_time) != (entry.jail_time_seconds or 0):
            raise PydanticCustomError(
                "jail_time_mismatch", "Jail time for {code} must be {jail_time}",
                {"code": code, "jail_time": entry.jail_time},
            )
    return jail_times


class _ReportRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    officer_badges: List[NonEmpty] = Field(min_length=1, max_length=MAX_OFFICERS)
    officer_usernames: List[NonEmpty] = Field(min_length=1, max_length=MAX_OFFICERS)
    officer_ranks: List[NonEmpty] = Field(min_length=1, max_length=MAX_OFFICERS)
    officer_user_ids: List[NonEmpty] = Field(min_length=1, max_length=MAX_OFFICERS)

    penal_codes: List[NonEmpty] = Field(min_length=1)
    amounts_due: List[Amount] = Field(min_length=1)
    total_amount: Amount = "0.00"
    total_jail_time: str = "0 Seconds"

    @field_validator("officer_usernames", "officer_ranks", "officer_user_ids")
    @classmethod
    def _officer_columns_line_up(cls, values, info: ValidationInfo):
        return _check_same_length(values, info, "officer_badges", "Every officer needs a badge, username, rank and user ID")

    @field_validator("amounts_due")
    @classmethod
    def _one_amount_per_code(cls, values, info: ValidationInfo):
        return _check_same_length(values, info, "penal_codes", "Every penal code needs an amount")

    @property
    def officers(self) -> List[Officer]:
        return [
            Officer(badge, username, rank, user_id)
            for badge, username, rank, user_id in zip(
                self.officer_badges, self.officer_usernames, self.officer_ranks, self.officer_user_ids
            )
        ]

    def _jail_times(self) -> List[str]:
        return []

    @property
    def offenses(self) -> List[Offense]:
        jail_times = self._jail_times()
        return [
            Offense(code, amount, jail_times[i] if i < len(jail_times) else "None")
            for i, (code, amount) in enumerate(zip(self.penal_codes, self.amounts_due))
        ]

    def summary(self) -> OffenseSummary:
        totals = compute_totals((offense.amount, offense.jail_time) for offense in self.offenses)
        return OffenseSummary(
            total_fine_amount=totals.total_fine_amount,
            total_jail_time_seconds=totals.total_jail_time_seconds,
            remaining_jail_time_seconds=0,
            warrant_needed=False,
        )


class CitationRecord(_ReportRecord):
    violator_username: NonEmpty
    violator_signature: NonEmpty
    violation_type: str = "Citation"
    jail_times: List[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None

    @field_validator("penal_codes")
    @classmethod
    def _codes_in_catalog(cls, codes):
        return _check_catalog(codes, CITATION_CATALOG)

    @field_validator("amounts_due")
    @classmethod
    def _amounts_match_catalog(cls, amounts, info: ValidationInfo):
        return _check_catalog_amounts(amounts, info, CITATION_CATALOG)

    @field_validator("jail_times")
    @classmethod
    def _jail_times_match_catalog(cls, jail_times, info: ValidationInfo):
        return _check_catalog_jail_times(jail_times, info, CITATION_CATALOG)

    def _jail_times(self) -> List[str]:
        return self.jail_times

    @model_validator(mode="after")
    def _normalize_totals(self):
        summary = self.summary()
        self.total_amount = summary.total_fine_amount
        self.total_jail_time = format_jail_time(summary.total_jail_time_seconds)
        return self


class ArrestRecord(_ReportRecord):
    jail_times: List[str] = Field(min_length=1)
    # remaining sentence; omitted means the full total
    total_jail_time: Optional[str] = None
    time_served: bool = False

    court_date: str = DEFAULT_COURT_DATE
    court_location: str = DEFAULT_COURT_LOCATION
    court_phone: str = DEFAULT_COURT_PHONE

    suspect_signature: NonEmpty
    officer_signatures: List[NonEmpty] = Field(min_length=1, max_length=MAX_OFFICERS)

    # mugshot precedes description so the description check can see it
    mugshot_base64: Optional[str] = None
    description: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("penal_codes")
    @classmethod
    def _codes_in_catalog(cls, codes):
        return _check_catalog(codes, ARREST_CATALOG)

    @field_validator("amounts_due")
    @classmethod
    def _amounts_match_catalog(cls, amounts, info: ValidationInfo):
        return _check_catalog_amounts(amounts, info, ARREST_CATALOG)

    @field_validator("jail_times")
    @classmethod
    def _one_jail_time_per_code(cls, values, info: ValidationInfo):
        _check_same_length(values, info, "penal_codes", "Every penal code needs a jail time")
        return _check_catalog_jail_times(values, info, ARREST_CATALOG)

    @field_validator("officer_signatures")
    @classmethod
    def _one_signature_per_officer(cls, values, info: ValidationInfo):
        return _check_same_length(values, info, "officer_badges", "Every officer must sign the report")

    @field_validator("mugshot_base64")
    @classmethod
    def _mugshot_decodes(cls, value):
        if value:
            decode_data_url(value)
        return value or None

    @field_validator("description")
    @classmethod
    def _description_or_mugshot(cls, value, info: ValidationInfo):
        value = (value or "").strip() or None
        if value is None and not info.data.get("mugshot_base64"):
            raise PydanticCustomError("description_required", "Either description or mugshot is required")
        return value

    def _jail_times(self) -> List[str]:
        return self.jail_times

    @property
    def officers(self) -> List[Officer]:
        return [
            officer._replace(signature=signature)
            for officer, signature in zip(super().officers, self.officer_signatures)
        ]

    def summary(self) -> OffenseSummary:
        totals = compute_totals((offense.amount, offense.jail_time) for offense in self.offenses)
        remaining = totals.total_jail_time_seconds
        if self.total_jail_time is not None:
            remaining = parse_jail_time(self.total_jail_time)
        warrant = compute_warrant(totals.total_jail_time_seconds, remaining, self.time_served)
        return OffenseSummary(
            total_fine_amount=totals.total_fine_amount,
            total_jail_time_seconds=totals.total_jail_time_seconds,
            remaining_jail_time_seconds=warrant.remaining_seconds,
            warrant_needed=warrant.needed,
        )

    @model_validator(mode="after")
    def _normalize_totals(self):
        summary = self.summary()
        self.total_amount = summary.total_fine_amount
        self.total_jail_time = format_jail_time(summary.remaining_jail_time_seconds)
        return self
