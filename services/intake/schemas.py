"""
Field-format rules for each intake section.

These gate the "Next" action of a section. Completeness (is anything
missing?) lives in services.intake.validator; this module answers "is what
was typed acceptable?".
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Mapping
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

NAME_RE = re.compile(r"^[a-zA-Z\s\-']+$")
CITY_RE = re.compile(r"^[a-zA-Z\s\-]+$")
PHONE_RE = re.compile(r"^[+]?[0-9 ()-]{7,15}$")
POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9]{1,2}[A-Z]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CRN_RE = re.compile(r"^[0-9]{7,8}$")
IBAN_RE = re.compile(r"^[A-Z]{2}[0-9A-Z\s]+$", re.IGNORECASE)
SWIFT_RE = re.compile(r"^[A-Z]{4}[A-Z]{2}[A-Z0-9]{2}([A-Z0-9]{3})?$", re.IGNORECASE)
ROUTING_RE = re.compile(r"^[0-9]{9}$")
VAT_RE = re.compile(r"^(GB)?[0-9\s]{9,15}$", re.IGNORECASE)

YesNo = Literal["yes", "no"]


def _check(pattern: re.Pattern, value: str, message: str) -> str:
    if not pattern.match(value or ""):
        raise ValueError(message)
    return value


class SectionSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RequesterInfo(SectionSchema):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    job_title: str = Field(min_length=1, max_length=100)
    department: str = Field(min_length=1, max_length=100)
    nhs_email: str
    phone_number: str

    @field_validator("first_name", "last_name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _check(NAME_RE, v, "Only letters, spaces, hyphens, and apostrophes are allowed")

    @field_validator("nhs_email")
    @classmethod
    def _nhs_email(cls, v: str) -> str:
        _check(EMAIL_RE, v, "Please enter a valid email address")
        if not v.lower().endswith("@nhs.net"):
            raise ValueError("Email must be an NHS email address ending in @nhs.net")
        return v

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _check(PHONE_RE, v, "Please enter a valid UK phone number")


class PreScreening(SectionSchema):
    supplier_connection: YesNo
    connection_details: Optional[str] = None
    letterhead_available: YesNo
    justification: str = Field(min_length=10, max_length=350)
    usage_frequency: Literal["one-off", "occasional", "regular"]
    service_category: Literal["clinical", "non-clinical"]
    procurement_engaged: YesNo
    prescreening_acknowledgement: bool

    @field_validator("justification")
    @classmethod
    def _justification(cls, v: str) -> str:
        if len(v.strip()) < 10:
            raise ValueError("Please provide more detail (minimum 10 characters)")
        return v

    @model_validator(mode="after")
    def _declarations(self) -> "PreScreening":
        errors = []
        if self.supplier_connection == "yes" and not (self.connection_details or "").strip():
            errors.append("connectionDetails: Please describe your connection to this supplier")
        if self.letterhead_available == "no":
            errors.append("letterheadAvailable: A letterhead with bank details is required")
        if self.prescreening_acknowledgement is not True:
            errors.append("prescreeningAcknowledgement: You must acknowledge the declaration")
        if errors:
            raise ValueError("; ".join(errors))
        return self


class SupplierClassification(SectionSchema):
    companies_house_registered: YesNo
    supplier_type: Literal["limited_company", "charity", "sole_trader", "public_sector"]
    annual_value: float = Field(gt=0)
    employee_count: Literal["micro", "small", "medium", "large"]
    crn: Optional[str] = None
    crn_charity: Optional[str] = None
    charity_number: Optional[str] = Field(default=None, max_length=8)
    id_type: Optional[Literal["passport", "driving_licence"]] = None
    organisation_type: Optional[str] = None

    @model_validator(mode="after")
    def _by_supplier_type(self) -> "SupplierClassification":
        errors = []
        registered = self.companies_house_registered == "yes"
        if self.supplier_type == "limited_company" and registered:
            if not CRN_RE.match(self.crn or ""):
                errors.append("crn: CRN must be 7 or 8 digits")
        if self.supplier_type == "charity":
            if not (self.charity_number or "").strip():
                errors.append("charityNumber: Charity number is required")
            if registered and not CRN_RE.match(self.crn_charity or ""):
                errors.append("crnCharity: CRN must be 7 or 8 digits")
        if self.supplier_type == "sole_trader" and self.id_type is None:
            errors.append("idType: Please select ID type")
        if self.supplier_type == "public_sector" and not (self.organisation_type or "").strip():
            errors.append("organisationType: Please select organisation type")
        if errors:
            raise ValueError("; ".join(errors))
        return self


class SupplierDetails(SectionSchema):
    company_name: str = Field(min_length=1, max_length=100)
    trading_name: Optional[str] = Field(default=None, max_length=100)
    registered_address: str = Field(min_length=1, max_length=300)
    city: str = Field(min_length=1, max_length=50)
    postcode: str
    contact_name: str = Field(min_length=1, max_length=100)
    contact_email: str
    contact_phone: str
    website: Optional[str] = None

    @field_validator("city")
    @classmethod
    def _city(cls, v: str) -> str:
        return _check(CITY_RE, v, "Only letters, spaces, and hyphens are allowed")

    @field_validator("postcode")
    @classmethod
    def _postcode(cls, v: str) -> str:
        return _check(POSTCODE_RE, v.strip(), "Please enter a valid UK postcode")

    @field_validator("contact_email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check(EMAIL_RE, v, "Please enter a valid email address")

    @field_validator("contact_phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _check(PHONE_RE, v, "Please enter a valid UK phone number")

    @field_validator("website")
    @classmethod
    def _website(cls, v: Optional[str]) -> Optional[str]:
        if v and not v.startswith("https://"):
            raise ValueError("URL must start with https://")
        return v


class ServiceDescription(SectionSchema):
    service_type: list[str] = Field(min_length=1, max_length=7)
    service_description: str = Field(min_length=10, max_length=350)


class FinancialInfo(SectionSchema):
    overseas_supplier: YesNo
    accounts_address_same: YesNo
    ghx_duns_known: YesNo
    cis_registered: YesNo
    public_liability: YesNo
    vat_registered: YesNo

    iban: Optional[str] = None
    swift_code: Optional[str] = None
    bank_routing: Optional[str] = None
    sort_code: Optional[str] = None
    account_number: Optional[str] = None
    accounts_address: Optional[str] = None
    accounts_city: Optional[str] = None
    accounts_postcode: Optional[str] = None
    accounts_phone: Optional[str] = None
    accounts_email: Optional[str] = None
    ghx_duns_number: Optional[str] = None
    utr_number: Optional[str] = None
    pl_coverage: Optional[float] = None
    pl_expiry: Optional[dt.date] = None
    vat_number: Optional[str] = None

    @model_validator(mode="after")
    def _conditional(self) -> "FinancialInfo":
        errors = []
        if self.overseas_supplier == "yes":
            iban = (self.iban or "").replace(" ", "")
            if not (15 <= len(iban) <= 34 and IBAN_RE.match(iban)):
                errors.append("iban: IBAN must start with a 2-letter country code (15-34 characters)")
            if not SWIFT_RE.match(self.swift_code or ""):
                errors.append("swiftCode: SWIFT/BIC code must be 8 or 11 characters")
            if not ROUTING_RE.match(self.bank_routing or ""):
                errors.append("bankRouting: Bank Routing Number must be exactly 9 digits")
        else:
            sort_code = re.sub(r"[\s-]", "", self.sort_code or "")
            if not re.fullmatch(r"[0-9]{6}", sort_code):
                errors.append("sortCode: UK Sort Code must be exactly 6 digits")
            if not re.fullmatch(r"[0-9]{8}", self.account_number or ""):
                errors.append("accountNumber: UK Account Number must be exactly 8 digits")

        if self.accounts_address_same == "no":
            if not (self.accounts_address or "").strip():
                errors.append("accountsAddress: Accounts address is required")
            if not (self.accounts_city or "").strip():
                errors.append("accountsCity: City is required")
            if not POSTCODE_RE.match((self.accounts_postcode or "").strip()):
                errors.append("accountsPostcode: Please enter a valid UK postcode")
            if not PHONE_RE.match(self.accounts_phone or ""):
                errors.append("accountsPhone: Please enter a valid UK phone number")
            if not EMAIL_RE.match(self.accounts_email or ""):
                errors.append("accountsEmail: Please enter a valid email address")

        if self.ghx_duns_known == "yes":
            if not re.fullmatch(r"[0-9]{9}", re.sub(r"[\s-]", "", self.ghx_duns_number or "")):
                errors.append("ghxDunsNumber: DUNS number must be exactly 9 digits")

        if self.cis_registered == "yes":
            if not re.fullmatch(r"[0-9]{10}", re.sub(r"\s", "", self.utr_number or "")):
                errors.append("utrNumber: UTR must be exactly 10 digits")

        if self.public_liability == "yes":
            if not self.pl_coverage or self.pl_coverage <= 0:
                errors.append("plCoverage: Please enter a valid amount")
            if self.pl_expiry is None or self.pl_expiry < dt.date.today():
                errors.append("plExpiry: Expiry date must be today or in the future")

        if self.vat_registered == "yes":
            vat = re.sub(r"\s", "", self.vat_number or "").upper()
            digits = vat[2:] if vat.startswith("GB") else vat
            if not VAT_RE.match(vat) or len(digits) not in (9, 12):
                errors.append("vatNumber: VAT number must be 9 or 12 digits after GB prefix")

        if errors:
            raise ValueError("; ".join(errors))
        return self


class ReviewSubmit(SectionSchema):
    final_acknowledgement: bool

    @field_validator("final_acknowledgement")
    @classmethod
    def _ack(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("You must acknowledge before submitting")
        return v


SECTION_SCHEMAS: dict[int, type[SectionSchema]] = {
    1: RequesterInfo,
    2: PreScreening,
    3: SupplierClassification,
    4: SupplierDetails,
    5: ServiceDescription,
    6: FinancialInfo,
    7: ReviewSubmit,
}


def _format_error(err: dict[str, Any]) -> list[str]:
    msg = err.get("msg", "")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, ") :]
    loc = ".".join(str(p) for p in err.get("loc", ()))
    if not loc:
        # model-level validators already prefix each message with its field
        return msg.split("; ")
    return [f"{loc}: {msg}"]


def validate_section(section: int, answers: Mapping[str, Any] | None) -> list[str]:
    schema = SECTION_SCHEMAS.get(section)
    if schema is None:
        return [f"unknown section: {section}"]
    try:
        schema.model_validate(dict(answers or {}))
    except ValidationError as e:
        errors: list[str] = []
        for err in e.errors():
            errors.extend(_format_error(err))
        return errors
    return []


def normalise_section(section: int, answers: Mapping[str, Any]) -> dict[str, Any]:
    """Canonical forms for values that passed validation (zero-padded CRNs, upper-case postcodes)."""
    updates: dict[str, Any] = {}
    if section == 3:
        for key in ("crn", "crnCharity"):
            value = answers.get(key)
            if isinstance(value, str) and CRN_RE.match(value) and len(value) == 7:
                updates[key] = "0" + value
    if section == 4:
        postcode = answers.get("postcode")
        if isinstance(postcode, str):
            updates["postcode"] = re.sub(r"\s+", " ", postcode.upper()).strip()
    return updates
