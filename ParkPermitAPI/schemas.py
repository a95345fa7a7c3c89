from pydantic import BaseModel, validator, Field
from typing import Optional, List, Literal
from datetime import datetime, date
from decimal import Decimal

from ParkPermitAPI.constants import APPLICANT_TYPES, PARK_STATUSES, PERMIT_STATUSES, USER_ROLES
from ParkPermitAPI.fee_catalog import APPLICATION_FEE, PERMIT_FEE, DEFAULT_APPLICATION_FEE, DEFAULT_PERMIT_FEE, is_allowed_amount


# Pydantic schema for Users
class UserBase(BaseModel):
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "staff"

    @validator('role')
    def validate_role(cls, value):
        if value not in USER_ROLES:
            raise ValueError(f"Invalid role: {value}")
        return value

class UserCreate(UserBase):
    password: str

class UserResponse(UserBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Pydantic schema for Parks
class ParkBase(BaseModel):
    name: str
    location: str
    description: Optional[str] = None
    status: str = "active"

    @validator('status')
    def validate_status(cls, value):
        if value not in PARK_STATUSES:
            raise ValueError(f"Invalid park status: {value}")
        return value

class ParkCreate(ParkBase):
    pass

class ParkUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None

    @validator('status')
    def validate_status(cls, value):
        if value is not None and value not in PARK_STATUSES:
            raise ValueError(f"Invalid park status: {value}")
        return value

class ParkResponse(ParkBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class ParkStatusResponse(BaseModel):
    id: int
    name: str
    status: str
    location: str

    class Config:
        from_attributes = True


class ParkLocationCreate(BaseModel):
    name: str
    description: Optional[str] = None

class ParkLocationResponse(ParkLocationCreate):
    id: int
    park_id: int

    class Config:
        from_attributes = True


# Pydantic schema for Applications
class ApplicationBase(BaseModel):
    location_id: Optional[int] = None
    custom_location: Optional[str] = None
    applicant_type: Optional[str] = None
    organization_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    event_title: Optional[str] = None
    event_dates: Optional[List[date]] = None
    event_description: Optional[str] = None
    attendees: Optional[int] = None
    setup_time: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    special_requests: Optional[str] = None
    has_location_fee: bool = False
    location_fee: Optional[Decimal] = None
    activity: Optional[str] = None
    insurance_carrier: Optional[str] = None
    insurance_tier: Optional[int] = None
    insurance_document: Optional[str] = None

class ApplicationCreate(ApplicationBase):
    park_id: int
    event_dates: List[date] = Field(..., min_length=1)
    application_fee: Decimal = Decimal(DEFAULT_APPLICATION_FEE)
    permit_fee: Decimal = Decimal(DEFAULT_PERMIT_FEE)
    agreed_to_terms: bool = False

    @validator('application_fee')
    def validate_application_fee(cls, value):
        if not is_allowed_amount(APPLICATION_FEE, value):
            raise ValueError(f"Invalid application fee: {value}")
        return value

    @validator('permit_fee')
    def validate_permit_fee(cls, value):
        if not is_allowed_amount(PERMIT_FEE, value):
            raise ValueError(f"Invalid permit fee: {value}")
        return value

    @validator('applicant_type')
    def validate_applicant_type(cls, value):
        if value is not None and value not in APPLICANT_TYPES:
            raise ValueError(f"Invalid applicant type: {value}")
        return value

    @validator('insurance_tier')
    def validate_insurance_tier(cls, value):
        if value is not None and value not in (0, 1, 2, 3):
            raise ValueError(f"Invalid insurance tier: {value}")
        return value

# Status, payment flags and reviewer fields are only changed by lifecycle operations
class ApplicationUpdate(ApplicationBase):
    has_location_fee: Optional[bool] = None
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None

class ApplicationResponse(ApplicationBase):
    id: int
    application_number: Optional[str] = None
    park_id: int
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None
    total_fee: Optional[Decimal] = None
    location_fee_paid: bool = False
    agreed_to_terms: bool = False
    is_paid: bool = False
    status: str
    disapproval_reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    park_name: Optional[str] = None
    invoice_status: Optional[str] = None

    class Config:
        from_attributes = True


class DisapprovalRequest(BaseModel):
    reason: str
    notify_method: Literal["email", "sms", "both"] = "email"


# Pydantic schema for Invoices
class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    application_id: int
    amount: int
    status: str
    issue_date: date
    due_date: date
    paid_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApprovalResponse(BaseModel):
    application: ApplicationResponse
    invoice: Optional[InvoiceResponse] = None


class FeeStatusResponse(BaseModel):
    category: str
    amount: Decimal
    paid: bool

class PaymentStatusResponse(BaseModel):
    application_id: int
    fees: List[FeeStatusResponse] = Field(default_factory=list)
    fully_paid: bool
    application_product_id: str
    permit_product_id: str


# Static catalogs
class FeeOptionResponse(BaseModel):
    amount: int
    label: str
    product_id: str

    class Config:
        from_attributes = True

class InsuranceActivityResponse(BaseModel):
    tier: int
    activity: str
    insurance_limits: str

    class Config:
        from_attributes = True


class DashboardStatsResponse(BaseModel):
    pending_applications: int = 0
    approved_applications: int = 0
    disapproved_applications: int = 0
    total_invoices: int = 0
    pending_invoices: int = 0
    revenue: int = 0


# Pydantic schema for Permits
class PermitBase(BaseModel):
    permit_type: str = "standard"
    park_id: int
    location: str
    permittee_name: str
    permittee_email: str
    permittee_phone: Optional[str] = None
    activity: str
    description: Optional[str] = None
    participant_count: Optional[int] = None
    start_date: date
    end_date: date
    special_conditions: Optional[str] = None
    status: str = "pending"
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None

    @validator('status')
    def validate_status(cls, value):
        if value not in PERMIT_STATUSES:
            raise ValueError(f"Invalid permit status: {value}")
        return value

    @validator('end_date')
    def validate_end_date(cls, value, values):
        start = values.get('start_date')
        if start is not None and value < start:
            raise ValueError("end_date must not be before start_date")
        return value

class PermitCreate(PermitBase):
    pass

# Numbers, template fields and audit columns are set by the server
class PermitUpdate(BaseModel):
    permit_type: Optional[str] = None
    park_id: Optional[int] = None
    location: Optional[str] = None
    permittee_name: Optional[str] = None
    permittee_email: Optional[str] = None
    permittee_phone: Optional[str] = None
    activity: Optional[str] = None
    description: Optional[str] = None
    participant_count: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    special_conditions: Optional[str] = None
    status: Optional[str] = None
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None

    @validator('status')
    def validate_status(cls, value):
        if value is not None and value not in PERMIT_STATUSES:
            raise ValueError(f"Invalid permit status: {value}")
        return value

class PermitResponse(BaseModel):
    id: int
    permit_number: str
    permit_type: str
    park_id: int
    location: str
    permittee_name: str
    permittee_email: str
    permittee_phone: Optional[str] = None
    activity: str
    description: Optional[str] = None
    participant_count: Optional[int] = None
    start_date: date
    end_date: date
    special_conditions: Optional[str] = None
    status: str
    issue_date: Optional[date] = None
    is_template: bool = False
    template_data: Optional[dict] = None
    application_fee: Optional[Decimal] = None
    permit_fee: Optional[Decimal] = None
    created_at: datetime
    created_by: int
    updated_at: datetime
    updated_by: Optional[int] = None

    class Config:
        from_attributes = True


class PermitTemplateLocation(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

    class Config:
        extra = "allow"

# The whole form is stored as template_data; unknown keys are kept
class PermitTemplateIn(BaseModel):
    name: Optional[str] = None
    park_id: int
    locations: List[PermitTemplateLocation] = Field(default_factory=list)

    class Config:
        extra = "allow"
