from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, Date, ForeignKey, Text, JSON, Table, func, UniqueConstraint
from sqlalchemy.orm import relationship, declarative_base

from ParkPermitAPI.constants import APPLICATION_PENDING, INVOICE_PENDING, PERMIT_PENDING, ROLE_STAFF


Base = declarative_base()


# Staff <-> park assignments (many-to-many); staff only see their parks' applications
user_park_assignments = Table(
    "user_park_assignments",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("park_id", Integer, ForeignKey("parks.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """
    Represents a staff account.

    Attributes:
        id (int): Primary key.
        email (str): Login email, unique.
        name (str): Display name.
        phone (str): Contact phone.
        encrypted_password (str): Bcrypt hash.
        role (str): "admin" or "staff".
        parks (list[Park]): Parks assigned to the user.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String)
    phone = Column(String)
    encrypted_password = Column(String, nullable=False)
    role = Column(String, default=ROLE_STAFF, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    parks = relationship("Park", secondary=user_park_assignments, back_populates="staff")


class Park(Base):
    """
    Represents a state park that hosts permitted events.

    Attributes:
        id (int): Primary key.
        name (str): Park name.
        location (str): Region or address text.
        description (str): Free-form description.
        status (str): "active", "inactive" or "maintenance".
    """
    __tablename__ = "parks"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    location = Column(String, nullable=False)
    description = Column(Text)
    status = Column(String, default="active", nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    locations = relationship("ParkLocation", back_populates="park", cascade="all, delete-orphan")
    applications = relationship("Application", back_populates="park")
    permits = relationship("Permit", back_populates="park")
    staff = relationship("User", secondary=user_park_assignments, back_populates="parks")


class ParkLocation(Base):
    """
    A named area inside a park (pavilion, beach, trailhead) that can be reserved.
    """
    __tablename__ = "park_locations"

    id = Column(Integer, primary_key=True, index=True)
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    park = relationship("Park", back_populates="locations")


class Application(Base):
    """
    Represents a special-use permit application (the intake record).

    Attributes:
        id (int): Primary key.
        application_number (str): Human-readable number, e.g. "APP-2025-0001".
        park_id (int): Foreign key to the Park table.
        location_id (int): Optional named sub-location of the park.
        custom_location (str): Free-text location when no named one applies.
        event_dates (list[str]): ISO dates of the event, one or more.
        application_fee (Decimal): Application fee in dollars.
        permit_fee (Decimal): Permit fee in dollars, invoiced on approval.
        total_fee (Decimal): Sum of the applicable fees.
        has_location_fee (bool): Whether a separate location fee applies.
        location_fee (Decimal): Location fee in dollars.
        location_fee_paid (bool): Location fee payment flag.
        is_paid (bool): Application fee payment flag.
        status (str): "pending", "approved" or "disapproved".
        disapproval_reason (str): Reason given when disapproved.
        activity (str): Insurance activity name.
        insurance_tier (int): Required insurance tier (0-3).
        reviewed_by (int): Staff user who approved or disapproved.
        invoice (Invoice): The permit-fee invoice, once approved.
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    application_number = Column(String, unique=True, index=True)
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("park_locations.id"))
    custom_location = Column(String)

    applicant_type = Column(String)
    organization_name = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    email = Column(String)
    phone = Column(String)
    address = Column(String)
    city = Column(String)
    state = Column(String)
    zip_code = Column(String)

    event_title = Column(String)
    event_dates = Column(JSON)
    event_description = Column(Text)
    attendees = Column(Integer)
    setup_time = Column(String)
    start_time = Column(String)
    end_time = Column(String)
    special_requests = Column(Text)

    application_fee = Column(Numeric(10, 2))
    permit_fee = Column(Numeric(10, 2))
    total_fee = Column(Numeric(10, 2))
    has_location_fee = Column(Boolean, default=False, nullable=False)
    location_fee = Column(Numeric(10, 2))
    location_fee_paid = Column(Boolean, default=False, nullable=False)

    agreed_to_terms = Column(Boolean, default=False, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    status = Column(String, default=APPLICATION_PENDING, nullable=False, index=True)
    disapproval_reason = Column(Text)

    activity = Column(String)
    insurance_carrier = Column(String)
    insurance_tier = Column(Integer)
    insurance_document = Column(String)

    reviewed_by = Column(Integer, ForeignKey("users.id"))
    reviewed_at = Column(DateTime)
    created_at = Column(DateTime, default=func.now(), nullable=False)  # Auto-generate created_at timestamp
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)  # Auto-update updated_at timestamp

    park = relationship("Park", back_populates="applications")
    location = relationship("ParkLocation")
    reviewer = relationship("User")
    invoice = relationship("Invoice", back_populates="application", uselist=False)


class Invoice(Base):
    """
    Represents the permit-fee obligation created when an application is approved.

    Attributes:
        id (int): Primary key.
        invoice_number (str): Unique number, e.g. "INV-2025-0001".
        application_id (int): Foreign key to the Application table (one invoice per application).
        amount (int): Amount owed in cents.
        status (str): "pending" or "paid".
        issue_date (date): Agency-local date the invoice was issued.
        due_date (date): Payment due date.
        paid_at (datetime): When the invoice was marked paid.
        created_by (int): Staff user who approved the application.
        created_at (datetime): Creation timestamp.
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, unique=True, nullable=False, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False)
    amount = Column(Integer, nullable=False)
    status = Column(String, default=INVOICE_PENDING, nullable=False, index=True)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    paid_at = Column(DateTime)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=func.now(), nullable=False)

    application = relationship("Application", back_populates="invoice")
    __table_args__ = (
        UniqueConstraint("application_id", name="uq_invoices_application_id"),
    )


class Permit(Base):
    """
    Represents an issued special use permit, or a reusable permit template.

    Templates share the table with permits: ``is_template`` is set, ``status``
    is "template", and the full template form is kept in ``template_data``.

    Attributes:
        id (int): Primary key.
        permit_number (str): Unique number, "SUP-2025-0001" (templates use "TPL-").
        permit_type (str): Permit type, or the template name.
        park_id (int): Foreign key to the Park table.
        location (str): Where in the park the permit applies.
        permittee_name (str): Person or organization holding the permit.
        permittee_email (str): Permittee contact email.
        activity (str): Permitted activity.
        start_date (date): First day the permit is valid.
        end_date (date): Last day the permit is valid.
        status (str): "pending", "approved", "active", "expired", "cancelled" or "template".
        issue_date (date): Set when the permit is approved.
        is_template (bool): True for templates.
        template_data (dict): Template form contents.
        created_by (int): Staff user who created the record.
        updated_by (int): Staff user who last changed it.
    """
    __tablename__ = "permits"

    id = Column(Integer, primary_key=True, index=True)
    permit_number = Column(String, unique=True, nullable=False, index=True)
    permit_type = Column(String, nullable=False)
    park_id = Column(Integer, ForeignKey("parks.id"), nullable=False, index=True)
    location = Column(String, nullable=False)
    permittee_name = Column(String, nullable=False)
    permittee_email = Column(String, nullable=False)
    permittee_phone = Column(String)
    activity = Column(String, nullable=False)
    description = Column(Text)
    participant_count = Column(Integer)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    special_conditions = Column(Text)
    status = Column(String, default=PERMIT_PENDING, nullable=False, index=True)
    issue_date = Column(Date)
    is_template = Column(Boolean, default=False, nullable=False)
    template_data = Column(JSON)
    application_fee = Column(Numeric(10, 2))
    permit_fee = Column(Numeric(10, 2))
    created_at = Column(DateTime, default=func.now(), nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)
    updated_by = Column(Integer, ForeignKey("users.id"))

    park = relationship("Park", back_populates="permits")
