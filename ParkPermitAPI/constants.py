"""
Global constants for the ParkPermitAPI.

Status vocabularies shared by the models, schemas and lifecycle rules.
"""

APPLICATION_PENDING = "pending"
APPLICATION_APPROVED = "approved"
APPLICATION_DISAPPROVED = "disapproved"

APPLICATION_STATUSES = (APPLICATION_PENDING, APPLICATION_APPROVED, APPLICATION_DISAPPROVED)
"""tuple[str]: Every status an application can hold."""

INVOICE_PENDING = "pending"
INVOICE_PAID = "paid"

INVOICE_STATUSES = (INVOICE_PENDING, INVOICE_PAID)

PARK_STATUSES = ("active", "inactive", "maintenance")
"""tuple[str]: Display statuses for parks."""

NOTIFY_EMAIL = "email"
NOTIFY_SMS = "sms"
NOTIFY_BOTH = "both"

NOTIFY_METHODS = (NOTIFY_EMAIL, NOTIFY_SMS, NOTIFY_BOTH)
"""tuple[str]: Channels an applicant can be notified through."""

ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"

USER_ROLES = (ROLE_ADMIN, ROLE_STAFF)

APPLICANT_TYPES = ("individual", "organization")

APPLICATION_NUMBER_PREFIX = "APP"
INVOICE_NUMBER_PREFIX = "INV"
# Fresh invoice numbers tried before an approval gives up
INVOICE_NUMBER_ATTEMPTS = 3

PERMIT_PENDING = "pending"
PERMIT_APPROVED = "approved"
PERMIT_STATUSES = (PERMIT_PENDING, PERMIT_APPROVED, "active", "expired", "cancelled")
"""tuple[str]: Statuses an issued permit can hold; templates always carry "template"."""
PERMIT_TEMPLATE_STATUS = "template"

PERMIT_NUMBER_PREFIX = "SUP"
TEMPLATE_NUMBER_PREFIX = "TPL"
