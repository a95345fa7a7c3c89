import argparse
import logging
import os
import sys

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from ParkPermitAPI.database import SessionLocal
from ParkPermitAPI.errors import InvalidOperation
from ParkPermitAPI.lifecycle import find_missing_invoices, issue_missing_invoice
from ParkPermitAPI.utils import dollars_to_cents

logger = logging.getLogger(__name__)


def reconcile_invoices(apply: bool = False, db=None) -> int:
    """
    Find approved applications that owe a permit fee but have no invoice.

    Args:
        apply (bool): Create the missing invoices (default is a dry run).
        db (Session, optional): Session to use; a new one is opened otherwise.

    Returns:
        int: Number of applications missing an invoice.
    """
    own_session = db is None
    if own_session:
        db = SessionLocal()
    try:
        missing = find_missing_invoices(db)
        logger.info("Found %d approved applications without an invoice", len(missing))
        for application in missing:
            logger.info(
                "%s %s: permit fee %s (%d cents)",
                "Issuing invoice for" if apply else "Would issue invoice for",
                application.application_number, application.permit_fee, dollars_to_cents(application.permit_fee),
            )
            if apply:
                try:
                    issue_missing_invoice(db, application, created_by=application.reviewed_by)
                except InvalidOperation as exc:
                    logger.warning("Skipped application %s: %s", application.id, exc)
        return len(missing)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Report or repair approved applications missing their permit-fee invoice.")
    parser.add_argument("--apply", action="store_true", help="Create missing invoices (default is dry-run)")
    args = parser.parse_args()
    reconcile_invoices(apply=args.apply)
