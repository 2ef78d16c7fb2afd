import logging

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from app.models.booking import Booking
from app.models.customer import Customer
from app.schemas.booking import CustomerInfo
from app.schemas.customer import BlacklistRequest
from app.utils.audit import log_action
from app.utils.exceptions import NotFoundException, CustomerBlacklistedException

logger = logging.getLogger(__name__)


def _serialize(c: Customer, bookings_count: int | None = None) -> dict:
    data = {
        "id":               c.id,
        "first_name":       c.first_name,
        "last_name":        c.last_name,
        "email":            c.email,
        "phone":            c.phone,
        "date_of_birth":    c.date_of_birth.isoformat() if c.date_of_birth else None,
        "license_number":   c.license_number,
        "license_country":  c.license_country,
        "license_expiry":   c.license_expiry.isoformat() if c.license_expiry else None,
        "is_blacklisted":   c.is_blacklisted,
        "blacklist_reason": c.blacklist_reason,
        "created_at":       c.created_at.isoformat() if c.created_at else None,
    }
    if bookings_count is not None:
        data["bookings_count"] = bookings_count
    return data


class CustomerService:

    def upsert_for_booking(self, db: Session, info: CustomerInfo) -> Customer:
        """
        Find the customer by email or create one; refreshes contact and licence
        details. Flushes only — the booking transaction commits.
        """
        c = db.query(Customer).filter(func.lower(Customer.email) == info.email.lower()).first()
        if c and c.is_blacklisted:
            logger.warning(f"Blacklisted customer {c.email} attempted a booking")
            raise CustomerBlacklistedException()

        if not c:
            c = Customer(email=info.email.lower())
            db.add(c)
        c.first_name = info.first_name
        c.last_name  = info.last_name
        c.phone      = info.phone
        if info.date_of_birth:   c.date_of_birth   = info.date_of_birth
        if info.license_number:  c.license_number  = info.license_number
        if info.license_country: c.license_country = info.license_country
        if info.license_expiry:  c.license_expiry  = info.license_expiry
        db.flush()
        return c

    def list_customers(
        self, db: Session, page: int, limit: int,
        search: str | None, blacklisted: bool | None,
    ) -> tuple[list[dict], int]:
        counts = db.query(Booking.customer_id, func.count(Booking.id).label("n"))\
                   .group_by(Booking.customer_id).subquery()
        q = db.query(Customer, func.coalesce(counts.c.n, 0))\
              .outerjoin(counts, counts.c.customer_id == Customer.id)

        if search:
            kw = f"%{search}%"
            q = q.filter(or_(
                Customer.first_name.ilike(kw),
                Customer.last_name.ilike(kw),
                Customer.email.ilike(kw),
                Customer.phone.ilike(kw),
            ))
        if blacklisted is not None:
            q = q.filter(Customer.is_blacklisted == blacklisted)

        total = q.count()
        rows = q.order_by(Customer.created_at.desc(), Customer.id.desc())\
                .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(c, n) for c, n in rows], total

    def get_customer(self, db: Session, customer_id: int) -> dict:
        c = db.query(Customer).filter(Customer.id == customer_id).first()
        if not c:
            raise NotFoundException("Customer")
        data = _serialize(c, len(c.bookings))
        data["bookings"] = [{
            "id":             b.id,
            "booking_number": b.booking_number,
            "status":         b.status.value,
            "pickup_date":    b.pickup_date.isoformat(),
            "dropoff_date":   b.dropoff_date.isoformat(),
            "total_price":    float(b.total_price),
        } for b in sorted(c.bookings, key=lambda b: b.pickup_date, reverse=True)]
        return data

    def set_blacklist(self, db: Session, customer_id: int, data: BlacklistRequest, actor_id: int) -> dict:
        c = db.query(Customer).filter(Customer.id == customer_id).first()
        if not c:
            raise NotFoundException("Customer")

        c.is_blacklisted   = data.is_blacklisted
        c.blacklist_reason = data.reason
        action = "BLACKLIST" if data.is_blacklisted else "UNBLACKLIST"
        log_action(db, actor_id, action, "Customer", c.id,
                   f"{c.full_name} ({c.email}) {action.lower()}ed" +
                   (f" | Reason: {data.reason}" if data.reason else ""))
        db.commit()
        db.refresh(c)
        return _serialize(c)


customer_service = CustomerService()
