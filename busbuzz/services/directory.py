# File: busbuzz/services/directory.py
"""Reference data (routes, buses) and user administration."""
import csv
import io
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from busbuzz.core.errors import AppError, DuplicateEmail, NotFound, StoreUnavailable, ValidationError
from busbuzz.core.security import Principal, hash_password
from busbuzz.models.bus import Bus, BusStatus
from busbuzz.models.route import Route
from busbuzz.models.user import User, UserRole
from busbuzz.schemas.directory import BusUpsert, RouteUpsert
from busbuzz.schemas.user import UserCreate, UserImportRow, UserPatch
from busbuzz.services.identity import create_user, find_by_email, normalize_email
from busbuzz.services.seed import INITIAL_BUSES, ROUTE_DATA

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["id", "name", "email", "role", "identifier", "route", "boardingPoint", "createdAt"]


def csv_safe(value: Any) -> Any:
    # spreadsheet formula injection: neutralise a leading = + - @
    if isinstance(value, str) and value[:1] in ("=", "+", "-", "@"):
        return f"'{value}"
    return value


def _pydantic_reason(err: PydanticValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        parts.append(f"{loc}: {e.get('msg')}" if loc else e.get("msg", "invalid"))
    return "; ".join(parts) or "Invalid data"


class Directory:
    def __init__(self, db: Session):
        self.db = db

    # ---- seeding ----

    def ensure_seeded(self) -> None:
        if self.db.query(Route.id).first() is not None or self.db.query(Bus.id).first() is not None:
            return
        for name, data in ROUTE_DATA.items():
            self.db.add(Route(name=name, stops=dict(data["stops"]), capacity=data["capacity"]))
        for bus in INITIAL_BUSES:
            self.db.add(Bus(**bus))
        try:
            self.db.commit()
            logger.info("Seeded %s routes and %s buses", len(ROUTE_DATA), len(INITIAL_BUSES))
        except IntegrityError:
            # another worker seeded first; unique keys rejected our copy
            self.db.rollback()
            logger.info("Directory already seeded by a concurrent request")

    # ---- routes ----

    def _route_view(self, route: Route, buses: List[Bus]) -> Dict[str, Any]:
        return {
            "id": route.id,
            "name": route.name,
            "stops": route.stops or {},
            "capacity": route.capacity,
            "buses": [{"bus_no": b.bus_no, "driver": b.driver, "status": b.status} for b in buses],
        }

    def get_routes(self) -> List[Dict[str, Any]]:
        self.ensure_seeded()
        routes = self.db.query(Route).order_by(Route.name).all()
        by_route: Dict[str, List[Bus]] = {}
        for b in self.db.query(Bus).order_by(Bus.bus_no).all():
            by_route.setdefault(b.route, []).append(b)
        return [self._route_view(r, by_route.get(r.name, [])) for r in routes]

    def route_exists(self, name: str) -> bool:
        self.ensure_seeded()
        return self.db.query(Route.id).filter(Route.name == name).first() is not None

    def _find_route(self, name: str) -> Optional[Route]:
        return self.db.query(Route).filter(Route.name == name).first()

    def upsert_route(self, name: str, body: RouteUpsert, retry: bool = True) -> Dict[str, Any]:
        name = (name or "").strip()
        if not name:
            raise ValidationError(fields=["name"])
        self.ensure_seeded()
        route = self._find_route(name)
        if route is None:
            route = Route(name=name, stops={}, capacity=None)
            self.db.add(route)
        if body.stops is not None:
            route.stops = dict(body.stops)
        if body.capacity is not None:
            route.capacity = body.capacity
        try:
            self.db.commit()
        except IntegrityError:
            # another request created the same route name first
            self.db.rollback()
            if not retry:
                raise StoreUnavailable()
            logger.info("Route %r created concurrently, updating it instead", name)
            return self.upsert_route(name, body, retry=False)
        self.db.refresh(route)
        buses = self.db.query(Bus).filter(Bus.route == name).order_by(Bus.bus_no).all()
        return self._route_view(route, buses)

    def delete_route(self, name: str) -> None:
        route = self.db.query(Route).filter(Route.name == name).first()
        if not route:
            raise NotFound("Route not found")
        in_use = self.db.query(Bus).filter(Bus.route == name).count()
        if in_use:
            raise ValidationError(f"Cannot delete: {in_use} bus(es) are assigned to this route", fields=["name"])
        self.db.delete(route)
        self.db.commit()

    # ---- buses ----

    def get_buses(self) -> List[Bus]:
        self.ensure_seeded()
        return self.db.query(Bus).order_by(Bus.bus_no).all()

    def _find_bus(self, bus_no: str) -> Optional[Bus]:
        return self.db.query(Bus).filter(Bus.bus_no == bus_no).first()

    def upsert_bus(self, bus_no: str, body: BusUpsert, retry: bool = True) -> Bus:
        bus_no = (bus_no or "").strip()
        if not bus_no:
            raise ValidationError(fields=["busNo"])
        self.ensure_seeded()
        # checked at write time only; a later route delete is not prevented here
        if body.route is not None and not self.route_exists(body.route):
            raise ValidationError(f"Unknown route: {body.route}", fields=["route"])
        bus = self._find_bus(bus_no)
        if bus is None:
            if not body.route:
                raise ValidationError(fields=["route"])
            bus = Bus(bus_no=bus_no, status=BusStatus.idle.value)
            self.db.add(bus)
        if body.route is not None:
            bus.route = body.route
        if body.capacity is not None:
            bus.capacity = body.capacity
        if "driver" in body.model_fields_set:
            bus.driver = body.driver or None
        if body.status is not None:
            bus.status = body.status
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            if not retry:
                raise StoreUnavailable()
            logger.info("Bus %s created concurrently, updating it instead", bus_no)
            return self.upsert_bus(bus_no, body, retry=False)
        self.db.refresh(bus)
        return bus

    def delete_bus(self, bus_no: str) -> None:
        bus = self.db.query(Bus).filter(Bus.bus_no == bus_no).first()
        if not bus:
            raise NotFound("Bus not found")
        self.db.delete(bus)
        self.db.commit()

    # ---- users ----

    def get_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def create_user(self, body: UserCreate) -> User:
        return create_user(self.db, **body.model_dump())

    def update_user(self, user_id: int, body: UserPatch, actor: Principal) -> User:
        user = self.get_user(user_id)
        changes = body.model_dump(exclude_unset=True)

        if "role" in changes and changes["role"] is not None:
            if actor.user_id == user_id and changes["role"] != user.role.value:
                raise ValidationError("You cannot change your own role", fields=["role"])
            user.role = UserRole(changes.pop("role"))
        if "email" in changes and changes["email"] is not None:
            email = normalize_email(changes.pop("email"))
            other = find_by_email(self.db, email)
            if other and other.id != user.id:
                raise DuplicateEmail()
            user.email = email
        if changes.get("password"):
            user.hashed_password = hash_password(changes.pop("password"))
        if changes.get("name"):
            user.name = changes.pop("name").strip()
        for field in ("roll_number_or_staff_id", "assigned_bus_route_no", "boarding_point"):
            if field in changes:
                setattr(user, field, changes[field])

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DuplicateEmail()
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int, actor: Principal) -> None:
        if actor.user_id == user_id:
            raise ValidationError("You cannot delete your own account", fields=["id"])
        user = self.get_user(user_id)
        self.db.delete(user)
        self.db.commit()
        logger.info("User %s deleted by %s", user_id, actor.user_id)

    def import_users(self, rows: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Create users row by row; failures are collected, never fatal to the batch."""
        imported = 0
        errors: List[Dict[str, str]] = []
        for raw in rows:
            identifier = str(raw.get("email") or "N/A") if isinstance(raw, dict) else "N/A"
            try:
                body = UserImportRow.model_validate(raw)
                create_user(self.db, **body.model_dump())
                imported += 1
            except PydanticValidationError as e:
                errors.append({"identifier": identifier, "reason": _pydantic_reason(e)})
            except AppError as e:
                errors.append({"identifier": identifier, "reason": e.message})
            except SQLAlchemyError:
                self.db.rollback()
                logger.error("User import: store rejected row %s", identifier, exc_info=True)
                errors.append({"identifier": identifier, "reason": "Could not store this row"})
        if errors:
            logger.warning("User import: %s imported, %s rejected", imported, len(errors))
        return {
            "message": f"Import complete. Successfully imported {imported} users.",
            "imported": imported,
            "errors": errors,
        }

    def export_users_csv(self) -> str:
        buf = io.StringIO()
        writer = csv.writer(buf)
        writer.writerow(EXPORT_COLUMNS)
        for u in self.get_users():
            writer.writerow([csv_safe(v) for v in (
                u.id,
                u.name,
                u.email,
                u.role.value,
                u.roll_number_or_staff_id or "",
                u.assigned_bus_route_no or "",
                u.boarding_point or "",
                u.created_at.isoformat() if u.created_at else "",
            )])
        return buf.getvalue()
