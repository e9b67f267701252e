from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models import db
from models.booking import Booking
from models.resource import Resource
from services.booking_store import Page
from services.errors import (
    ResourceInUse,
    ResourceNameTaken,
    ResourceNotFound,
    StoreUnavailable,
    ValidationFailed,
)


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationFailed("Resource name required")
    name = name.strip()
    if len(name) > 120:
        raise ValidationFailed("Resource name too long")
    return name


def _clean_description(description):
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationFailed("Invalid description")
    return description.strip() or None


class ResourceCatalog:
    def __init__(self, exclusion=None, session=None):
        self._exclusion = exclusion
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def find_by_id(self, resource_id):
        if resource_id is None:
            return None
        return self.session.get(Resource, resource_id)

    def get(self, resource_id) -> Resource:
        resource = self.find_by_id(resource_id)
        if resource is None:
            raise ResourceNotFound()
        return resource

    def exists(self, resource_id) -> bool:
        return self.find_by_id(resource_id) is not None

    def _name_taken(self, name: str, exclude_id=None) -> bool:
        q = self.session.query(Resource.id).filter(func.lower(Resource.name) == name.lower())
        if exclude_id is not None:
            q = q.filter(Resource.id != exclude_id)
        return q.first() is not None

    def _commit(self):
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ResourceNameTaken()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreUnavailable() from exc

    def create(self, name, description=None) -> Resource:
        name = _clean_name(name)
        if self._name_taken(name):
            raise ResourceNameTaken()

        resource = Resource(name=name, description=_clean_description(description))
        self.session.add(resource)
        self._commit()
        return resource

    def update(self, resource_id, name, description=None) -> Resource:
        resource = self.get(resource_id)
        name = _clean_name(name)
        if self._name_taken(name, exclude_id=resource.id):
            raise ResourceNameTaken()

        resource.name = name
        resource.description = _clean_description(description)
        self._commit()
        return resource

    def delete(self, resource_id) -> None:
        resource = self.get(resource_id)

        # held so no booking can land on the resource between the check and the delete
        with self._exclusion.hold(resource.id):
            in_use = self.session.query(Booking.id).filter(Booking.resource_id == resource.id).first()
            if in_use is not None:
                self.session.rollback()
                raise ResourceInUse()
            self.session.delete(resource)
            self._commit()

    def _paged(self, query, page: int, size: int) -> Page:
        page = max(int(page or 1), 1)
        size = max(int(size or 1), 1)
        total = query.order_by(None).count()
        rows = query.order_by(Resource.id.asc()).offset((page - 1) * size).limit(size).all()
        return Page(rows, page, size, total)

    def list(self, page: int = 1, size: int = 20) -> Page:
        return self._paged(self.session.query(Resource), page, size)

    def search(self, query: str, page: int = 1, size: int = 20) -> Page:
        query = (query or "").strip()
        q = self.session.query(Resource)
        if query:
            like = f"%{query}%"
            q = q.filter(or_(Resource.name.ilike(like), Resource.description.ilike(like)))
        return self._paged(q, page, size)
