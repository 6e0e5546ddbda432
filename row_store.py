"""
Collection-level access to the database.

Route handlers and the tree mutation paths read and write rows through
RowStore rather than through the models directly, so every collection is
handled the same way: rows go in and come out as plain dicts, filters are
equality / membership / inclusive ranges, and every write either commits as
a whole or raises StoreWriteError after rolling back.
"""
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy import Date, DateTime
from sqlalchemy.exc import SQLAlchemyError

from models import db, Plan, BucketListItem, Template, Todo, Note
from order_utils import apply_updates, reconcile_order
from tree_utils import order_key

COLLECTIONS = {
    'plans': Plan,
    'bucketlist': BucketListItem,
    'templates': Template,
    'todos': Todo,
    'notes': Note,
}

PAGE_SIZE = 1000


class StoreWriteError(Exception):
    """A write was rejected by the database; nothing from that call was kept."""

    def __init__(self, message, collection=None):
        super().__init__(message)
        self.collection = collection


def _coerce_value(column, value):
    if value is None or not isinstance(value, str):
        return value
    if isinstance(column.type, DateTime):
        return datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
    if isinstance(column.type, Date):
        return date.fromisoformat(value[:10])
    return value


class RowStore:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session
        self._rpcs = {
            'swap_plan_order': self._swap_plan_order,
            'increment_plan_order_index': self._increment_plan_order_index,
        }

    # --- helpers -----------------------------------------------------------

    def model_for(self, collection):
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    def _values(self, model, row):
        """Keep only real columns and convert ISO strings for date columns."""
        columns = model.__table__.columns
        values = {}
        for key, value in (row or {}).items():
            if key not in columns:
                continue
            values[key] = _coerce_value(columns[key], value)
        return values

    def _query(self, model, filters=None, ranges=None):
        query = self.session.query(model)
        columns = model.__table__.columns
        for column, value in (filters or {}).items():
            attr = getattr(model, column)
            if value is None:
                query = query.filter(attr.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(attr.in_([_coerce_value(columns[column], v) for v in value]))
            else:
                query = query.filter(attr == _coerce_value(columns[column], value))
        for column, (low, high) in (ranges or {}).items():
            attr = getattr(model, column)
            low = _coerce_value(columns[column], low)
            high = _coerce_value(columns[column], high)
            if low is not None:
                query = query.filter(attr >= low)
            if high is not None:
                query = query.filter(attr <= high)
        return query

    def _ordered(self, model, query, order_by):
        clauses = []
        for name in order_by or ():
            if name.startswith('-'):
                clauses.append(getattr(model, name[1:]).desc())
            else:
                clauses.append(getattr(model, name).asc())
        clauses.append(model.created_at.asc())
        clauses.append(model.id.asc())
        return query.order_by(*clauses)

    @contextmanager
    def _transaction(self, collection, action):
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreWriteError(f"{action} on {collection} failed: {exc}", collection) from exc

    # --- reads -------------------------------------------------------------

    def list(self, collection, filters=None, ranges=None, order_by=None, offset=None, limit=None):
        model = self.model_for(collection)
        query = self._ordered(model, self._query(model, filters, ranges), order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [row.to_dict() for row in query.all()]

    def list_paged(self, collection, filters=None, ranges=None, order_by=None, page_size=PAGE_SIZE):
        """Read a whole collection one range at a time."""
        rows = []
        page = 0
        while True:
            batch = self.list(collection, filters, ranges, order_by, offset=page * page_size, limit=page_size)
            rows.extend(batch)
            if len(batch) < page_size:
                return rows
            page += 1

    def get(self, collection, row_id):
        row = self.session.get(self.model_for(collection), row_id)
        return row.to_dict() if row else None

    def count(self, collection, filters=None, ranges=None):
        model = self.model_for(collection)
        return self._query(model, filters, ranges).count()

    # --- writes ------------------------------------------------------------

    def insert(self, collection, row):
        return self.insert_many(collection, [row])[0]

    def insert_many(self, collection, rows):
        model = self.model_for(collection)
        created = [model(**self._values(model, row)) for row in rows]
        with self._transaction(collection, 'insert'):
            self.session.add_all(created)
        return [obj.to_dict() for obj in created]

    def update(self, collection, row_id, patch):
        """Apply patch to one row; returns the updated row or None when missing."""
        model = self.model_for(collection)
        values = self._values(model, patch)
        values.pop('id', None)
        with self._transaction(collection, 'update'):
            obj = self.session.get(model, row_id)
            if obj is None:
                return None
            for key, value in values.items():
                setattr(obj, key, value)
        return obj.to_dict()

    def update_many(self, collection, updates):
        """Apply a list of {'id', ...fields} patches in one transaction."""
        updates = list(updates)
        if not updates:
            return 0
        model = self.model_for(collection)
        applied = 0
        with self._transaction(collection, 'batch update'):
            for update in updates:
                obj = self.session.get(model, update['id'])
                if obj is None:
                    continue
                for key, value in self._values(model, update).items():
                    if key != 'id':
                        setattr(obj, key, value)
                applied += 1
        return applied

    def update_where(self, collection, patch, filters=None):
        model = self.model_for(collection)
        values = self._values(model, patch)
        values.pop('id', None)
        with self._transaction(collection, 'update'):
            changed = self._query(model, filters).update(values, synchronize_session='fetch')
        return changed

    def delete(self, collection, row_id):
        return self.delete_many(collection, [row_id]) > 0

    def delete_many(self, collection, ids):
        ids = list(ids)
        if not ids:
            return 0
        model = self.model_for(collection)
        with self._transaction(collection, 'delete'):
            removed = self._query(model, {'id': ids}).delete(synchronize_session='fetch')
        return removed

    def delete_where(self, collection, filters=None, ranges=None):
        model = self.model_for(collection)
        with self._transaction(collection, 'delete'):
            removed = self._query(model, filters, ranges).delete(synchronize_session='fetch')
        return removed

    # --- ordering ----------------------------------------------------------

    def siblings(self, collection, parent_id, filters=None):
        scope = dict(filters or {})
        scope['parent_id'] = parent_id
        return self.list(collection, scope, order_by=['order_index'])

    def reconcile_siblings(self, collection, parent_id, filters=None):
        """
        Renumber a sibling group from what is actually stored.

        Recovery step after a failed reorder: whatever was persisted is read
        back and made contiguous again. Returns the sibling rows in order.
        """
        rows = self.siblings(collection, parent_id, filters)
        updates = reconcile_order(rows)
        if updates:
            self.update_many(collection, updates)
        return sorted(apply_updates(rows, updates), key=order_key)

    # --- named procedures --------------------------------------------------

    def rpc(self, name, args=None):
        try:
            procedure = self._rpcs[name]
        except KeyError:
            raise ValueError(f"Unknown procedure: {name}") from None
        return procedure(**(args or {}))

    def _swap_plan_order(self, plan_id_1, plan_id_2):
        with self._transaction('plans', 'swap_plan_order'):
            first = self.session.get(Plan, plan_id_1)
            second = self.session.get(Plan, plan_id_2)
            if first is None or second is None:
                raise LookupError('Plan not found')
            first.order_index, second.order_index = second.order_index, first.order_index
        return True

    def _increment_plan_order_index(self, plan_ids):
        ids = list(plan_ids or [])
        if not ids:
            return 0
        with self._transaction('plans', 'increment_plan_order_index'):
            changed = self.session.query(Plan).filter(Plan.id.in_(ids)).update(
                {Plan.order_index: Plan.order_index + 1}, synchronize_session='fetch'
            )
        return changed
