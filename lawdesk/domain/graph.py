"""
Entity Graph

Arena-style storage for one graph of domain entities: every entity lives in
a per-type table keyed by its id, and every association lives in an
adjacency index (see associations.py). Entities never hold references to
each other, so there are no ownership cycles.

Read accessors return tuples. The adjacency indexes in `links` are written
only by the RelationshipManager.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple, Type, TypeVar

from .associations import ManyToMany, ManyToOne
from .entities import (
    Attorney,
    Case,
    Client,
    Document,
    Entity,
    Event,
    Invoice,
    Payment,
    TimeEntry,
    assign,
)
from .errors import DuplicateKeyError, LinkedEntityError


E = TypeVar("E", bound=Entity)

ENTITY_TYPES: Tuple[Type[Entity], ...] = (
    Client,
    Attorney,
    Case,
    TimeEntry,
    Document,
    Event,
    Invoice,
    Payment,
)


@dataclass
class GraphLinks:
    """Adjacency indexes of one graph, keyed by entity id."""
    case_client: ManyToOne = field(default_factory=ManyToOne)
    case_attorneys: ManyToMany = field(default_factory=ManyToMany)
    entry_case: ManyToOne = field(default_factory=ManyToOne)
    document_case: ManyToOne = field(default_factory=ManyToOne)
    event_case: ManyToOne = field(default_factory=ManyToOne)
    entry_attorney: ManyToOne = field(default_factory=ManyToOne)
    entry_invoice: ManyToOne = field(default_factory=ManyToOne)
    invoice_client: ManyToOne = field(default_factory=ManyToOne)
    invoice_case: ManyToOne = field(default_factory=ManyToOne)
    payment_invoice: ManyToOne = field(default_factory=ManyToOne)

    def is_linked(self, entity_id: str) -> bool:
        """True if any index still mentions entity_id."""
        return any(index.involves(entity_id) for index in vars(self).values())

    def child_index(self, child: Entity) -> Optional[ManyToOne]:
        """Index owning a case child (time entry, document or event)."""
        if isinstance(child, TimeEntry):
            return self.entry_case
        if isinstance(child, Document):
            return self.document_case
        if isinstance(child, Event):
            return self.event_case
        return None


class EntityGraph:
    """
    In-memory graph of clients, attorneys, cases and billing records.
    """

    def __init__(self):
        self._tables: Dict[Type[Entity], Dict[str, Entity]] = {t: {} for t in ENTITY_TYPES}
        self._keys: Dict[Type[Entity], Dict[str, str]] = {t: {} for t in ENTITY_TYPES}
        self.links = GraphLinks()

    # --- registration ---

    def add(self, entity: E) -> E:
        """
        Register an entity.

        Raises:
            TypeError: If entity is not one of the domain entity types
            DuplicateKeyError: If its id or business key is already taken
        """
        entity_type = self._table_type(entity)
        table = self._tables[entity_type]
        keys = self._keys[entity_type]
        existing = table.get(entity.id)
        if existing is entity:
            return entity
        if existing is not None:
            raise DuplicateKeyError(entity_type.__name__, entity.id)
        if entity.business_key in keys:
            raise DuplicateKeyError(entity_type.__name__, entity.business_key)
        table[entity.id] = entity
        keys[entity.business_key] = entity.id
        return entity

    def add_all(self, *entities: Entity) -> None:
        for entity in entities:
            self.add(entity)

    def deregister(self, entity: Entity) -> bool:
        """
        Drop an entity from its table.

        Callers delete through the RelationshipManager, which unlinks the
        entity first.

        Raises:
            LinkedEntityError: If an association index still refers to entity
        """
        if entity not in self:
            return False
        if self.links.is_linked(entity.id):
            raise LinkedEntityError(type(entity).__name__, entity.business_key)
        entity_type = self._table_type(entity)
        del self._tables[entity_type][entity.id]
        del self._keys[entity_type][entity.business_key]
        return True

    def rekey(self, entity: Entity, new_key: str) -> None:
        """
        Change an entity's business key.

        Raises:
            DuplicateKeyError: If another entity of the same type holds new_key
        """
        if entity not in self:
            assign(entity, entity.business_key_field, new_key)
            return
        entity_type = self._table_type(entity)
        keys = self._keys[entity_type]
        owner = keys.get(new_key)
        if owner is not None and owner != entity.id:
            raise DuplicateKeyError(entity_type.__name__, new_key)
        del keys[entity.business_key]
        assign(entity, entity.business_key_field, new_key)
        keys[new_key] = entity.id

    def __contains__(self, entity: object) -> bool:
        if not isinstance(entity, ENTITY_TYPES):
            return False
        return self._tables[self._table_type(entity)].get(entity.id) is entity

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())

    def __iter__(self) -> Iterator[Entity]:
        for table in self._tables.values():
            yield from table.values()

    # --- lookup ---

    def get(self, entity_type: Type[E], entity_id: str) -> Optional[E]:
        return self._tables[entity_type].get(entity_id)

    def find_by_key(self, entity_type: Type[E], key: str) -> Optional[E]:
        entity_id = self._keys[entity_type].get(key)
        if entity_id is None:
            return None
        return self._tables[entity_type][entity_id]

    def all(self, entity_type: Type[E]) -> Tuple[E, ...]:
        return tuple(self._tables[entity_type].values())

    # --- association queries ---

    def client_of(self, entity: Entity) -> Optional[Client]:
        """Client of a case, an invoice, or (through its invoice) a payment."""
        if isinstance(entity, Case):
            return self._one(Client, self.links.case_client.parent(entity.id))
        if isinstance(entity, Invoice):
            return self._one(Client, self.links.invoice_client.parent(entity.id))
        if isinstance(entity, Payment):
            invoice = self.invoice_of(entity)
            return self.client_of(invoice) if invoice is not None else None
        return None

    def case_of(self, entity: Entity) -> Optional[Case]:
        """Owning case of a time entry, document or event; case of an invoice."""
        if isinstance(entity, Invoice):
            return self._one(Case, self.links.invoice_case.parent(entity.id))
        index = self.links.child_index(entity)
        if index is None:
            return None
        return self._one(Case, index.parent(entity.id))

    def cases_of(self, entity: Entity) -> Tuple[Case, ...]:
        """Cases of a client, or cases an attorney is assigned to."""
        if isinstance(entity, Client):
            return self._many(Case, self.links.case_client.children(entity.id))
        if isinstance(entity, Attorney):
            return self._many(Case, self.links.case_attorneys.lefts(entity.id))
        return ()

    def attorneys_of(self, case: Case) -> Tuple[Attorney, ...]:
        return self._many(Attorney, self.links.case_attorneys.rights(case.id))

    def attorney_of(self, entry: TimeEntry) -> Optional[Attorney]:
        return self._one(Attorney, self.links.entry_attorney.parent(entry.id))

    def time_entries_of(self, entity: Entity) -> Tuple[TimeEntry, ...]:
        """Time entries of a case, logged by an attorney, or billed to an invoice."""
        if isinstance(entity, Case):
            ids = self.links.entry_case.children(entity.id)
        elif isinstance(entity, Attorney):
            ids = self.links.entry_attorney.children(entity.id)
        elif isinstance(entity, Invoice):
            ids = self.links.entry_invoice.children(entity.id)
        else:
            return ()
        return self._many(TimeEntry, ids)

    def unbilled_time_entries(self, case: Case) -> Tuple[TimeEntry, ...]:
        return tuple(entry for entry in self.time_entries_of(case) if not entry.billed)

    def documents_of(self, case: Case) -> Tuple[Document, ...]:
        return self._many(Document, self.links.document_case.children(case.id))

    def events_of(self, case: Case) -> Tuple[Event, ...]:
        return self._many(Event, self.links.event_case.children(case.id))

    def invoices_of(self, entity: Entity) -> Tuple[Invoice, ...]:
        """Invoices of a client or raised for a case."""
        if isinstance(entity, Client):
            return self._many(Invoice, self.links.invoice_client.children(entity.id))
        if isinstance(entity, Case):
            return self._many(Invoice, self.links.invoice_case.children(entity.id))
        return ()

    def invoice_of(self, entity: Entity) -> Optional[Invoice]:
        """Invoice a payment belongs to, or a time entry was billed on."""
        if isinstance(entity, Payment):
            return self._one(Invoice, self.links.payment_invoice.parent(entity.id))
        if isinstance(entity, TimeEntry):
            return self._one(Invoice, self.links.entry_invoice.parent(entity.id))
        return None

    def payments_of(self, entity: Entity) -> Tuple[Payment, ...]:
        """Payments of an invoice, or of every invoice of a client."""
        if isinstance(entity, Invoice):
            return self._many(Payment, self.links.payment_invoice.children(entity.id))
        if isinstance(entity, Client):
            return tuple(
                payment
                for invoice in self.invoices_of(entity)
                for payment in self.payments_of(invoice)
            )
        return ()

    # --- helpers ---

    @staticmethod
    def _table_type(entity: Entity) -> Type[Entity]:
        for entity_type in ENTITY_TYPES:
            if isinstance(entity, entity_type):
                return entity_type
        raise TypeError(f"not a domain entity: {type(entity).__name__}")

    def _one(self, entity_type: Type[E], entity_id: Optional[str]) -> Optional[E]:
        if entity_id is None:
            return None
        return self._tables[entity_type].get(entity_id)

    def _many(self, entity_type: Type[E], ids: Tuple[str, ...]) -> Tuple[E, ...]:
        table = self._tables[entity_type]
        return tuple(table[entity_id] for entity_id in ids)
