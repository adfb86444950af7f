"""Entity registry: compile definitions, create collections, link embeddings."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Iterator, Mapping, Optional

from entmux.config import DEFAULT_CONFIG, MuxConfig
from entmux.errors import (
    DuplicateIdentifierError,
    EntityError,
    FieldWriteError,
    MissingIdentityError,
    StoreUninitializedError,
)
from entmux.logging import get_logger
from entmux.meta.entity import EntityMetadata, compile_metadata
from entmux.meta.field import EmbeddingReference, FieldClassifier, FieldDescriptor, Token
from entmux.meta.kinds import FieldKind
from entmux.meta.tags import ID_TAG
from entmux.mux.decoder import PayloadDecoder
from entmux.store.base import Collection, Store
from entmux.store.entity import Entity


logger = get_logger(__name__)


class EntityRegistry:
    """Registry of entity metadata keyed by entity identifier.

    Registration is a one-time startup step and is not safe against
    concurrent mutation. Once registration is done the registry is only
    read, and decoding may run from many threads at once.
    """

    def __init__(self, store: Optional[Store], config: MuxConfig | None = None) -> None:
        if store is None:
            raise StoreUninitializedError()
        self.store = store
        self.config = config or DEFAULT_CONFIG
        self.classifier = FieldClassifier(self.config)
        self._entities: dict[str, EntityMetadata] = {}
        self._types: dict[type, str] = {}
        self.index_errors: dict[str, Exception] = {}

    def register(self, *definitions: Any) -> "EntityRegistry":
        """Register dataclass definitions, then build indexes and link embeddings.

        A missing or duplicate identifier stops the call; entries registered
        before the failing definition are kept.
        """

        registered: list[str] = []
        for definition in definitions:
            classified = self.classifier.classify(definition)
            type_name = classified.source_type.__name__
            if not classified.entity_id:
                raise MissingIdentityError(ID_TAG, type_name)
            entity_id = classified.entity_id
            if entity_id in self._entities:
                raise DuplicateIdentifierError(entity_id, type_name)

            collection: Optional[Collection] = None
            if not classified.suppressed:
                collection = self.store.collection(entity_id)
            self._entities[entity_id] = compile_metadata(classified, collection)
            self._types[classified.source_type] = entity_id
            registered.append(entity_id)
            logger.info(
                "entity_registered",
                entity_id=entity_id,
                type=type_name,
                fields=len(classified.fields),
                suppressed=classified.suppressed,
            )

        for entity_id in registered:
            self._build_index(entity_id)
        self._link()
        return self

    def _build_index(self, entity_id: str) -> None:
        metadata = self._entities[entity_id]
        if metadata.collection is None:
            return
        try:
            name = Entity(metadata, self.config).optimize()
        except Exception as exc:
            # Index creation is best-effort; the entity stays registered.
            self.index_errors[entity_id] = exc
            logger.warning("index_failed", entity_id=entity_id, error=str(exc))
            return
        if name is not None:
            logger.debug("index_ready", entity_id=entity_id, index=name)

    def _link_field(self, fd: FieldDescriptor) -> FieldDescriptor:
        if not fd.has(Token.CREATE) or fd.target_type is None:
            return fd
        target = self._types.get(fd.target_type)
        if target is None:
            return fd
        if fd.kind is FieldKind.RECORD:
            ref = EmbeddingReference(entity_id=target, is_record=True)
        elif fd.kind is FieldKind.COLLECTION:
            ref = EmbeddingReference(entity_id=target, is_collection=True)
        else:
            return fd
        if fd.embedded == ref:
            return fd
        return replace(fd, embedded=ref)

    def _link(self) -> None:
        """Attach embedding references once every definition is known."""
        for entity_id, metadata in list(self._entities.items()):
            linked = tuple(self._link_field(fd) for fd in metadata.fields)
            if linked != metadata.fields:
                self._entities[entity_id] = metadata.with_fields(linked)
                logger.debug(
                    "entity_linked",
                    entity_id=entity_id,
                    embedded=[fd.name for fd in linked if fd.embedded is not None],
                )

    def get(self, entity_id: str) -> Optional[EntityMetadata]:
        return self._entities.get(entity_id)

    def metadata(self, entity_id: str) -> EntityMetadata:
        found = self._entities.get(entity_id)
        if found is None:
            raise EntityError(f"Unknown entity: {entity_id}")
        return found

    def entity_id_for(self, source_type: type) -> Optional[str]:
        return self._types.get(source_type)

    def collection(self, entity_id: str) -> Optional[Collection]:
        return self.metadata(entity_id).collection

    def entity(self, entity_id: str) -> Entity:
        return Entity(self.metadata(entity_id), self.config)

    def entity_ids(self) -> list[str]:
        return list(self._entities)

    def decode(
        self,
        entity_id: str,
        payload: Mapping[str, Any],
        *,
        field_errors: Optional[list[FieldWriteError]] = None,
    ) -> Any:
        return PayloadDecoder(self).decode(entity_id, payload, field_errors=field_errors)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[EntityMetadata]:
        return iter(self._entities.values())


def create(store: Optional[Store], *definitions: Any, config: MuxConfig | None = None) -> EntityRegistry:
    """Build a registry for ``definitions`` backed by ``store``."""

    return EntityRegistry(store, config).register(*definitions)
