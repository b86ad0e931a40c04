"""Shared test fixtures for docstore tests."""

from __future__ import annotations

import pytest

from docstore import (
    CollectionStore,
    Database,
    FieldDefinition,
    MemoryStorage,
    RelationManager,
    SchemaDefinition,
    SchemaRegistry,
)

# --- Test schemas ---


def _valid_email(value):
    return ("@" in value and "." in value.split("@")[-1]) or "Invalid email format"


usuarios = SchemaDefinition(
    name="usuarios",
    fields={
        "nombre": FieldDefinition(type="string", required=True, minLength=3, maxLength=50),
        "email": FieldDefinition(type="string", required=True, validate=_valid_email),
        "rol": FieldDefinition(
            type="string", enum=["admin", "usuario", "editor"], defaultValue="usuario"
        ),
        "pedidos": FieldDefinition(
            type="array",
            relation={
                "type": "oneToMany",
                "collection": "pedidos",
                "field": "usuarioId",
                "onDelete": "cascade",
            },
        ),
    },
)

pedidos = SchemaDefinition(
    name="pedidos",
    fields={
        "usuarioId": FieldDefinition(
            type="number",
            required=True,
            relation={"type": "manyToOne", "collection": "usuarios", "field": "id"},
        ),
        "estado": FieldDefinition(
            type="string",
            enum=["pendiente", "enviado", "entregado", "cancelado"],
            defaultValue="pendiente",
        ),
        "total": FieldDefinition(type="number", required=True, min=0),
        "items": FieldDefinition(
            type="array",
            items=FieldDefinition(
                type="object",
                properties={
                    "productoId": FieldDefinition(type="number", required=True),
                    "cantidad": FieldDefinition(type="number", required=True, min=1),
                },
            ),
        ),
    },
)

productos = SchemaDefinition(
    name="productos",
    timestamps=True,
    fields={
        "nombre": FieldDefinition(type="string", required=True, minLength=3, maxLength=100),
        "precio": FieldDefinition(
            type="number", required=True, min=0, transform=lambda v: round(v, 2)
        ),
        "stock": FieldDefinition(type="number", required=True, min=0, defaultValue=0),
        "categoria": FieldDefinition(type=["string", "null"]),
    },
)

PRODUCTOS = [
    {"id": 1, "nombre": "Laptop", "precio": 1200, "stock": 5, "categoria": "informatica"},
    {"id": 2, "nombre": "Smartphone", "precio": 800, "stock": 10, "categoria": "telefonia"},
    {"id": 3, "nombre": "Tablet", "precio": 500, "stock": 0, "categoria": "informatica"},
    {"id": 4, "nombre": "Monitor", "precio": 300, "stock": 7, "categoria": "informatica"},
    {"id": 5, "nombre": "Auriculares", "precio": 80, "stock": 25, "categoria": "audio"},
]


# --- Fixtures ---


@pytest.fixture
def registry():
    """A registry with the usuarios/pedidos/productos schemas."""
    return SchemaRegistry([usuarios, pedidos, productos])


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(registry, storage):
    return CollectionStore(storage, registry=registry)


@pytest.fixture
def relations(registry, store):
    return RelationManager(registry, store)


@pytest.fixture
def db():
    """A fresh in-memory database with the test schemas registered."""
    database = Database(schemas=[usuarios, pedidos, productos])
    yield database
    database.close()


@pytest.fixture
def shop(db):
    """A database seeded with users, their orders, and products."""
    db.import_data(
        {
            "usuarios": [
                {"id": 1, "nombre": "Ana", "email": "ana@example.com", "rol": "admin"},
                {"id": 2, "nombre": "Luis", "email": "luis@example.com", "rol": "usuario"},
            ],
            "pedidos": [
                {"id": 1, "usuarioId": 1, "estado": "pendiente", "total": 100},
                {"id": 2, "usuarioId": 1, "estado": "enviado", "total": 250},
                {"id": 3, "usuarioId": 2, "estado": "entregado", "total": 75},
            ],
            "productos": [dict(p) for p in PRODUCTOS],
        }
    )
    return db
