"""Example 02: Relations - referential integrity and expansion.

This example demonstrates:
- oneToMany / manyToOne relations between collections
- cascade, restrict, and setNull onDelete policies
- Renaming a record id with onUpdate propagation
- Expanding relational fields to a given depth
- manyToMany through a join collection
"""

from docstore import Database, FieldDefinition, ReferentialIntegrityError, SchemaDefinition

usuarios = SchemaDefinition(
    name="usuarios",
    fields={
        "nombre": FieldDefinition(type="string", required=True),
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
            relation={
                "type": "manyToOne",
                "collection": "usuarios",
                "field": "id",
                "onUpdate": "cascade",
            },
        ),
        "total": FieldDefinition(type="number", min=0),
    },
)

envios = SchemaDefinition(
    name="envios",
    fields={
        "pedidoId": FieldDefinition(
            type="number",
            relation={
                "type": "manyToOne",
                "collection": "pedidos",
                "field": "id",
                "onDelete": "restrict",
            },
        ),
    },
)

estudiantes = SchemaDefinition(
    name="estudiantes",
    fields={
        "nombre": FieldDefinition(type="string"),
        "cursos": FieldDefinition(
            type="array",
            relation={
                "type": "manyToMany",
                "collection": "cursos",
                "field": "estudianteId",
                "foreignField": "cursoId",
                "onDelete": "cascade",
            },
        ),
    },
)


def main():
    """Run the relations example."""
    print("=" * 80)
    print("DOCSTORE RELATIONS EXAMPLE")
    print("=" * 80)

    with Database(schemas=[usuarios, pedidos, envios, estudiantes]) as db:
        db.create("usuarios", {"nombre": "Ana"})
        db.create("usuarios", {"nombre": "Luis"})
        db.create("pedidos", {"usuarioId": 1, "total": 100})
        db.create("pedidos", {"usuarioId": 1, "total": 250})
        db.create("pedidos", {"usuarioId": 2, "total": 75})
        db.create("envios", {"pedidoId": 3})

        # Expansion replaces relational fields with the related records
        print("\nOrder 1 expanded:")
        print(f"  {db.get('pedidos', 1, expand=True)}")
        print("\nUser 1 expanded to depth 2:")
        print(f"  {db.get('usuarios', 1, expand=True, depth=2)}")

        # onUpdate cascade: renaming user 1 rewrites its orders
        print("\nRenaming user 1 to id 10...")
        db.patch("usuarios", 1, {"id": 10})
        print(f"  orders of user 10: {db.store.find_by('pedidos', {'usuarioId': 10})}")

        # cascade: deleting a user deletes its orders
        print("\nDeleting user 10...")
        db.delete("usuarios", 10)
        print(f"  remaining orders: {[p['id'] for p in db.store.all('pedidos')]}")

        # restrict: a shipment blocks deleting its order, and the user above it
        print("\nDeleting user 2 (order 3 has a shipment)...")
        try:
            db.delete("usuarios", 2)
        except ReferentialIntegrityError as e:
            print(f"  ✗ {e}")

        # manyToMany through the estudiantes_cursos join collection
        db.import_data(
            {
                **db.export(),
                "estudiantes": [{"id": 1, "nombre": "Marta"}],
                "cursos": [{"id": 1, "titulo": "Álgebra"}, {"id": 2, "titulo": "Física"}],
                "estudiantes_cursos": [
                    {"id": 1, "estudianteId": 1, "cursoId": 1},
                    {"id": 2, "estudianteId": 1, "cursoId": 2},
                ],
            }
        )
        print("\nStudent 1 with courses:")
        print(f"  {db.get('estudiantes', 1, expand=True)}")
        db.delete("estudiantes", 1)
        print(f"  join rows after delete: {db.store.all('estudiantes_cursos')}")


if __name__ == "__main__":
    main()
