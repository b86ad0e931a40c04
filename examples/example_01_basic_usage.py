"""Example 01: Basic Usage - docstore Fundamentals.

This example demonstrates the fundamental operations:
- Declaring a schema with FieldDefinition constraints and defaults
- Opening a database on a SQLite file
- Creating, reading, patching, replacing, and deleting records
- Handling ValidationError for rejected writes
"""

from pathlib import Path

from docstore import Database, FieldDefinition, SchemaDefinition, ValidationError


# Step 1: Declare a schema
# A schema governs writes to the collection with the same name.
productos = SchemaDefinition(
    name="productos",
    timestamps=True,
    fields={
        "nombre": FieldDefinition(type="string", required=True, minLength=3, maxLength=100),
        "precio": FieldDefinition(
            type="number", required=True, min=0, transform=lambda v: round(v, 2)
        ),
        "stock": FieldDefinition(type="number", min=0, defaultValue=0),
        "categoria": FieldDefinition(type=["string", "null"]),
    },
)


def main():
    """Run the basic usage example."""
    print("=" * 80)
    print("DOCSTORE BASIC USAGE EXAMPLE")
    print("=" * 80)

    # Step 2: Open the database
    # Use a local path (not /tmp) for the database file.
    Path("tmp").mkdir(exist_ok=True)
    db_file = Path("tmp/basic_usage.db")
    if db_file.exists():
        db_file.unlink()

    with Database.open(f"sqlite:///{db_file}", schemas=[productos]) as db:
        print(f"\n✓ Database opened: {db_file}")

        # Step 3: Create records
        # Ids are assigned automatically; defaults, transforms and
        # timestamps are applied before validation.
        print("\nCreating products...")
        laptop = db.create("productos", {"nombre": "Laptop", "precio": 1199.999})
        db.create("productos", {"nombre": "Monitor", "precio": 300, "stock": 7})
        print(f"  {laptop}")

        # Step 4: Read
        print("\nReading product 2...")
        print(f"  {db.get('productos', 2)}")

        # Step 5: Patch merges; replace swaps the whole record
        print("\nPatching stock of product 1...")
        print(f"  {db.patch('productos', 1, {'stock': 3})}")
        print("\nReplacing product 2...")
        print(f"  {db.replace('productos', 2, {'nombre': 'Monitor 27', 'precio': 350})}")

        # Step 6: Rejected writes
        print("\nCreating an invalid product...")
        try:
            db.create("productos", {"nombre": "X", "precio": -1})
        except ValidationError as e:
            for err in e.errors:
                print(f"  ✗ {err.field}: {err.message}")

        # Step 7: Delete
        print("\nDeleting product 2...")
        print(f"  deleted: {db.delete('productos', 2)}")
        print(f"  deleted again: {db.delete('productos', 2)}")

    # Step 8: Reopen; every write was persisted
    with Database.open(f"sqlite:///{db_file}", schemas=[productos]) as db:
        print(f"\n✓ Reopened, products stored: {db.store.count('productos')}")


if __name__ == "__main__":
    main()
