"""Example 04: Export/Import and storage backends.

This example demonstrates:
- Dumping every collection as JSON or sectioned CSV
- Loading a dump into another database
- Switching storage backends with a storage URI
"""

from pathlib import Path

from docstore import Database


def main():
    """Run the export/import example."""
    print("=" * 80)
    print("DOCSTORE EXPORT/IMPORT EXAMPLE")
    print("=" * 80)

    Path("tmp").mkdir(exist_ok=True)

    with Database.open("file://tmp/origen") as origen:
        origen.import_data({})  # start empty on reruns
        origen.create("usuarios", {"nombre": "Ana", "tags": ["admin"]})
        origen.create("usuarios", {"nombre": "Luis", "activo": False})
        origen.create("pedidos", {"usuarioId": 1, "total": 99.5})

        json_dump = origen.dump("json")
        csv_dump = origen.dump("csv")

    Path("tmp/backup.csv").write_text(csv_dump, encoding="utf-8")
    print("\nCSV dump:")
    print(csv_dump)

    # JSON keeps values exactly; CSV coerces cell text on the way back
    with Database.open("sqlite:///tmp/destino.db") as destino:
        destino.load_dump(json_dump, "json")
        print(f"From JSON: {destino.store.all('usuarios')}")

        destino.load_dump(csv_dump, "csv")
        print(f"From CSV:  {destino.store.all('usuarios')}")
        print(f"\n{destino.info()}")


if __name__ == "__main__":
    main()
