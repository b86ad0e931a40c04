"""Example 03: Querying - filters, search, sorting, and pagination.

This example demonstrates:
- Building filter trees with field_ref and &, |, ~
- The fluent CollectionQuery builder
- Offset and cursor pagination
- Decoding flat query-string parameters with find_params
"""

from docstore import (
    CursorPagination,
    Database,
    OffsetPagination,
    QueryOptions,
    SearchOptions,
    SortSpec,
    field_ref,
)

PRODUCTOS = [
    {"nombre": "Laptop", "precio": 1200, "stock": 5, "categoria": "informatica"},
    {"nombre": "Smartphone", "precio": 800, "stock": 10, "categoria": "telefonia"},
    {"nombre": "Tablet", "precio": 500, "stock": 0, "categoria": "informatica"},
    {"nombre": "Monitor", "precio": 300, "stock": 7, "categoria": "informatica"},
    {"nombre": "Auriculares", "precio": 80, "stock": 25, "categoria": "audio"},
]


def _names(result):
    return [r["nombre"] for r in result.data]


def main():
    """Run the querying example."""
    print("=" * 80)
    print("DOCSTORE QUERYING EXAMPLE")
    print("=" * 80)

    with Database() as db:
        for producto in PRODUCTOS:
            db.create("productos", producto)

        # Filter trees
        precio = field_ref("precio")
        categoria = field_ref("categoria")
        caros = QueryOptions(
            filter=(precio > 100) & (categoria == "informatica"),
            sort=[SortSpec("precio", "desc")],
            pagination=OffsetPagination(page=1, limit=2),
        )
        result = db.find("productos", caros)
        print(f"\nExpensive computing, page 1: {_names(result)}")
        print(f"  {result.pagination.to_dict()}")

        sin_stock_o_audio = (field_ref("stock") == 0) | (categoria == "audio")
        result = db.find("productos", QueryOptions(filter=sin_stock_o_audio))
        print(f"\nOut of stock or audio: {_names(result)}")
        result = db.find("productos", QueryOptions(filter=~(categoria == "informatica")))
        print(f"Not informatica: {_names(result)}")

        # Fluent builder
        baratos = db.collection("productos").where(precio < 600).order_by("nombre")
        print(f"\nUnder 600 by name: {[r['nombre'] for r in baratos.collect()]}")
        print(f"  count: {baratos.count()}")

        # Search
        result = db.find("productos", QueryOptions(search=SearchOptions("phone")))
        print(f"\nSearch 'phone': {_names(result)}")

        # Cursor pagination
        print("\nWalking pages of 2 with cursors:")
        cursor = None
        while True:
            page = db.find(
                "productos", QueryOptions(pagination=CursorPagination(cursor=cursor, limit=2))
            )
            print(f"  {_names(page)}")
            if not page.pagination.has_more:
                break
            cursor = page.pagination.next_cursor

        # Flat parameters, as a URL query string would carry them
        params = {
            "precio_gte": "300",
            "categoria_in": "informatica,audio",
            "_sort": "precio",
            "_order": "asc",
            "_limit": "10",
            "_page": "1",
        }
        print(f"\nfind_params({params}):")
        print(f"  {_names(db.find_params('productos', params))}")


if __name__ == "__main__":
    main()
