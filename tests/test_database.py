"""Tests for the Database facade: governed writes, relations, and bulk I/O."""

from __future__ import annotations

import pytest

from docstore import Database, DocstoreConfig
from docstore.errors import DuplicateIdError, ReferentialIntegrityError, ValidationError
from docstore.query import OffsetPagination, QueryOptions
from docstore.types import FieldDefinition, SchemaDefinition
from tests.conftest import pedidos, productos, usuarios

autores = SchemaDefinition(name="autores", fields={"nombre": FieldDefinition(type="string")})


def _libros(on_update):
    return SchemaDefinition(
        name="libros",
        fields={
            "titulo": FieldDefinition(type="string"),
            "autorId": FieldDefinition(
                type="number",
                relation={
                    "type": "manyToOne",
                    "collection": "autores",
                    "field": "id",
                    "onUpdate": on_update,
                },
            ),
        },
    )


@pytest.fixture
def biblioteca(request):
    db = Database(schemas=[autores, _libros(request.param)])
    db.import_data(
        {
            "autores": [{"id": 1, "nombre": "Cortázar"}, {"id": 2, "nombre": "Borges"}],
            "libros": [
                {"id": 1, "titulo": "Rayuela", "autorId": 1},
                {"id": 2, "titulo": "Ficciones", "autorId": 2},
            ],
        }
    )
    yield db
    db.close()


class TestCreate:
    def test_defaults_and_auto_id(self, shop):
        created = shop.create("usuarios", {"nombre": "Marta", "email": "marta@example.com"})
        assert created["id"] == 3
        assert created["rol"] == "usuario"
        assert shop.get("usuarios", 3) == created

    def test_validation_error_lists_every_field(self, db):
        with pytest.raises(ValidationError) as exc_info:
            db.create("usuarios", {"nombre": "Al"})
        err = exc_info.value
        assert err.collection == "usuarios"
        assert [e.field for e in err.errors] == ["nombre", "email"]
        assert db.store.all("usuarios") == []

    def test_nested_validation(self, shop):
        with pytest.raises(ValidationError) as exc_info:
            shop.create("pedidos", {"usuarioId": 1, "total": 10, "items": [{"productoId": 1}]})
        assert [e.field for e in exc_info.value.errors] == ["items[0].cantidad"]

    def test_transforms_and_timestamps(self, db):
        created = db.create("productos", {"nombre": "Teclado", "precio": 45.678})
        assert created["precio"] == 45.68
        assert created["stock"] == 0
        assert created["createdAt"] == created["updatedAt"]

    def test_collection_without_schema_is_not_validated(self, db):
        created = db.create("notas", {"texto": 1})
        assert created == {"texto": 1, "id": 1}

    def test_duplicate_id(self, shop):
        with pytest.raises(DuplicateIdError):
            shop.create("usuarios", {"id": 1, "nombre": "Otra", "email": "o@example.com"})


class TestReplaceAndPatch:
    def test_replace(self, shop):
        replaced = shop.replace("usuarios", 2, {"nombre": "Luisa", "email": "luisa@example.com"})
        assert replaced == {"nombre": "Luisa", "email": "luisa@example.com", "id": 2}
        assert shop.get("usuarios", 2) == replaced

    def test_replace_validates_whole_record(self, shop):
        with pytest.raises(ValidationError):
            shop.replace("usuarios", 2, {"nombre": "Luisa"})

    def test_replace_missing(self, shop):
        assert shop.replace("usuarios", 9, {"nombre": "Nadie", "email": "n@example.com"}) is None

    def test_patch(self, shop):
        patched = shop.patch("pedidos", 1, {"estado": "enviado"})
        assert patched == {"id": 1, "usuarioId": 1, "estado": "enviado", "total": 100}

    def test_patch_invalid_leaves_record(self, shop):
        with pytest.raises(ValidationError):
            shop.patch("pedidos", 1, {"total": -5})
        assert shop.get("pedidos", 1)["total"] == 100

    def test_patch_missing(self, shop):
        assert shop.patch("pedidos", 99, {"total": 1}) is None

    def test_patch_keeps_created_at(self, db):
        created = db.create("productos", {"nombre": "Teclado", "precio": 45})
        patched = db.patch("productos", created["id"], {"stock": 3})
        assert patched["createdAt"] == created["createdAt"]
        assert patched["stock"] == 3

    def test_id_change_to_taken_id(self, shop):
        with pytest.raises(DuplicateIdError):
            shop.patch("usuarios", 1, {"id": 2})
        assert shop.get("usuarios", 1) is not None


class TestIdChanges:
    @pytest.mark.parametrize("biblioteca", ["cascade"], indirect=True)
    def test_patch_cascades(self, biblioteca):
        biblioteca.patch("autores", 1, {"id": 10})
        assert biblioteca.get("autores", 1) is None
        assert biblioteca.get("autores", 10)["nombre"] == "Cortázar"
        assert biblioteca.get("libros", 1)["autorId"] == 10

    @pytest.mark.parametrize("biblioteca", ["cascade"], indirect=True)
    def test_replace_cascades(self, biblioteca):
        biblioteca.replace("autores", 2, {"id": 20, "nombre": "J. L. Borges"})
        assert biblioteca.get("libros", 2)["autorId"] == 20

    @pytest.mark.parametrize("biblioteca", ["restrict"], indirect=True)
    def test_restrict_refuses(self, biblioteca):
        with pytest.raises(ReferentialIntegrityError) as exc_info:
            biblioteca.patch("autores", 1, {"id": 10})
        assert exc_info.value.action == "update"
        assert biblioteca.get("autores", 1) is not None
        assert biblioteca.get("libros", 1)["autorId"] == 1

    @pytest.mark.parametrize("biblioteca", ["setNull"], indirect=True)
    def test_set_null(self, biblioteca):
        biblioteca.patch("autores", 2, {"id": 3})
        assert biblioteca.get("libros", 2)["autorId"] is None


class TestDelete:
    def test_cascade(self, shop):
        assert shop.delete("usuarios", 1) is True
        assert [p["id"] for p in shop.store.all("pedidos")] == [3]

    def test_absent(self, shop):
        assert shop.delete("usuarios", 9) is False


class TestRead:
    def test_get_expand(self, shop):
        pedido = shop.get("pedidos", 1, expand=True)
        assert pedido["usuarioId"]["nombre"] == "Ana"
        assert shop.get("pedidos", 1)["usuarioId"] == 1

    def test_get_expand_depth_capped(self):
        db = Database(schemas=[usuarios, pedidos], config=DocstoreConfig(max_expand_depth=1))
        db.import_data(
            {
                "usuarios": [{"id": 1, "nombre": "Ana", "email": "ana@example.com"}],
                "pedidos": [{"id": 1, "usuarioId": 1, "total": 5}],
            }
        )
        pedido = db.get("pedidos", 1, expand=True, depth=3)
        assert "pedidos" not in pedido["usuarioId"]
        db.close()

    def test_find(self, shop):
        result = shop.find("productos", QueryOptions(pagination=OffsetPagination(2, 2)))
        assert [r["id"] for r in result.data] == [3, 4]
        assert result.total == 5

    def test_find_params(self, shop):
        result = shop.find_params(
            "productos",
            {
                "precio_gt": "100",
                "categoria": "informatica",
                "_sort": "precio",
                "_order": "desc",
                "_page": "1",
                "_limit": "2",
            },
        )
        assert [r["nombre"] for r in result.data] == ["Laptop", "Tablet"]
        assert result.pagination.to_dict() == {
            "total": 3,
            "hasMore": True,
            "currentPage": 1,
            "pageCount": 2,
        }

    def test_find_params_expand(self, shop):
        result = shop.find_params("pedidos", {"usuarioId": "2", "_expand": "true"})
        assert [r["usuarioId"]["nombre"] for r in result.data] == ["Luis"]

    def test_fluent_collection(self, shop):
        assert shop.collection("productos").search("phone").first()["id"] == 2


class TestBulk:
    def test_dump_and_load_json(self, shop):
        text = shop.dump()
        other = Database(schemas=[usuarios, pedidos, productos])
        other.load_dump(text)
        assert other.export() == shop.export()
        other.close()

    def test_dump_csv(self, shop):
        text = shop.dump("csv")
        assert "# Collection: usuarios\n" in text
        assert "# Collection: productos\n" in text

    def test_info(self, shop):
        info = shop.info()
        assert info["collections"] == {"usuarios": 2, "pedidos": 3, "productos": 5}
        assert info["storage"]["backend"] == "memory"
        assert info["schemas"] == ["usuarios", "pedidos", "productos"]
        assert info["storage_key"] == "docstore"


class TestLifecycle:
    def test_sqlite_reopen(self, tmp_path):
        uri = f"sqlite:///{tmp_path / 'shop.db'}"
        with Database.open(uri, schemas=[usuarios]) as db:
            db.create("usuarios", {"nombre": "Ana", "email": "ana@example.com"})
        with Database.open(uri, schemas=[usuarios]) as db:
            assert db.get("usuarios", 1)["nombre"] == "Ana"

    def test_file_reopen(self, tmp_path):
        uri = f"file://{tmp_path / 'datos'}"
        with Database.open(uri) as db:
            db.create("notas", {"texto": "hola"})
        assert (tmp_path / "datos" / "docstore.json").exists()
        with Database.open(uri) as db:
            assert db.collections() == ["notas"]

    def test_storage_key_from_config(self, tmp_path):
        uri = f"file://{tmp_path}"
        with Database.open(uri, config=DocstoreConfig(storage_key="tienda")) as db:
            db.create("notas", {"texto": "hola"})
        assert (tmp_path / "tienda.json").exists()
