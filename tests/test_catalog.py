"""Tests for catalog management and queries."""

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from shoestore.database.products import product_db
from shoestore.errors import InvalidArgumentError, NotFoundError
from shoestore.models.product import BulkUpdateItem, ProductCreate, ProductUpdate
from shoestore.services.assets import AssetStore
from shoestore.services.catalog import CatalogService, split_csv


class RecordingHost:
    """Fake Cloudinary uploader that records every call."""

    def __init__(self, fail_uploads=False):
        self.fail_uploads = fail_uploads
        self.uploads = 0
        self.destroyed = []

    def upload(self, file, **options):
        if self.fail_uploads:
            raise CloudinaryError("boom")
        self.uploads += 1
        return {"secure_url": f"https://res.cloudinary.com/demo/image/upload/v1/shoes/img{self.uploads}.png"}

    def destroy(self, public_id, **options):
        self.destroyed.append(public_id)
        return {"result": "ok"}


CONFIGURED = {
    "cloudinary_cloud_name": "demo",
    "cloudinary_api_key": "key",
    "cloudinary_api_secret": "secret",
}


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def catalog(settings, host, db):
    assets = AssetStore(settings=settings.model_copy(update=CONFIGURED), uploader=host)
    return CatalogService(assets=assets)


@pytest.fixture
def image_files(tmp_path):
    paths = []
    for i in range(3):
        path = tmp_path / f"shoe{i}.png"
        path.write_bytes(b"\x89PNG fake image")
        paths.append(str(path))
    return paths


def new_product(**overrides):
    fields = {
        "name": "Trail Runner",
        "price": 1000.0,
        "gender": "unisex",
        "category": "sport",
        "sizes": [8.0, 9.0],
        "stock": 5,
    }
    fields.update(overrides)
    return ProductCreate(**fields)


class TestSplitCsv:
    def test_ignores_blanks(self):
        assert split_csv("nike, ,adidas,") == ["nike", "adidas"]
        assert split_csv(None) == []


class TestCreateAndImages:
    def test_create_uploads_images(self, catalog, image_files, host):
        product = catalog.create_product(new_product(), image_files[:2])

        assert len(product.images) == 2
        assert host.uploads == 2
        assert product.is_archived is False

    def test_failed_uploads_are_skipped(self, settings, image_files, db):
        store = AssetStore(settings=settings.model_copy(update=CONFIGURED), uploader=RecordingHost(fail_uploads=True))

        product = CatalogService(assets=store).create_product(new_product(), image_files)

        assert product.images == []

    def test_update_keeps_selected_images(self, catalog, image_files, host):
        product = catalog.create_product(new_product(), image_files)

        updated = catalog.update_product(product.id, ProductUpdate(price=1200.0), keep_images=[0, 2])

        assert updated.price == 1200.0
        assert updated.images == [product.images[0], product.images[2]]
        assert len(host.destroyed) == 1
        assert host.destroyed == ["shoes/img2"]

    def test_update_appends_new_images(self, catalog, image_files):
        product = catalog.create_product(new_product(), image_files[:1])

        updated = catalog.update_product(product.id, ProductUpdate(), image_paths=image_files[1:])

        assert len(updated.images) == 3
        assert updated.images[0] == product.images[0]

    def test_delete_image_by_index(self, catalog, image_files):
        product = catalog.create_product(new_product(), image_files[:2])

        updated = catalog.delete_product_image(product.id, 0)

        assert updated.images == [product.images[1]]

    def test_delete_image_bad_index(self, catalog, image_files):
        product = catalog.create_product(new_product(), image_files[:1])
        with pytest.raises(InvalidArgumentError):
            catalog.delete_product_image(product.id, -1)
        with pytest.raises(NotFoundError):
            catalog.delete_product_image(product.id, 5)

    def test_delete_product_removes_images(self, catalog, image_files, host):
        product = catalog.create_product(new_product(), image_files[:2])

        catalog.delete_product(product.id)

        assert len(host.destroyed) == 2
        with pytest.raises(NotFoundError):
            catalog.get_product(product.id)


class TestAdminWrites:
    def test_update_stock(self, catalog, make_product):
        product = make_product(stock=1)
        assert catalog.update_stock(str(product["_id"]), 40).stock == 40

    def test_archive_hides_from_public_reads(self, catalog, make_product):
        product = make_product()
        catalog.archive_product(str(product["_id"]))

        with pytest.raises(NotFoundError):
            catalog.get_product(str(product["_id"]))
        assert catalog.get_product(str(product["_id"]), include_archived=True).is_archived
        assert catalog.list_products().pagination.total == 0
        assert catalog.list_products(include_archived=True).pagination.total == 1

    def test_bulk_update_reports_each_item(self, catalog, make_product):
        first = make_product(stock=1)
        second = make_product(name="Loafer", stock=2)

        results = catalog.bulk_update_products([
            BulkUpdateItem(id=str(first["_id"]), stock=11),
            BulkUpdateItem(id="64b7f0c2a1b2c3d4e5f60718", stock=5),
            BulkUpdateItem(id="garbage", stock=5),
            BulkUpdateItem(stock=5),
            BulkUpdateItem(id=str(second["_id"]), discount=15),
        ])

        assert [r.success for r in results] == [True, False, False, False, True]
        assert results[1].message == "Product not found"
        assert results[3].message == "Product id is required"
        assert product_db.get_product(first["_id"])["stock"] == 11
        assert product_db.get_product(second["_id"])["discount"] == 15


class TestQueries:
    @pytest.fixture
    def shelf(self, make_product):
        return [
            make_product(name="Air Glide", brand="Nike", category="sport", gender="male", price=9000.0, sizes=[9.0, 10.0]),
            make_product(name="Street Low", brand="Adidas", category="casual", gender="female", price=4000.0, discount=10, sizes=[7.0]),
            make_product(name="Office Derby", brand="Bata", category="fashion", gender="male", price=3000.0, season="winter", description="Polished leather, nike-free"),
            make_product(name="Court Hi", brand="Nike", category="casual", gender="unisex", price=6000.0, sizes=[10.0]),
        ]

    def test_search_matches_name_description_and_brand(self, catalog, shelf):
        result = catalog.search("NIKE")
        assert {p.name for p in result.products} == {"Air Glide", "Office Derby", "Court Hi"}

    def test_search_requires_keyword(self, catalog, db):
        with pytest.raises(InvalidArgumentError):
            catalog.search("  ")

    def test_by_brand_is_case_insensitive(self, catalog, shelf):
        assert catalog.by_brand("nike").pagination.total == 2

    def test_by_category(self, catalog, shelf):
        assert {p.name for p in catalog.by_category("casual").products} == {"Street Low", "Court Hi"}

    def test_on_sale(self, catalog, shelf):
        assert [p.name for p in catalog.on_sale().products] == ["Street Low"]

    def test_filters(self, catalog, shelf):
        result = catalog.filter_products(min_price=3500, max_price=9500, genders="male,unisex", sizes="10")
        assert {p.name for p in result.products} == {"Air Glide", "Court Hi"}
        assert catalog.filter_products(seasons="winter").products[0].name == "Office Derby"

    def test_filter_rejects_bad_sizes(self, catalog, shelf):
        with pytest.raises(InvalidArgumentError):
            catalog.filter_products(sizes="nine")

    def test_similar_excludes_itself(self, catalog, shelf):
        similar = catalog.similar(str(shelf[0]["_id"]))
        assert {p.name for p in similar} == {"Court Hi"}

    def test_featured_limited_to_eight(self, catalog, make_product):
        for i in range(10):
            make_product(name=f"Shoe {i}")
        assert len(catalog.featured()) == 8

    def test_pagination(self, catalog, shelf):
        page = catalog.list_products(page=2, limit=3, sort="price", order="asc")
        assert page.pagination.total_pages == 2
        assert [p.name for p in page.products] == ["Air Glide"]
