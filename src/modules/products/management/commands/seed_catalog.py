from __future__ import annotations

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.products import validators
from modules.products.image_services import ProductImageService
from modules.products.models import Product, ProductType
from modules.products.repositories.django_repository import (
    PriceHistoryDjangoRepository,
    ProductDjangoRepository,
    ProductImageDjangoRepository,
)
from modules.products.services import ProductService
from modules.products.storage import CloudinaryStorage

PRODUCT_TYPES = [
    # (name, slug, has sizes)
    ("Camiseta", "t-shirt", True),
    ("Sudadera", "hoodie", True),
    ("Taza", "mug", False),
    ("Cojín", "pillow", False),
    ("Funda de móvil", "phone-case", False),
    ("Cromo", "trading-card", False),
]

CATALOG = [
    # (slug, type slug, es title, en title, price, compare at, sizes, color, hot)
    (
        "camiseta-doge", "t-shirt", "Camiseta Doge", "Doge T-Shirt",
        "19.99", "24.99", ["S", "M", "L", "XL"], "black", True,
    ),
    (
        "camiseta-nyan-cat", "t-shirt", "Camiseta Nyan Cat", "Nyan Cat T-Shirt",
        "18.50", None, ["S", "M", "L"], "navy", False,
    ),
    (
        "sudadera-pepe", "hoodie", "Sudadera Pepe", "Pepe Hoodie",
        "39.90", "49.90", ["M", "L", "XL"], "green", True,
    ),
    (
        "taza-this-is-fine", "mug", "Taza This Is Fine", "This Is Fine Mug",
        "12.00", None, None, "white", False,
    ),
    (
        "cojin-grumpy-cat", "pillow", "Cojín Grumpy Cat", "Grumpy Cat Pillow",
        "22.00", None, None, "grey", False,
    ),
    (
        "funda-stonks", "phone-case", "Funda de móvil Stonks", "Stonks Phone Case",
        "15.00", None, None, "blue", False,
    ),
]

IMAGE_URL = "https://res.cloudinary.com/demo/image/upload/v1/storefront/products/{slug}.jpg"


class Command(BaseCommand):
    help = "Seed the catalog with product types and sample products."

    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog...")
        users_created = self._seed_users()
        types = self._seed_product_types()
        created = self._seed_products(types)
        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"product_types={len(types)}, "
                f"products={created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="merchandiser").exists():
            User.objects.create_user("merchandiser", password="merch123", is_staff=True)
            created += 1
        return created

    def _seed_product_types(self) -> dict:
        types = {}
        for position, (name, slug, has_sizes) in enumerate(PRODUCT_TYPES, start=1):
            product_type, _ = ProductType.objects.get_or_create(
                slug=slug,
                defaults={"name": name, "has_sizes": has_sizes, "sort_order": position},
            )
            types[slug] = product_type
        return types

    def _seed_products(self, types: dict) -> int:
        products = ProductService(
            repository=ProductDjangoRepository(),
            price_history_repository=PriceHistoryDjangoRepository(),
        )
        images = ProductImageService(
            repository=ProductImageDjangoRepository(),
            product_repository=ProductDjangoRepository(),
            storage=CloudinaryStorage(),
        )
        created = 0
        for slug, type_slug, title_es, title_en, price, compare_at, sizes, color, hot in CATALOG:
            if Product.objects.filter(slug=slug).exists():
                continue
            dto = validators.validate_create_product(
                {
                    "title": {"es": title_es, "en": title_en},
                    "description": {
                        "es": f"{title_es} de edición limitada.",
                        "en": f"Limited edition {title_en}.",
                    },
                    "slug": slug,
                    "price": Decimal(price),
                    "compareAtPrice": Decimal(compare_at) if compare_at else None,
                    "availableSizes": sizes,
                    "productTypeId": str(types[type_slug].id),
                    "color": color,
                    "isHot": hot,
                }
            )
            product = products.create_product(dto)
            images.add_image(
                str(product.id),
                validators.validate_create_image(
                    {
                        "url": IMAGE_URL.format(slug=slug),
                        "altText": {"es": title_es, "en": title_en},
                        "isPrimary": True,
                    }
                ),
            )
            created += 1
        return created
