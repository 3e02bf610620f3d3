"""Wishlist and product reviews"""

import logging

from bson import ObjectId

from ..database.connection import to_object_id, to_str_id
from ..database.products import ProductDatabase, product_db
from ..database.reviews import ReviewDatabase, review_db
from ..database.users import UserDatabase, user_db
from ..errors import ConflictError, NotFoundError
from ..models.common import Pagination
from ..models.product import Product
from ..models.review import Review, ReviewPage, WishlistStatus
from .presenters import product_view

logger = logging.getLogger(__name__)


class EngagementService:
    """Customer wishlist and rating operations"""

    def __init__(
        self,
        products: ProductDatabase = product_db,
        users: UserDatabase = user_db,
        reviews: ReviewDatabase = review_db,
    ):
        self.products = products
        self.users = users
        self.reviews = reviews

    def _existing_product(self, product_id: str) -> dict:
        product = self.products.get_product(to_object_id(product_id, "Product"))
        if not product or product.get("is_archived"):
            raise NotFoundError("Product")
        return product

    # --- Wishlist ---

    def add_to_wishlist(self, user_id: ObjectId, product_id: str) -> WishlistStatus:
        """Add a product; adding it twice leaves one entry"""
        product = self._existing_product(product_id)
        if not self.users.add_to_wishlist(user_id, product["_id"]):
            raise NotFoundError("User")
        return WishlistStatus(in_wishlist=True)

    def remove_from_wishlist(self, user_id: ObjectId, product_id: str) -> WishlistStatus:
        pid = to_object_id(product_id, "Product")
        if not self.users.remove_from_wishlist(user_id, pid):
            raise NotFoundError("User")
        return WishlistStatus(in_wishlist=False)

    def list_wishlist(self, user_id: ObjectId) -> list[Product]:
        """Wishlist products in the order they were added; deleted products drop out"""
        user = self.users.get_user(user_id)
        if not user:
            raise NotFoundError("User")
        ids = user.get("wishlist", [])
        products = self.products.get_products(ids)
        return [product_view(products[pid]) for pid in ids if pid in products]

    # --- Reviews ---

    def rate_product(self, user_id: ObjectId, product_id: str, rating: int, review: str = "") -> Review:
        """Record the user's single review of a product"""
        product = self._existing_product(product_id)
        if self.reviews.get_review(user_id, product["_id"]):
            raise ConflictError("You have already reviewed this product")

        doc = self.reviews.create_review(user_id, product["_id"], rating, review or "")
        user = self.users.get_user(user_id)
        logger.info(f"Review {doc['_id']}: {rating}/5 for product {product['_id']}")
        return Review.model_validate({**to_str_id(doc), "user_name": (user or {}).get("name")})

    def list_reviews(self, product_id: str, page: int = 1, limit: int = 10) -> ReviewPage:
        """Newest reviews first, with reviewer names and the product's average"""
        pid = to_object_id(product_id, "Product")
        if not self.products.get_product(pid):
            raise NotFoundError("Product")

        docs, total = self.reviews.list_reviews(pid, page=page, limit=limit)
        reviewers = self.users.get_users([d["user_id"] for d in docs])
        reviews = [
            Review.model_validate({
                **to_str_id(d),
                "user_name": reviewers.get(d["user_id"], {}).get("name"),
            })
            for d in docs
        ]
        return ReviewPage(
            reviews=reviews,
            average_rating=round(self.reviews.average_rating(pid), 1),
            total_reviews=total,
            pagination=Pagination.build(total, page, limit),
        )

    def delete_review(self, user_id: ObjectId, product_id: str) -> None:
        """Delete the caller's own review of a product"""
        existing = self.reviews.get_review(user_id, to_object_id(product_id, "Product"))
        if not existing:
            raise NotFoundError("Review")
        self.reviews.delete_review(existing["_id"])


# Singleton instance
engagement_service = EngagementService()
