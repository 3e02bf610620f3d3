"""Tests for database helpers."""

import time
from datetime import datetime, timedelta

import pytest
from bson import ObjectId

from shoestore.database.connection import to_object_id, utcnow
from shoestore.errors import InvalidArgumentError


class TestUtcnow:
    def test_naive_utc(self):
        now = utcnow()
        assert now.tzinfo is None
        assert abs(now - (datetime(1970, 1, 1) + timedelta(seconds=time.time()))) < timedelta(seconds=5)


class TestObjectIds:
    def test_parses_hex(self):
        assert to_object_id("64b7f0c2a1b2c3d4e5f60718") == ObjectId("64b7f0c2a1b2c3d4e5f60718")

    def test_rejects_malformed(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            to_object_id("xyz", "Order")
        assert exc_info.value.message == "Invalid order id"
