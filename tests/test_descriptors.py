"""Tests for record descriptors and the descriptor cache."""

import threading
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, Field

from docforge.validation.descriptors import (
    build_descriptor,
    clear_cache,
    describe,
    is_record,
    is_record_type,
    tag,
)
from docforge.validation.errors import TagSyntaxError, UnsupportedRecordError
from docforge.validation.types import Method


@dataclass
class Address:
    city: str = tag("city,required", default="")
    zip_code: str = tag("zip,omitempty", default="")


@dataclass
class Node:
    label: str = tag("label,required", default="")
    children: list["Node"] = tag("children,omitempty", default_factory=list)


@dataclass
class Customer:
    name: str = tag("name,required,min=2", default="")
    email: str = tag(",email,transform=to_lower", default="")
    secret: str = tag("-", default="")
    nickname: str = ""
    address: Address | None = tag("address", default=None)
    shipping: list[Address] = tag("shipping,omitempty", default_factory=list)
    by_label: dict[str, Address] = field(default_factory=dict)
    history: tuple[Address, ...] = ()


class Item(BaseModel):
    sku: str = Field("", json_schema_extra={"docforge": "sku,required"})
    qty: int = Field(0, json_schema_extra={"docforge": "quantity,min=1"})
    note: str = ""


class Order(BaseModel):
    items: list[Item] = Field(default_factory=list, json_schema_extra={"docforge": "items,min=1"})


class TestRecordDetection:
    def test_dataclass_and_model_types(self):
        assert is_record_type(Customer)
        assert is_record_type(Item)
        assert not is_record_type(dict)
        assert not is_record_type(Customer())

    def test_instances(self):
        assert is_record(Customer())
        assert is_record(Item())
        assert not is_record({"a": 1})
        assert not is_record(None)


class TestDataclassDescriptor:
    def test_store_names(self):
        descriptor = describe(Customer)
        assert [f.store_name for f in descriptor.fields] == [
            "name", "email", "secret", "nickname", "address", "shipping",
            "by_label", "history",
        ]

    def test_ignored_field(self):
        descriptor = describe(Customer)
        assert descriptor.field("secret").ignore is True
        assert "secret" not in [f.source_name for f in descriptor.visible_fields]

    def test_rules_and_tag(self):
        name = describe(Customer).field("name")
        assert [d.token for d in name.rules] == ["required", "min=2"]
        assert name.tag == "name,required,min=2"

    def test_untagged_field(self):
        nickname = describe(Customer).field("nickname")
        assert nickname.tag == ""
        assert nickname.rules == ()

    def test_omission(self):
        shipping = describe(Customer).field("shipping")
        assert shipping.omits_empty(Method.CREATE)
        assert shipping.omits_empty(Method.UPDATE)
        assert not describe(Customer).field("address").omits_empty(Method.CREATE)

    @pytest.mark.parametrize(
        "name", ["address", "shipping", "by_label", "history"]
    )
    def test_nested_types(self, name):
        f = describe(Customer).field(name)
        assert f.nested_type is Address
        assert f.nested is describe(Address)

    def test_leaf_has_no_nested(self):
        assert describe(Customer).field("name").nested is None

    def test_self_referential(self):
        children = describe(Node).field("children")
        assert children.nested_type is Node
        assert children.nested is describe(Node)

    def test_tag_helper_keeps_metadata(self):
        @dataclass
        class Tagged:
            value: int = tag("v", default=0, metadata={"other": 1})

        descriptor = describe(Tagged)
        assert descriptor.field("v").source_name == "value"

    def test_custom_tag_key(self):
        @dataclass
        class Legacy:
            value: int = tag("legacy_value,required", key="bson", default=0)

        assert describe(Legacy).field("value").store_name == "value"
        assert describe(Legacy, "bson").field("value").store_name == "legacy_value"


class TestModelDescriptor:
    def test_model_fields(self):
        descriptor = describe(Item)
        assert [f.store_name for f in descriptor.fields] == ["sku", "quantity", "note"]
        assert descriptor.field("qty").rules[0].token == "min=1"

    def test_model_nested_type(self):
        assert describe(Order).field("items").nested_type is Item


class TestBuildErrors:
    def test_not_a_record(self):
        with pytest.raises(UnsupportedRecordError):
            build_descriptor(dict)

    def test_bad_tag_fails_at_build_time(self):
        @dataclass
        class Broken:
            value: int = tag("value,-", default=0)

        with pytest.raises(TagSyntaxError):
            describe(Broken)


class TestCache:
    def test_descriptor_is_cached(self):
        assert describe(Customer) is describe(Customer)

    def test_clear_cache(self):
        first = describe(Customer)
        clear_cache()
        assert describe(Customer) is not first

    def test_concurrent_first_use_builds_one_descriptor(self):
        results = []
        barrier = threading.Barrier(16)

        def worker():
            barrier.wait()
            results.append(describe(Customer))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 16
        assert all(r is results[0] for r in results)

    def test_descriptor_is_immutable(self):
        descriptor = describe(Customer)
        with pytest.raises(AttributeError):
            descriptor.fields = ()
