"""Tests for the drag token codec."""

import pytest

from catalog_curator import tokens
from catalog_curator.exceptions import MalformedTokenError
from catalog_curator.tokens import DragKind, DragToken


class TestEncode:
    def test_product_token_format(self):
        assert tokens.encode(DragKind.PRODUCT, 77) == "product:77"

    def test_variant_token_format(self):
        assert tokens.variant_token(64) == "variant:64"

    def test_kinds_never_collide_for_same_raw_id(self):
        assert tokens.product_token(5) != tokens.variant_token(5)

    def test_separator_in_raw_id_is_escaped(self):
        token = tokens.product_token("a:b")
        assert token.count(tokens.SEPARATOR) == 1

    def test_crafted_raw_id_cannot_impersonate_other_kind(self):
        # A raw id that spells out another token stays inside its own kind.
        token = tokens.product_token("variant:1")
        assert tokens.decode(token) == DragToken(kind=DragKind.PRODUCT, raw_id="variant:1")


class TestDecode:
    @pytest.mark.parametrize(
        "kind, raw_id",
        [
            (DragKind.PRODUCT, 77),
            (DragKind.VARIANT, "3f2b-uuid-like-9c"),
            (DragKind.PRODUCT, 10**20),
            (DragKind.VARIANT, "with space/and%percent:colon"),
        ],
    )
    def test_decode_inverts_encode(self, kind, raw_id):
        decoded = tokens.decode(tokens.encode(kind, raw_id))
        assert decoded.kind is kind
        assert decoded.raw_id == str(raw_id)
        assert decoded.refers_to(raw_id)

    @pytest.mark.parametrize(
        "token",
        ["product-77", "category:1", "product:", ":77", "variant:a:b", "", None, 77],
    )
    def test_malformed_tokens_rejected(self, token):
        with pytest.raises(MalformedTokenError):
            tokens.decode(token)

    def test_refers_to_compares_string_form(self):
        token = tokens.decode("product:77")
        assert token.refers_to(77)
        assert token.refers_to("77")
        assert not token.refers_to(78)
