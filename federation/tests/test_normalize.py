"""Tests for profile normalization."""

import pytest

from federation.normalize import normalize_profile, strip_picture_params


def no_email(external_id):
    raise AssertionError("email fetcher should not be called")


class TestStripPictureParams:
    def test_drops_query_string(self):
        assert strip_picture_params("https://x/pic.png?size=200") == "https://x/pic.png"

    def test_url_without_query_unchanged(self):
        assert strip_picture_params("https://x/pic.png") == "https://x/pic.png"

    def test_none(self):
        assert strip_picture_params(None) is None


class TestNormalizeProfile:
    def test_missing_id_is_no_identity(self):
        assert normalize_profile({"name": "x"}, "gh", "github.com", no_email) is None
        assert normalize_profile(None, "gh", "github.com", no_email) is None

    def test_public_email_used_verbatim(self):
        identity = normalize_profile(
            {"id": 7, "email": "Me@X.com", "name": "Me", "avatar_url": "https://p/a.png"},
            "gh",
            "github.com",
            no_email,
        )
        assert identity.external_id == "7"
        assert identity.email == "Me@X.com"
        assert identity.display_name == "Me"
        assert identity.identifier == "gh7"

    @pytest.mark.parametrize("email", [None, "", "   "])
    def test_blank_email_uses_fetcher(self, email):
        calls = []

        def fetcher(external_id):
            calls.append(external_id)
            return "verified@x.com"

        identity = normalize_profile({"id": 7, "email": email}, "gh", "github.com", fetcher)
        assert identity.email == "verified@x.com"
        assert calls == ["7"]

    def test_blank_name_gets_placeholder(self):
        identity = normalize_profile({"id": 7, "email": "a@x.com", "name": ""}, "gh", "github.com", no_email)
        assert identity.display_name == "No Name"

    def test_synthesized_email(self):
        identity = normalize_profile({"id": 7, "email": "a@x.com"}, "gh", "github.com", no_email)
        assert identity.synthesized_email == "7@github.com"
